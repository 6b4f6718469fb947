"""Flat, display-ready projection of OTLP log records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from obsq.otlp.attributes import merge_attributes
from obsq.otlp.models import KeyValue, ResourceLogs
from obsq.query import catalog
from obsq.query.timestamp import format_timestamp

# (lowest severity number, range name), per the OpenTelemetry log data model
SEVERITY_RANGES = (
    (1, "TRACE"),
    (5, "DEBUG"),
    (9, "INFO"),
    (13, "WARN"),
    (17, "ERROR"),
    (21, "FATAL"),
)
MAX_SEVERITY_NUMBER = 24


def severity_range(number: Optional[int]) -> str:
    """Map a severity number to its range name.

    0 and missing numbers are UNKNOWN; numbers past 24 render as ``SEVERITY_<n>``.
    """
    if not number:
        return "UNKNOWN"
    if number < 0 or number > MAX_SEVERITY_NUMBER:
        return f"SEVERITY_{number}"
    name = "UNKNOWN"
    for lowest, range_name in SEVERITY_RANGES:
        if number >= lowest:
            name = range_name
    return name


@dataclass
class FlatLogRecord:
    """One log record with its structural fields already rendered as text."""

    timestamp: str = ""
    severity_range: str = ""
    severity_number: str = ""
    severity_text: str = ""
    body: str = ""
    trace_id: str = ""
    span_id: str = ""
    flags: str = ""
    event_name: str = ""
    scope_name: str = ""
    scope_version: str = ""
    raw_attrs: list[KeyValue] = field(default_factory=list)

    def values(self) -> dict[str, str]:
        return {
            catalog.LOG_TIME: self.timestamp,
            catalog.LOG_SEVERITY_RANGE: self.severity_range,
            catalog.LOG_SEVERITY_NUMBER: self.severity_number,
            catalog.LOG_SEVERITY_TEXT: self.severity_text,
            catalog.LOG_BODY: self.body,
            catalog.TRACE_ID: self.trace_id,
            catalog.SPAN_ID: self.span_id,
            catalog.FLAGS: self.flags,
            catalog.EVENT_NAME: self.event_name,
            catalog.SCOPE_NAME: self.scope_name,
            catalog.SCOPE_VERSION: self.scope_version,
        }


def iter_flat_records(resource_logs: ResourceLogs) -> Iterator[FlatLogRecord]:
    """Yield one FlatLogRecord per log record in a ResourceLogs batch."""
    resource_attrs = resource_logs.resource.attributes
    for scope_logs in resource_logs.scope_logs:
        scope = scope_logs.scope
        scope_attrs = scope.attributes if scope else []
        for record in scope_logs.log_records:
            yield FlatLogRecord(
                timestamp=format_timestamp(record.time_unix_nano),
                severity_range=severity_range(record.severity_number),
                severity_number=(
                    str(record.severity_number) if record.severity_number is not None else ""
                ),
                severity_text=record.severity_text or "",
                body=record.body.to_display() if record.body else "",
                trace_id=record.trace_id or "",
                span_id=record.span_id or "",
                flags=str(record.flags) if record.flags is not None else "",
                event_name=record.event_name or "",
                scope_name=(scope.name or "") if scope else "",
                scope_version=(scope.version or "") if scope else "",
                raw_attrs=merge_attributes(resource_attrs, scope_attrs, record.attributes),
            )
