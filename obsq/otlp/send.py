"""
Sending single spans and log records over OTLP/HTTP with JSON encoding.

Payloads are built from the same pydantic models used to read query
results, so what ``spans send`` emits is exactly what ``spans query`` parses.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional, Sequence
from urllib.parse import urlparse

import requests

from obsq._version import __version__
from obsq.otlp.attributes import (
    parse_key_value_pairs,
    to_key_values,
    validate_span_id,
    validate_trace_id,
)
from obsq.otlp.models import (
    AnyValue,
    InstrumentationScope,
    LogRecord,
    Resource,
    ResourceLogs,
    ResourceSpans,
    ScopeLogs,
    ScopeSpans,
    Span,
    SpanLink,
    Status,
)

logger = logging.getLogger(__name__)

DEFAULT_SCOPE_NAME = "obsq"
DATASET_HEADER = "X-Dataset"

TRACES_PATH = "/v1/traces"
LOGS_PATH = "/v1/logs"

_RFC3339 = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})$",
    re.IGNORECASE,
)


class OTLPSendError(RuntimeError):
    """Raised when the OTLP endpoint rejects or cannot receive a payload."""


def now_unix_nano() -> int:
    return time.time_ns()


def parse_rfc3339_nanos(value: str) -> int:
    """Parse an RFC 3339 timestamp, keeping up to nanosecond precision.

    Raises:
        ValueError: If ``value`` is not RFC 3339
    """
    match = _RFC3339.match(value.strip())
    if match is None:
        raise ValueError(f"invalid timestamp {value!r} (expected RFC3339)")
    tz = match.group("tz").upper()
    base = datetime.fromisoformat(match.group("base") + ("+00:00" if tz == "Z" else tz))
    fraction = (match.group("fraction") or "").ljust(9, "0")
    return int(base.astimezone(timezone.utc).timestamp()) * 1_000_000_000 + int(fraction)


def parse_span_link(value: str) -> SpanLink:
    """Parse ``trace-id:span-id[,key=value,...]`` into a SpanLink.

    Raises:
        ValueError: If the ids or attributes are malformed
    """
    id_part, _, attr_part = value.partition(",")
    trace_id, sep, span_id = id_part.partition(":")
    if not sep:
        raise ValueError(
            f"invalid span-link {value!r}: expected format 'trace-id:span-id[,key=value,...]'"
        )
    try:
        attrs = parse_key_value_pairs(attr_part.split(",")) if attr_part else {}
        return SpanLink(
            trace_id=validate_trace_id(trace_id),
            span_id=validate_span_id(span_id),
            attributes=to_key_values(attrs),
        )
    except ValueError as e:
        raise ValueError(f"invalid span-link {value!r}: {e}") from e


def resolve_scope(name: Optional[str], version: Optional[str]) -> tuple[str, str]:
    """Return the scope name and version to send.

    With neither given the defaults apply. Giving only one of them leaves the
    other empty, so a custom scope name is never paired with this tool's version.
    """
    if name is None and version is None:
        return DEFAULT_SCOPE_NAME, __version__
    return name or "", version or ""


def _scope(name: str, version: str, attrs: dict[str, str]) -> InstrumentationScope:
    return InstrumentationScope(
        name=name or None,
        version=version or None,
        attributes=to_key_values(attrs),
    )


def build_span_payload(
    name: str,
    trace_id: str,
    span_id: str,
    start_time_unix_nano: int,
    end_time_unix_nano: int,
    kind: int = 1,
    status_code: int = 0,
    status_message: Optional[str] = None,
    parent_span_id: Optional[str] = None,
    resource_attributes: Optional[dict[str, str]] = None,
    span_attributes: Optional[dict[str, str]] = None,
    links: Sequence[SpanLink] = (),
    scope_name: str = DEFAULT_SCOPE_NAME,
    scope_version: str = __version__,
    scope_attributes: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Build an OTLP/JSON ExportTraceServiceRequest holding a single span."""
    span = Span(
        trace_id=trace_id,
        span_id=span_id,
        parent_span_id=parent_span_id or None,
        name=name,
        kind=kind,
        start_time_unix_nano=str(start_time_unix_nano),
        end_time_unix_nano=str(end_time_unix_nano),
        attributes=to_key_values(span_attributes or {}),
        status=Status(code=status_code, message=status_message or None),
        links=list(links),
    )
    resource_spans = ResourceSpans(
        resource=Resource(attributes=to_key_values(resource_attributes or {})),
        scope_spans=[
            ScopeSpans(
                scope=_scope(scope_name, scope_version, scope_attributes or {}),
                spans=[span],
            )
        ],
    )
    return {"resourceSpans": [resource_spans.to_otlp()]}


def build_log_payload(
    body: str,
    time_unix_nano: int,
    observed_time_unix_nano: int,
    severity_number: Optional[int] = None,
    severity_text: Optional[str] = None,
    trace_id: Optional[str] = None,
    span_id: Optional[str] = None,
    event_name: Optional[str] = None,
    flags: Optional[int] = None,
    resource_attributes: Optional[dict[str, str]] = None,
    log_attributes: Optional[dict[str, str]] = None,
    scope_name: str = DEFAULT_SCOPE_NAME,
    scope_version: str = __version__,
    scope_attributes: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Build an OTLP/JSON ExportLogsServiceRequest holding a single log record."""
    record = LogRecord(
        time_unix_nano=str(time_unix_nano),
        observed_time_unix_nano=str(observed_time_unix_nano),
        severity_number=severity_number or None,
        severity_text=severity_text or None,
        body=AnyValue(string_value=body),
        attributes=to_key_values(log_attributes or {}),
        trace_id=trace_id or None,
        span_id=span_id or None,
        flags=flags or None,
        event_name=event_name or None,
    )
    resource_logs = ResourceLogs(
        resource=Resource(attributes=to_key_values(resource_attributes or {})),
        scope_logs=[
            ScopeLogs(
                scope=_scope(scope_name, scope_version, scope_attributes or {}),
                log_records=[record],
            )
        ],
    )
    return {"resourceLogs": [resource_logs.to_otlp()]}


class OTLPSender:
    """
    Sends OTLP/JSON payloads to an OTLP/HTTP endpoint.

    Example:
        ```python
        sender = OTLPSender("https://ingress.example.com", auth_token="...")
        sender.send_traces(build_span_payload(...))
        ```
    """

    def __init__(
        self,
        endpoint: str,
        auth_token: str = "",
        dataset: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Initialize the sender.

        Args:
            endpoint: Base OTLP/HTTP URL; ``/v1/traces`` and ``/v1/logs`` are appended
            auth_token: Bearer token sent with every request
            dataset: Optional dataset to route the telemetry to
            timeout: Request timeout in seconds

        Raises:
            ValueError: If the endpoint is not an absolute URL
        """
        parsed = urlparse(endpoint)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(
                f"Invalid OTLP endpoint URL: {endpoint!r}. "
                "Must include scheme and host (e.g., http://localhost:4318)"
            )

        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": f"obsq/{__version__}",
        }
        if auth_token:
            self.headers["Authorization"] = f"Bearer {auth_token}"
        if dataset:
            self.headers[DATASET_HEADER] = dataset

    def send(self, path: str, payload: dict[str, Any]) -> None:
        """POST ``payload`` to ``path`` below the endpoint.

        Raises:
            OTLPSendError: On connection failures and non-2xx responses
        """
        url = self.endpoint + path
        try:
            response = requests.post(url, json=payload, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise OTLPSendError(f"failed to reach {url}: {e}") from e

        if not response.ok:
            raise OTLPSendError(
                f"OTLP endpoint returned {response.status_code}: {response.text.strip()}"
            )
        logger.debug("Sent OTLP payload to %s", url)

    def send_traces(self, payload: dict[str, Any]) -> None:
        self.send(TRACES_PATH, payload)

    def send_logs(self, payload: dict[str, Any]) -> None:
        self.send(LOGS_PATH, payload)
