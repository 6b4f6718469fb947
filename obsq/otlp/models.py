"""
Pydantic models for OTLP/JSON records returned by the query API.

Only the fields the CLI reads are modeled; unknown fields are ignored so
that newer server payloads keep parsing. Field names follow the OTLP/JSON
camelCase wire names through aliases, and ``model_dump(by_alias=True)``
reproduces them for JSON output.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class OTLPModel(BaseModel):
    """Base model with the shared OTLP/JSON configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_otlp(self) -> dict:
        """Serialize back to OTLP/JSON field names, dropping unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AnyValue(OTLPModel):
    """
    Tagged scalar value as carried by OTLP attributes and log bodies.

    At most one of the variant fields is set. Use ``to_display()`` to get the
    text form; callers never inspect the variants directly.
    """

    string_value: Optional[str] = Field(None, alias="stringValue")
    # OTLP/JSON encodes int64 as a string, but accept plain integers too
    int_value: Optional[Union[str, int]] = Field(None, alias="intValue")
    double_value: Optional[float] = Field(None, alias="doubleValue")
    bool_value: Optional[bool] = Field(None, alias="boolValue")
    bytes_value: Optional[str] = Field(None, alias="bytesValue")
    array_value: Optional[dict] = Field(None, alias="arrayValue")
    kvlist_value: Optional[dict] = Field(None, alias="kvlistValue")

    @classmethod
    def of(cls, value: Union[str, int, float, bool]) -> AnyValue:
        """Wrap a Python scalar in the matching variant."""
        if isinstance(value, bool):
            return cls(bool_value=value)
        if isinstance(value, int):
            return cls(int_value=str(value))
        if isinstance(value, float):
            return cls(double_value=value)
        return cls(string_value=str(value))

    def to_display(self) -> str:
        """Project the value to its display string ("" for non-scalars)."""
        if self.string_value is not None:
            return self.string_value
        if self.int_value is not None:
            return str(self.int_value)
        if self.double_value is not None:
            return format_double(self.double_value)
        if self.bool_value is not None:
            return "true" if self.bool_value else "false"
        return ""


def format_double(value: float) -> str:
    """Format a float without exponent and without a trailing ``.0``."""
    if value != value or value in (float("inf"), float("-inf")):
        return json.dumps(value)
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


class KeyValue(OTLPModel):
    """A single attribute entry."""

    key: str
    value: AnyValue = Field(default_factory=AnyValue)


class InstrumentationScope(OTLPModel):
    name: Optional[str] = None
    version: Optional[str] = None
    attributes: list[KeyValue] = Field(default_factory=list)


class Resource(OTLPModel):
    attributes: list[KeyValue] = Field(default_factory=list)


class Status(OTLPModel):
    code: int = 0
    message: Optional[str] = None


class SpanLink(OTLPModel):
    """A reference from a span to another span, possibly in another trace."""

    trace_id: str = Field("", alias="traceId")
    span_id: str = Field("", alias="spanId")
    trace_state: Optional[str] = Field(None, alias="traceState")
    attributes: list[KeyValue] = Field(default_factory=list)


class Span(OTLPModel):
    trace_id: str = Field("", alias="traceId")
    span_id: str = Field("", alias="spanId")
    parent_span_id: Optional[str] = Field(None, alias="parentSpanId")
    trace_state: Optional[str] = Field(None, alias="traceState")
    flags: Optional[int] = None
    name: str = ""
    kind: int = 0
    start_time_unix_nano: str = Field("", alias="startTimeUnixNano")
    end_time_unix_nano: str = Field("", alias="endTimeUnixNano")
    attributes: list[KeyValue] = Field(default_factory=list)
    status: Status = Field(default_factory=Status)
    links: list[SpanLink] = Field(default_factory=list)
    # Inbound references populated by the server; never sent by clients
    forward_links: Optional[list[SpanLink]] = Field(
        None,
        validation_alias=AliasChoices("forwardLinks", "dash0ForwardLinks"),
        serialization_alias="forwardLinks",
    )


class ScopeSpans(OTLPModel):
    scope: Optional[InstrumentationScope] = None
    spans: list[Span] = Field(default_factory=list)


class ResourceSpans(OTLPModel):
    resource: Resource = Field(default_factory=Resource)
    scope_spans: list[ScopeSpans] = Field(default_factory=list, alias="scopeSpans")

    def span_count(self) -> int:
        return sum(len(ss.spans) for ss in self.scope_spans)


class LogRecord(OTLPModel):
    time_unix_nano: str = Field("", alias="timeUnixNano")
    observed_time_unix_nano: Optional[str] = Field(None, alias="observedTimeUnixNano")
    severity_number: Optional[int] = Field(None, alias="severityNumber")
    severity_text: Optional[str] = Field(None, alias="severityText")
    body: Optional[AnyValue] = None
    attributes: list[KeyValue] = Field(default_factory=list)
    trace_id: Optional[str] = Field(None, alias="traceId")
    span_id: Optional[str] = Field(None, alias="spanId")
    flags: Optional[int] = None
    event_name: Optional[str] = Field(None, alias="eventName")


class ScopeLogs(OTLPModel):
    scope: Optional[InstrumentationScope] = None
    log_records: list[LogRecord] = Field(default_factory=list, alias="logRecords")


class ResourceLogs(OTLPModel):
    resource: Resource = Field(default_factory=Resource)
    scope_logs: list[ScopeLogs] = Field(default_factory=list, alias="scopeLogs")

    def record_count(self) -> int:
        return sum(len(sl.log_records) for sl in self.scope_logs)
