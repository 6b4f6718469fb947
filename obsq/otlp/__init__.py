"""OTLP/JSON models and helpers."""

from obsq.otlp.attributes import find_attribute, merge_attributes
from obsq.otlp.models import (
    AnyValue,
    KeyValue,
    LogRecord,
    ResourceLogs,
    ResourceSpans,
    Span,
    SpanLink,
)

__all__ = [
    "AnyValue",
    "KeyValue",
    "LogRecord",
    "ResourceLogs",
    "ResourceSpans",
    "Span",
    "SpanLink",
    "find_attribute",
    "merge_attributes",
]
