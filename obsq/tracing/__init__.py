"""Span flattening, trace tree ordering and span-link following."""

from obsq.tracing.flatten import FlatSpan, flatten_spans
from obsq.tracing.links import (
    MAX_FOLLOWED_TRACES,
    LinkedTraceFetchError,
    TraceGroup,
    extract_linked_trace_ids,
    follow_span_links,
)
from obsq.tracing.tree import build_tree

__all__ = [
    "MAX_FOLLOWED_TRACES",
    "FlatSpan",
    "LinkedTraceFetchError",
    "TraceGroup",
    "build_tree",
    "extract_linked_trace_ids",
    "flatten_spans",
    "follow_span_links",
]
