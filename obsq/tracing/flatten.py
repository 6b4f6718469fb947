"""Flat, display-ready projection of OTLP spans."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from obsq.otlp.attributes import merge_attributes
from obsq.otlp.models import KeyValue, ResourceSpans
from obsq.query import catalog
from obsq.query.timestamp import format_timestamp
from obsq.tracing.helpers import (
    format_duration,
    format_span_links,
    span_kind_string,
    span_status_string,
)


@dataclass
class FlatSpan:
    """One span with its structural fields already rendered as text.

    ``raw_attrs`` holds resource, scope and span attributes merged in that
    order, span attributes winning on key collisions.
    """

    timestamp: str = ""
    duration: str = ""
    trace_id: str = ""
    span_id: str = ""
    parent_id: str = ""
    name: str = ""
    kind: str = ""
    status_code: str = ""
    status_message: str = ""
    scope_name: str = ""
    scope_version: str = ""
    trace_state: str = ""
    flags: str = ""
    span_links: str = ""
    raw_attrs: list[KeyValue] = field(default_factory=list)

    def values(self, trace_id: Optional[str] = None) -> dict[str, str]:
        """Return the predefined column values keyed by canonical column key.

        ``trace_id`` overrides the span's own trace id, for rows rendered in
        the context of a fetched trace.
        """
        return {
            catalog.SPAN_START_TIME: self.timestamp,
            catalog.SPAN_DURATION: self.duration,
            catalog.TRACE_ID: trace_id if trace_id is not None else self.trace_id,
            catalog.SPAN_ID: self.span_id,
            catalog.PARENT_ID: self.parent_id,
            catalog.SPAN_NAME: self.name,
            catalog.SPAN_KIND: self.kind,
            catalog.SPAN_STATUS_CODE: self.status_code,
            catalog.SPAN_STATUS_MESSAGE: self.status_message,
            catalog.SCOPE_NAME: self.scope_name,
            catalog.SCOPE_VERSION: self.scope_version,
            catalog.TRACE_STATE: self.trace_state,
            catalog.FLAGS: self.flags,
            catalog.SPAN_LINKS: self.span_links,
        }


def iter_flat_spans(resource_spans: ResourceSpans) -> Iterator[FlatSpan]:
    """Yield one FlatSpan per span in a ResourceSpans batch."""
    resource_attrs = resource_spans.resource.attributes
    for scope_spans in resource_spans.scope_spans:
        scope = scope_spans.scope
        scope_attrs = scope.attributes if scope else []
        scope_name = (scope.name or "") if scope else ""
        scope_version = (scope.version or "") if scope else ""
        for span in scope_spans.spans:
            yield FlatSpan(
                timestamp=format_timestamp(span.start_time_unix_nano),
                duration=format_duration(span.start_time_unix_nano, span.end_time_unix_nano),
                trace_id=span.trace_id,
                span_id=span.span_id,
                parent_id=span.parent_span_id or "",
                name=span.name,
                kind=span_kind_string(span.kind),
                status_code=span_status_string(span.status.code),
                status_message=span.status.message or "",
                scope_name=scope_name,
                scope_version=scope_version,
                trace_state=span.trace_state or "",
                flags=str(span.flags) if span.flags is not None else "",
                span_links=format_span_links(span.links),
                raw_attrs=merge_attributes(resource_attrs, scope_attrs, span.attributes),
            )


def flatten_spans(resource_spans: Iterable[ResourceSpans]) -> list[FlatSpan]:
    return [flat for rs in resource_spans for flat in iter_flat_spans(rs)]
