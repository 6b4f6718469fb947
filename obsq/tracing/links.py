"""
Following span links across traces.

Starting from a fetched trace, linked trace ids are discovered from every
span's outgoing links and the server-populated forward links, then fetched
breadth-first so that directly linked traces come before transitively
linked ones. Each trace is fetched at most once and the total number of
traces is capped.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from obsq.otlp.models import ResourceSpans

logger = logging.getLogger(__name__)

# Upper bound on traces returned, including the root trace
MAX_FOLLOWED_TRACES = 20

FetchTrace = Callable[[str, Any], list[ResourceSpans]]


class LinkedTraceFetchError(RuntimeError):
    """Raised when fetching a linked trace fails."""

    def __init__(self, trace_id: str, cause: BaseException) -> None:
        super().__init__(f"failed to fetch linked trace {trace_id}: {cause}")
        self.trace_id = trace_id


@dataclass
class TraceGroup:
    """The spans fetched for one trace id."""

    trace_id: str
    resource_spans: list[ResourceSpans] = field(default_factory=list)


def extract_linked_trace_ids(resource_spans: Iterable[ResourceSpans], seen: set[str]) -> list[str]:
    """Return trace ids referenced by span links that are not yet in ``seen``.

    Ids are returned in encounter order and added to ``seen`` as they are
    found, so an id referenced by several spans is returned once.
    """
    new_ids = []
    for rs in resource_spans:
        for scope_spans in rs.scope_spans:
            for span in scope_spans.spans:
                for link in [*span.links, *(span.forward_links or ())]:
                    trace_id = link.trace_id
                    if trace_id and trace_id not in seen:
                        seen.add(trace_id)
                        new_ids.append(trace_id)
    return new_ids


def follow_span_links(
    root_trace_id: str,
    root_spans: list[ResourceSpans],
    fetch: FetchTrace,
    time_range: Any,
    max_traces: int = MAX_FOLLOWED_TRACES,
    seen: Optional[set[str]] = None,
) -> list[TraceGroup]:
    """Fetch the traces linked from ``root_spans``, breadth-first.

    Args:
        root_trace_id: Id of the already fetched trace
        root_spans: Spans of the root trace
        fetch: Called as ``fetch(trace_id, time_range)`` for each linked trace
        time_range: Passed through to ``fetch``
        max_traces: Maximum number of groups returned, root included
        seen: Trace ids to treat as already fetched

    Returns:
        The root group followed by one group per linked trace, in fetch order

    Raises:
        LinkedTraceFetchError: If fetching a linked trace fails
    """
    seen = set(seen or ())
    seen.add(root_trace_id)
    groups = [TraceGroup(root_trace_id, root_spans)]
    queue = deque(extract_linked_trace_ids(root_spans, seen))

    while queue and len(groups) < max_traces:
        trace_id = queue.popleft()
        logger.debug("Following span link to trace %s", trace_id)
        try:
            linked = fetch(trace_id, time_range)
        except Exception as e:
            raise LinkedTraceFetchError(trace_id, e) from e
        groups.append(TraceGroup(trace_id, linked))
        queue.extend(extract_linked_trace_ids(linked, seen))

    if queue:
        logger.debug(
            "Stopped following span links after %d traces; %d not fetched",
            len(groups),
            len(queue),
        )
    return groups
