"""Parent-first ordering of the spans of a trace."""

from __future__ import annotations

from collections import defaultdict
from typing import Sequence

from obsq.tracing.flatten import FlatSpan


def build_tree(spans: Sequence[FlatSpan]) -> list[FlatSpan]:
    """Order spans depth-first from their roots.

    A span is a root when it has no parent id or when its parent is not part
    of ``spans`` (e.g. it fell outside the queried time range). Roots are
    walked in input order and children are visited in input order. Every
    span is emitted exactly once: spans unreachable from any root, which only
    happens with cyclic parent references, are appended in input order.

    Args:
        spans: Spans of one trace, in the order they were fetched

    Returns:
        A permutation of ``spans``
    """
    if not spans:
        return []

    span_ids = {span.span_id for span in spans}
    children: dict[str, list[int]] = defaultdict(list)
    roots: list[int] = []
    for i, span in enumerate(spans):
        if span.parent_id and span.parent_id in span_ids:
            children[span.parent_id].append(i)
        else:
            roots.append(i)

    ordered: list[FlatSpan] = []
    visited_ids: set[str] = set()
    visited: set[int] = set()

    for root in roots:
        stack = [root]
        while stack:
            i = stack.pop()
            span = spans[i]
            if i in visited or span.span_id in visited_ids:
                continue
            visited.add(i)
            visited_ids.add(span.span_id)
            ordered.append(span)
            # Reversed so the first child is popped first
            stack.extend(reversed(children.get(span.span_id, ())))

    ordered.extend(span for i, span in enumerate(spans) if i not in visited)
    return ordered
