"""Span field formatting: kinds, status codes, durations and links."""

from __future__ import annotations

import re
from typing import Iterable

from obsq.otlp.models import SpanLink

SPAN_KINDS = {
    0: "UNSPECIFIED",
    1: "INTERNAL",
    2: "SERVER",
    3: "CLIENT",
    4: "PRODUCER",
    5: "CONSUMER",
}

STATUS_CODES = {
    0: "UNSET",
    1: "OK",
    2: "ERROR",
}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def span_kind_string(kind: int) -> str:
    return SPAN_KINDS.get(kind, f"SPAN_KIND_{kind}")


def parse_span_kind(value: str) -> int:
    """Parse a span kind name (case-insensitive).

    UNSPECIFIED is rejected because it is not valid for spans created by hand.
    """
    upper = value.upper()
    for number, name in SPAN_KINDS.items():
        if name == upper and number != 0:
            return number
    raise ValueError(
        f"unknown span kind {value!r} (valid values: INTERNAL, SERVER, CLIENT, PRODUCER, CONSUMER)"
    )


def span_status_string(code: int) -> str:
    return STATUS_CODES.get(code, f"STATUS_{code}")


def parse_span_status_code(value: str) -> int:
    upper = value.upper()
    for number, name in STATUS_CODES.items():
        if name == upper:
            return number
    raise ValueError(f"unknown status code {value!r} (valid values: UNSET, OK, ERROR)")


def format_duration(start_nanos: str, end_nanos: str) -> str:
    """Format the time between two nanosecond timestamps; "?" if either is invalid."""
    try:
        start = int(start_nanos)
        end = int(end_nanos)
    except (TypeError, ValueError):
        return "?"
    return format_time_duration((end - start) / 1e9)


def format_time_duration(seconds: float) -> str:
    """Format a duration in seconds, e.g. ``12.5us``, ``3ms``, ``1.25s``, ``2m 3.0s``."""
    if seconds <= 0:
        return "0ms"
    if seconds < 1e-3:
        return f"{seconds * 1e6:.1f}us"
    if seconds < 1:
        ms = seconds * 1e3
        # Round away float noise before deciding whether to show decimals
        ms = round(ms, 6)
        if ms == int(ms):
            return f"{int(ms)}ms"
        return f"{ms:.1f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - minutes * 60:.1f}s"


def parse_duration(value: str) -> float:
    """Parse a duration such as ``100ms``, ``1.5s``, ``2m`` or ``1h30m`` into seconds.

    Raises:
        ValueError: If the duration is malformed or negative
    """
    text = value.strip()
    if text.startswith("-"):
        raise ValueError(f"duration must be positive, got {value!r}")
    text = text.lstrip("+")
    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(
                f'invalid duration {value!r} (examples: "100ms", "1.5s", "2m")'
            )
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if not text:
        raise ValueError(f'invalid duration {value!r} (examples: "100ms", "1.5s", "2m")')
    return total


def format_span_links(links: Iterable[SpanLink]) -> str:
    """Format outgoing links as ``traceId:spanId`` pairs separated by ``;``.

    Forward links (incoming references from other spans) are not included.
    """
    return ";".join(f"{link.trace_id}:{link.span_id}" for link in links)
