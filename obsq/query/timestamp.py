"""Timestamp normalization for query time ranges and display."""

from __future__ import annotations

from datetime import datetime, timezone

# Accepted absolute formats, tried in order
_TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)


def _format_millis(dt: datetime) -> str:
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def normalize_timestamp(value: str) -> str:
    """Normalize an absolute timestamp to RFC 3339 UTC with millisecond precision.

    Relative expressions such as ``now`` or ``now-1h`` are returned unchanged,
    as is anything that cannot be parsed; the API reports those.
    """
    if value.startswith("now"):
        return value

    for fmt in _TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return _format_millis(parsed)

    return value


def format_timestamp(nanos: str) -> str:
    """Format a nanosecond Unix timestamp string for display.

    Unparseable input is returned unchanged.
    """
    try:
        value = int(nanos)
    except (TypeError, ValueError):
        return nanos
    seconds, remainder = divmod(value, 1_000_000_000)
    try:
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return nanos
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{remainder // 1_000_000:03d}Z"
