"""Attribute lookup and id helpers shared by the logs, spans and traces commands."""

from __future__ import annotations

import secrets
from typing import Iterable, Optional

from obsq.otlp.models import AnyValue, KeyValue

TRACE_ID_HEX_LENGTH = 32
SPAN_ID_HEX_LENGTH = 16


def find_attribute(attrs: Iterable[KeyValue], key: str) -> str:
    """Return the display string of the first attribute named ``key``.

    Returns "" if the key is not present.
    """
    for kv in attrs:
        if kv.key == key:
            return kv.value.to_display()
    return ""


def merge_attributes(*attr_lists: Optional[Iterable[KeyValue]]) -> list[KeyValue]:
    """Merge attribute lists, later lists winning on duplicate keys.

    The position of a key is fixed by its first occurrence, so resource
    attributes keep their order even when a span overrides their value.
    """
    index: dict[str, int] = {}
    merged: list[KeyValue] = []
    for attrs in attr_lists:
        if not attrs:
            continue
        for kv in attrs:
            if kv.key in index:
                merged[index[kv.key]] = kv
            else:
                index[kv.key] = len(merged)
                merged.append(kv)
    return merged


def parse_key_value_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` strings; the value may itself contain ``=``.

    Raises:
        ValueError: If an entry has no ``=`` or an empty key
    """
    result: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"invalid key=value pair {pair!r}: missing '='")
        if not key:
            raise ValueError(f"invalid key=value pair {pair!r}: empty key")
        result[key] = value
    return result


def to_key_values(attrs: dict[str, str]) -> list[KeyValue]:
    return [KeyValue(key=k, value=AnyValue.of(v)) for k, v in attrs.items()]


def _validate_hex(value: str, length: int, label: str) -> str:
    if len(value) != length:
        raise ValueError(f"{label} must be {length} hex characters, got {len(value)}")
    try:
        bytes.fromhex(value)
    except ValueError as e:
        raise ValueError(f"{label} must be valid hex: {e}") from e
    return value.lower()


def validate_trace_id(value: str) -> str:
    """Check that ``value`` is a 32-character hex trace id and return it lower-cased."""
    return _validate_hex(value, TRACE_ID_HEX_LENGTH, "trace-id")


def validate_span_id(value: str, label: str = "span-id") -> str:
    """Check that ``value`` is a 16-character hex span id and return it lower-cased."""
    return _validate_hex(value, SPAN_ID_HEX_LENGTH, label)


def generate_trace_id() -> str:
    return secrets.token_hex(TRACE_ID_HEX_LENGTH // 2)


def generate_span_id() -> str:
    return secrets.token_hex(SPAN_ID_HEX_LENGTH // 2)
