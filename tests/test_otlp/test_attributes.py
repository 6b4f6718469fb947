"""Tests for attribute and id helpers."""

from __future__ import annotations

import re

import pytest

from obsq.otlp.attributes import (
    find_attribute,
    generate_span_id,
    generate_trace_id,
    merge_attributes,
    parse_key_value_pairs,
    to_key_values,
    validate_span_id,
    validate_trace_id,
)
from obsq.otlp.models import AnyValue, KeyValue


def kv(key, value):
    return KeyValue(key=key, value=AnyValue(string_value=value))


class TestMergeAttributes:
    """Tests for merge_attributes."""

    def test_later_lists_win(self):
        """Test that span attributes override resource attributes."""
        merged = merge_attributes(
            [kv("service.name", "a"), kv("env", "prod")],
            [kv("env", "scope")],
            [kv("env", "span"), kv("http.method", "GET")],
        )
        assert [(m.key, m.value.string_value) for m in merged] == [
            ("service.name", "a"),
            ("env", "span"),
            ("http.method", "GET"),
        ]

    def test_none_and_empty_lists(self):
        """Test that missing lists are skipped."""
        assert merge_attributes(None, [], [kv("a", "1")]) == [kv("a", "1")]
        assert merge_attributes() == []


class TestFindAttribute:
    """Tests for find_attribute."""

    def test_found_and_missing(self):
        """Test lookups by key."""
        attrs = [kv("a", "1"), KeyValue(key="n", value=AnyValue(int_value="5"))]
        assert find_attribute(attrs, "a") == "1"
        assert find_attribute(attrs, "n") == "5"
        assert find_attribute(attrs, "missing") == ""


class TestParseKeyValuePairs:
    """Tests for parse_key_value_pairs."""

    def test_pairs(self):
        """Test that values may contain '='."""
        assert parse_key_value_pairs(["a=1", "b=x=y", "c="]) == {"a": "1", "b": "x=y", "c": ""}

    def test_missing_equals(self):
        """Test a pair without '='."""
        with pytest.raises(ValueError, match="missing '='"):
            parse_key_value_pairs(["novalue"])

    def test_empty_key(self):
        """Test a pair with an empty key."""
        with pytest.raises(ValueError, match="empty key"):
            parse_key_value_pairs(["=value"])

    def test_to_key_values(self):
        """Test conversion to string-valued KeyValues."""
        assert to_key_values({"a": "1"}) == [kv("a", "1")]


class TestIds:
    """Tests for id validation and generation."""

    def test_valid_ids_lowercased(self):
        """Test that valid ids are returned lower-cased."""
        assert validate_trace_id("0AF7651916CD43DD8448EB211C80319C") == "0af7651916cd43dd8448eb211c80319c"
        assert validate_span_id("B7AD6B7169203331") == "b7ad6b7169203331"

    def test_wrong_length(self):
        """Test length errors."""
        with pytest.raises(ValueError, match="trace-id must be 32 hex characters, got 3"):
            validate_trace_id("abc")
        with pytest.raises(ValueError, match="parent-span-id must be 16 hex characters"):
            validate_span_id("abc", label="parent-span-id")

    def test_not_hex(self):
        """Test non-hex characters."""
        with pytest.raises(ValueError, match="trace-id must be valid hex"):
            validate_trace_id("z" * 32)

    def test_generated_ids(self):
        """Test the shape of generated ids."""
        assert re.fullmatch(r"[0-9a-f]{32}", generate_trace_id())
        assert re.fullmatch(r"[0-9a-f]{16}", generate_span_id())
        assert generate_trace_id() != generate_trace_id()
