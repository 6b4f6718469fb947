"""
Parser for ``--filter`` expressions.

A filter expression has the form ``key [operator] value``::

    service.name is checkout
    otel.span.status.code = ERROR
    'http route' starts_with /api
    otel.log.severity.range is_one_of ERROR WARN 'MY LEVEL'
    deployment.environment is_set

Keys may be single-quoted to include spaces. When the token after the key is
not a known operator, the operator defaults to ``is`` and everything after
the key is the value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional


class FilterParseError(ValueError):
    """Raised when a filter expression cannot be parsed.

    ``expression`` holds the literal text the user passed and ``reason`` the
    bare parse failure.
    """

    def __init__(self, reason: str, expression: Optional[str] = None) -> None:
        self.reason = reason
        self.expression = expression
        if expression is None:
            super().__init__(reason)
        else:
            super().__init__(f"invalid filter {expression!r}: {reason}")


class FilterOperator(Enum):
    """Attribute filter operators understood by the query API."""

    IS = "is"
    IS_NOT = "is_not"
    CONTAINS = "contains"
    DOES_NOT_CONTAIN = "does_not_contain"
    STARTS_WITH = "starts_with"
    DOES_NOT_START_WITH = "does_not_start_with"
    ENDS_WITH = "ends_with"
    DOES_NOT_END_WITH = "does_not_end_with"
    MATCHES = "matches"
    DOES_NOT_MATCH = "does_not_match"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IS_SET = "is_set"
    IS_NOT_SET = "is_not_set"
    IS_ONE_OF = "is_one_of"
    IS_NOT_ONE_OF = "is_not_one_of"
    IS_ANY = "is_any"


# Canonical names plus symbolic aliases
KNOWN_OPERATORS: dict[str, FilterOperator] = {
    **{op.value: op for op in FilterOperator},
    "=": FilterOperator.IS,
    "!=": FilterOperator.IS_NOT,
    ">": FilterOperator.GT,
    ">=": FilterOperator.GTE,
    "<": FilterOperator.LT,
    "<=": FilterOperator.LTE,
    "~": FilterOperator.MATCHES,
    "!~": FilterOperator.DOES_NOT_MATCH,
}

NO_VALUE_OPERATORS = frozenset({FilterOperator.IS_SET, FilterOperator.IS_NOT_SET})

# Space-separated values; single-quoted values may contain spaces
MULTI_VALUE_OPERATORS = frozenset({FilterOperator.IS_ONE_OF, FilterOperator.IS_NOT_ONE_OF})

_EMPTY_VALUES = ('""', "''")


@dataclass(frozen=True)
class AttributeFilter:
    """A single attribute filter sent with a query request."""

    key: str
    operator: FilterOperator
    value: Optional[str] = None
    values: Optional[tuple[str, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the request body shape for this filter."""
        result: dict[str, Any] = {"key": self.key, "operator": self.operator.value}
        if self.value is not None:
            result["value"] = {"stringValue": self.value}
        if self.values is not None:
            result["values"] = [{"stringValue": v} for v in self.values]
        return result


def parse_filters(expressions: Optional[Iterable[str]]) -> Optional[list[AttributeFilter]]:
    """Parse a list of filter expressions.

    Returns None when no expressions are given, so that no filter is sent.

    Raises:
        FilterParseError: For the first malformed expression, quoting it
    """
    if not expressions:
        return None

    return [parse_filter(expression) for expression in expressions]


def parse_filter(expression: str) -> AttributeFilter:
    """Parse a single filter expression.

    Raises:
        FilterParseError: If the expression is malformed
    """
    try:
        return _parse(expression.strip())
    except FilterParseError as e:
        raise FilterParseError(e.reason, expression) from None


def _parse(expression: str) -> AttributeFilter:
    if not expression:
        raise FilterParseError("empty filter expression")

    key, rest = _parse_key(expression)
    if not rest:
        raise FilterParseError(
            "filter requires at least a key and value (or a key and operator like is_set)"
        )
    return _parse_operator_and_value(key, rest)


def _parse_key(expression: str) -> tuple[str, str]:
    if expression[0] == "'":
        end = expression.find("'", 1)
        if end == -1:
            raise FilterParseError("unclosed single quote in key")
        key = expression[1:end]
        rest = expression[end + 1 :].strip()
    else:
        key, _, rest = expression.partition(" ")
        rest = rest.strip()
    if not key:
        raise FilterParseError("empty filter key")
    return key, rest


def _parse_operator_and_value(key: str, rest: str) -> AttributeFilter:
    token, _, value = rest.partition(" ")
    value = value.strip()

    op = KNOWN_OPERATORS.get(token)
    if op is None:
        return _build_filter(key, FilterOperator.IS, rest)

    if op in NO_VALUE_OPERATORS:
        if value:
            raise FilterParseError(f"operator {token!r} does not accept a value")
        return AttributeFilter(key=key, operator=op)

    if not value:
        raise FilterParseError(f"operator {token!r} requires a value")

    # `= ""` means the attribute is absent, `!= ""` that it is present
    if value in _EMPTY_VALUES:
        if op is FilterOperator.IS:
            return AttributeFilter(key=key, operator=FilterOperator.IS_NOT_SET)
        if op is FilterOperator.IS_NOT:
            return AttributeFilter(key=key, operator=FilterOperator.IS_SET)

    return _build_filter(key, op, value)


def _build_filter(key: str, op: FilterOperator, value: str) -> AttributeFilter:
    if op in MULTI_VALUE_OPERATORS:
        return AttributeFilter(key=key, operator=op, values=tuple(split_quoted_tokens(value)))
    return AttributeFilter(key=key, operator=op, value=value)


def split_quoted_tokens(text: str) -> list[str]:
    """Split on spaces, keeping single-quoted segments together.

    ``"ERROR 'my value' WARN"`` becomes ``["ERROR", "my value", "WARN"]``.
    """
    tokens = []
    text = text.strip()
    while text:
        if text[0] == "'":
            end = text.find("'", 1)
            if end == -1:
                raise FilterParseError("unclosed single quote in value")
            token = text[1:end]
            text = text[end + 1 :].strip()
        else:
            token, _, text = text.partition(" ")
            text = text.strip()
        if token:
            tokens.append(token)
    return tokens
