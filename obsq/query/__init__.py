"""Filter parsing, column resolution and table rendering shared by all query commands."""

from obsq.query.columns import ColumnDef, build_values, resolve_columns, resolve_for_kind
from obsq.query.filter import (
    AttributeFilter,
    FilterOperator,
    FilterParseError,
    parse_filter,
    parse_filters,
)
from obsq.query.table import compute_effective_widths, render_table, truncate, write_csv

__all__ = [
    "AttributeFilter",
    "ColumnDef",
    "FilterOperator",
    "FilterParseError",
    "build_values",
    "compute_effective_widths",
    "parse_filter",
    "parse_filters",
    "render_table",
    "resolve_columns",
    "resolve_for_kind",
    "truncate",
    "write_csv",
]
