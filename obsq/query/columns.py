"""
Column definitions and ``--column`` resolution for table and CSV output.

Each record kind has an ordered catalog of known columns. A user-supplied
column spec resolves, in order, to:

1. a catalog entry whose alias matches case-insensitively; the header is the
   upper-cased text the user typed (``time`` shows as ``TIME``),
2. a catalog entry whose canonical key matches exactly; the header is the key,
3. an arbitrary attribute column looked up in the record's merged attributes.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from obsq.otlp.attributes import find_attribute
from obsq.otlp.models import KeyValue

# Max width of columns created for arbitrary attribute keys
ATTRIBUTE_COLUMN_WIDTH = 30

ColorFn = Callable[[str, int], str]


@dataclass(frozen=True)
class ColumnDef:
    """A single output column.

    Attributes:
        key: Canonical attribute key, e.g. ``otel.log.time``
        aliases: Short names accepted by ``--column``, matched case-insensitively
        header: Table header text
        max_width: Upper bound of the table column width; 0 means unbounded
            and is reserved for the last column
        color_fn: Optional ``(value, width) -> str`` formatter that pads and styles
    """

    key: str
    aliases: tuple[str, ...] = ()
    header: str = ""
    max_width: int = 0
    color_fn: Optional[ColorFn] = None


def parse_columns(specs: Optional[Iterable[str]]) -> list[str]:
    """Trim ``--column`` values, dropping blank ones."""
    return [spec.strip() for spec in specs or () if spec.strip()]


def find_column_def(spec: str, catalog: Sequence[ColumnDef]) -> tuple[Optional[ColumnDef], bool]:
    """Find the catalog entry for ``spec``.

    Returns the matching definition (or None) and whether it matched by alias.
    """
    lowered = spec.lower()
    for col in catalog:
        for alias in col.aliases:
            if alias.lower() == lowered:
                return col, True
    for col in catalog:
        if col.key == spec:
            return col, False
    return None, False


def width_for_header(header: str, width: int) -> int:
    """Widen ``width`` so the header is never clipped; 0 stays unbounded."""
    if width > 0 and len(header) > width:
        return len(header)
    return width


def resolve_columns(specs: Iterable[str], catalog: Sequence[ColumnDef]) -> list[ColumnDef]:
    """Resolve column specs against a catalog, preserving the requested order."""
    resolved = []
    for spec in specs:
        col, by_alias = find_column_def(spec, catalog)
        if col is None:
            resolved.append(
                ColumnDef(
                    key=spec,
                    header=spec,
                    max_width=width_for_header(spec, ATTRIBUTE_COLUMN_WIDTH),
                )
            )
            continue

        header = spec.upper() if by_alias else col.key
        resolved.append(
            dataclasses.replace(col, header=header, max_width=width_for_header(header, col.max_width))
        )
    return resolved


def resolve_for_kind(
    columns: Optional[Iterable[str]],
    default_columns: Sequence[ColumnDef],
    known_columns: Sequence[ColumnDef],
) -> list[ColumnDef]:
    """Resolve ``--column`` values for one record kind.

    Without any column specs the default columns are returned unmodified.
    """
    specs = parse_columns(columns)
    if not specs:
        return list(default_columns)
    return resolve_columns(specs, known_columns)


def validate_column_format(columns: Optional[Sequence[str]], output_format: str) -> None:
    """Reject ``--column`` for JSON output, which always carries full records."""
    if columns and output_format.lower() == "json":
        raise ValueError(
            "--column is not supported with JSON output; use jq to reshape JSON output"
        )


def build_values(
    predefined: dict[str, str],
    cols: Iterable[ColumnDef],
    raw_attrs: Iterable[KeyValue],
) -> dict[str, str]:
    """Build the value mapping for one record.

    Starts from the structural fields in ``predefined`` and looks up every
    other column key in the record's merged attributes. Missing attributes
    yield "".
    """
    attrs = list(raw_attrs)
    values = dict(predefined)
    for col in cols:
        if col.key not in values:
            values[col.key] = find_attribute(attrs, col.key)
    return values
