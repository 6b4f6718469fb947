"""
Table and CSV rendering of resolved columns.

Table output is rendered in two passes: all rows are measured first so that
every bounded column gets the narrowest width that fits its longest
(truncated) value, then rows are written padded to that width. CSV output
skips width handling entirely and writes canonical keys and raw values.
"""

from __future__ import annotations

import csv
from typing import Iterable, Sequence, TextIO

from obsq.query.columns import ColumnDef

COLUMN_SEPARATOR = "  "
ELLIPSIS = "..."


def truncate(value: str, max_len: int) -> str:
    """Shorten ``value`` to at most ``max_len`` characters, marking the cut with "..."."""
    if len(value) <= max_len:
        return value
    if max_len <= len(ELLIPSIS):
        return value[:max_len]
    return value[: max_len - len(ELLIPSIS)] + ELLIPSIS


def compute_effective_widths(
    cols: Sequence[ColumnDef],
    rows: Sequence[dict[str, str]],
    skip_header: bool = False,
) -> list[int]:
    """Compute the rendered width of each column.

    A bounded column is as wide as its longest truncated value (and its
    header unless ``skip_header``), capped at ``max_width``. Unbounded
    columns get 0.
    """
    widths = []
    for col in cols:
        if col.max_width == 0:
            widths.append(0)
            continue
        width = 0 if skip_header else len(col.header)
        for row in rows:
            width = max(width, len(truncate(row.get(col.key, ""), col.max_width)))
        widths.append(min(width, col.max_width))
    return widths


def render_table(
    out: TextIO,
    cols: Sequence[ColumnDef],
    rows: Sequence[dict[str, str]],
    skip_header: bool = False,
) -> None:
    """Write an aligned table of ``rows`` to ``out``.

    Write errors propagate and abort the remaining rows.
    """
    if not cols:
        return
    widths = compute_effective_widths(cols, rows, skip_header)
    last = len(cols) - 1

    if not skip_header:
        parts = [
            col.header if i == last else f"{col.header:<{widths[i]}}"
            for i, col in enumerate(cols)
        ]
        out.write(COLUMN_SEPARATOR.join(parts) + "\n")

    for row in rows:
        parts = []
        for i, col in enumerate(cols):
            value = row.get(col.key, "")
            if i == last:
                if col.color_fn is not None:
                    value = col.color_fn(value, 0)
                parts.append(value)
                continue
            if col.max_width > 0:
                value = truncate(value, col.max_width)
            if col.color_fn is not None:
                value = col.color_fn(value, widths[i])
            else:
                value = f"{value:<{widths[i]}}"
            parts.append(value)
        out.write(COLUMN_SEPARATOR.join(parts) + "\n")


def csv_header(cols: Iterable[ColumnDef]) -> list[str]:
    return [col.key for col in cols]


def csv_row(cols: Iterable[ColumnDef], values: dict[str, str]) -> list[str]:
    return [values.get(col.key, "") for col in cols]


class CSVWriter:
    """Streams rows as CSV, flushing after every row."""

    def __init__(self, out: TextIO, cols: Sequence[ColumnDef]) -> None:
        self.out = out
        self.cols = cols
        self._writer = csv.writer(out, lineterminator="\n")

    def write_header(self) -> None:
        self._writer.writerow(csv_header(self.cols))
        self.out.flush()

    def write_row(self, values: dict[str, str]) -> None:
        self._writer.writerow(csv_row(self.cols, values))
        self.out.flush()


def write_csv(
    out: TextIO,
    cols: Sequence[ColumnDef],
    rows: Iterable[dict[str, str]],
    skip_header: bool = False,
) -> None:
    """Write ``rows`` as CSV with a header of canonical keys unless skipped."""
    writer = CSVWriter(out, cols)
    if not skip_header:
        writer.write_header()
    for values in rows:
        writer.write_row(values)
