"""
Color formatters for table cells.

Formatters take the cell value, the width to pad to (0 means no padding) and
an explicit ``color`` flag. Padding is applied before styling so that ANSI
escape codes never count towards the column width.
"""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO

from rich.color import ColorSystem
from rich.style import Style

STYLE_ERROR = Style(color="red")
STYLE_WARN = Style(color="yellow")
STYLE_INFO = Style(color="bright_cyan")
STYLE_UNKNOWN = Style(color="bright_black")

SEVERITY_STYLES = {
    "ERROR": STYLE_ERROR,
    "FATAL": STYLE_ERROR,
    "WARN": STYLE_WARN,
    "INFO": STYLE_INFO,
    "UNKNOWN": STYLE_UNKNOWN,
}


def color_enabled(no_color: bool = False, stream: Optional[TextIO] = None) -> bool:
    """Decide whether table output should be colorized.

    Honors an explicit ``--no-color``, the ``NO_COLOR`` convention and
    whether the output stream is a terminal.
    """
    if no_color or os.environ.get("NO_COLOR"):
        return False
    stream = stream if stream is not None else sys.stdout
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _pad(value: str, width: int) -> str:
    return f"{value:<{width}}" if width > 0 else value


def _styled(text: str, style: Style) -> str:
    return style.render(text, color_system=ColorSystem.STANDARD)


def sprint_span_status(status: str, width: int, color: bool) -> str:
    """Pad a span status code, rendering ERROR in red when color is on."""
    padded = _pad(status, width)
    if color and status == "ERROR":
        return _styled(padded, STYLE_ERROR)
    return padded


def sprint_severity(severity: str, width: int, color: bool) -> str:
    """Pad a log severity range, colored by its level when color is on.

    DEBUG, TRACE and custom severities are never colored.
    """
    padded = _pad(severity, width)
    style = SEVERITY_STYLES.get(severity)
    if color and style is not None:
        return _styled(padded, style)
    return padded
