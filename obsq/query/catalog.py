"""
Known columns for each record kind.

Catalogs are built per invocation so the color formatters are bound to an
explicit color decision instead of inspecting the terminal themselves.
"""

from __future__ import annotations

from functools import partial

from obsq.color import sprint_severity, sprint_span_status
from obsq.query.columns import ColumnDef

SPAN_START_TIME = "otel.span.start_time"
SPAN_DURATION = "otel.span.duration"
SPAN_NAME = "otel.span.name"
SPAN_KIND = "otel.span.kind"
SPAN_STATUS_CODE = "otel.span.status.code"
SPAN_STATUS_MESSAGE = "otel.span.status.message"
SPAN_LINKS = "otel.span.links"
TRACE_ID = "otel.trace.id"
SPAN_ID = "otel.span.id"
PARENT_ID = "otel.parent.id"
TRACE_STATE = "otel.trace.state"
FLAGS = "otel.flags"
SCOPE_NAME = "otel.scope.name"
SCOPE_VERSION = "otel.scope.version"
SERVICE_NAME = "service.name"

LOG_TIME = "otel.log.time"
LOG_SEVERITY_RANGE = "otel.log.severity.range"
LOG_SEVERITY_NUMBER = "otel.log.severity.number"
LOG_SEVERITY_TEXT = "otel.log.severity.text"
LOG_BODY = "otel.log.body"
EVENT_NAME = "otel.event.name"


def _trace_id_column() -> ColumnDef:
    return ColumnDef(TRACE_ID, ("trace id",), "TRACE ID", 32)


def _span_id_column() -> ColumnDef:
    return ColumnDef(SPAN_ID, ("span id",), "SPAN ID", 16)


def _flags_column() -> ColumnDef:
    return ColumnDef(FLAGS, ("flags",), "FLAGS", 10)


def log_default_columns(color: bool = False) -> tuple[ColumnDef, ...]:
    return (
        ColumnDef(LOG_TIME, ("timestamp", "time"), "TIMESTAMP", 28),
        ColumnDef(
            LOG_SEVERITY_RANGE,
            ("severity",),
            "SEVERITY",
            10,
            partial(sprint_severity, color=color),
        ),
        ColumnDef(LOG_BODY, ("body",), "BODY", 0),
    )


def log_known_columns(color: bool = False) -> tuple[ColumnDef, ...]:
    """Default log columns plus fields resolvable by alias but hidden by default."""
    return log_default_columns(color) + (_trace_id_column(), _span_id_column(), _flags_column())


def _span_columns(color: bool, name_width: int) -> dict[str, ColumnDef]:
    return {
        SPAN_START_TIME: ColumnDef(
            SPAN_START_TIME, ("timestamp", "start time", "time"), "TIMESTAMP", 28
        ),
        SPAN_DURATION: ColumnDef(SPAN_DURATION, ("duration",), "DURATION", 10),
        SPAN_NAME: ColumnDef(SPAN_NAME, ("span name", "name"), "SPAN NAME", name_width),
        SPAN_STATUS_CODE: ColumnDef(
            SPAN_STATUS_CODE,
            ("status", "status code"),
            "STATUS",
            8,
            partial(sprint_span_status, color=color),
        ),
        SERVICE_NAME: ColumnDef(SERVICE_NAME, ("service name", "service"), "SERVICE NAME", 30),
        PARENT_ID: ColumnDef(PARENT_ID, ("parent id",), "PARENT ID", 16),
        TRACE_ID: _trace_id_column(),
        SPAN_ID: _span_id_column(),
        SPAN_LINKS: ColumnDef(SPAN_LINKS, ("span links", "links"), "SPAN LINKS", 0),
    }


def span_default_columns(color: bool = False) -> tuple[ColumnDef, ...]:
    """Columns shown by ``spans query``."""
    cols = _span_columns(color, name_width=30)
    order = (
        SPAN_START_TIME,
        SPAN_DURATION,
        SPAN_NAME,
        SPAN_STATUS_CODE,
        SERVICE_NAME,
        PARENT_ID,
        TRACE_ID,
        SPAN_ID,
        SPAN_LINKS,
    )
    return tuple(cols[key] for key in order)


def span_known_columns(color: bool = False) -> tuple[ColumnDef, ...]:
    return span_default_columns(color) + (_flags_column(),)


def trace_default_columns(color: bool = False) -> tuple[ColumnDef, ...]:
    """Columns shown by ``traces get``; ids come first and span names get more room."""
    cols = _span_columns(color, name_width=42)
    order = (
        SPAN_START_TIME,
        SPAN_DURATION,
        TRACE_ID,
        SPAN_ID,
        PARENT_ID,
        SPAN_NAME,
        SPAN_STATUS_CODE,
        SERVICE_NAME,
        SPAN_LINKS,
    )
    return tuple(cols[key] for key in order)


def trace_known_columns(color: bool = False) -> tuple[ColumnDef, ...]:
    return trace_default_columns(color) + (_flags_column(),)
