"""obsq CLI - Command-line interface for querying and sending telemetry.

This module wires the query engine to the command line: log record and span
queries, trace retrieval with span-link following, sending single spans and
log records over OTLP, and configuration management.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, NoReturn, Optional, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from obsq._version import __version__
from obsq.client import (
    APIClient,
    APIError,
    build_query_request,
    handle_api_error,
    time_range,
)
from obsq.color import color_enabled
from obsq.config import DEFAULT_CONFIG, load_config, mask_token, resolve_config, save_config
from obsq.logs.records import iter_flat_records
from obsq.otlp.attributes import (
    generate_span_id,
    generate_trace_id,
    parse_key_value_pairs,
    validate_span_id,
    validate_trace_id,
)
from obsq.otlp.models import OTLPModel, ResourceLogs, ResourceSpans
from obsq.otlp.send import (
    OTLPSender,
    OTLPSendError,
    build_log_payload,
    build_span_payload,
    now_unix_nano,
    parse_rfc3339_nanos,
    parse_span_link,
    resolve_scope,
)
from obsq.query import catalog
from obsq.query.columns import ColumnDef, build_values, resolve_for_kind, validate_column_format
from obsq.query.filter import parse_filters
from obsq.query.table import CSVWriter, render_table
from obsq.query.timestamp import normalize_timestamp
from obsq.tracing.flatten import flatten_spans, iter_flat_spans
from obsq.tracing.helpers import parse_duration, parse_span_kind, parse_span_status_code
from obsq.tracing.links import LinkedTraceFetchError, TraceGroup, follow_span_links
from obsq.tracing.tree import build_tree

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="obsq",
    help="obsq - query and send logs, spans and traces",
    no_args_is_help=True,
)
logs_app = typer.Typer(help="Query and send log records.", no_args_is_help=True)
spans_app = typer.Typer(help="Query and send spans.", no_args_is_help=True)
traces_app = typer.Typer(help="Retrieve whole traces.", no_args_is_help=True)
config_app = typer.Typer(help="Show and write the configuration file.", no_args_is_help=True)

app.add_typer(logs_app, name="logs")
app.add_typer(spans_app, name="spans")
app.add_typer(traces_app, name="traces")
app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True, highlight=False, soft_wrap=True)

OUTPUT_FORMATS = ("table", "csv", "json")
JSON_MAX_LIMIT = 100
DEFAULT_FOLLOW_LOOKBACK = "1h"


class State:
    """Options given before the subcommand."""

    def __init__(self, no_color: bool = False, config_path: Optional[Path] = None) -> None:
        self.no_color = no_color
        self.config_path = config_path


def _state(ctx: typer.Context) -> State:
    obj = ctx.find_object(State)
    return obj if obj is not None else State()


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    raise typer.Exit(1)


@contextmanager
def cli_errors(asset_type: str = "", asset_id: str = "") -> Iterator[None]:
    """Turn domain errors raised inside the block into a red message and exit 1."""
    try:
        yield
    except APIError as e:
        fail(handle_api_error(e, asset_type, asset_id).message)
    except LinkedTraceFetchError as e:
        cause = e.__cause__
        if isinstance(cause, APIError):
            fail(
                f"failed to fetch linked trace {e.trace_id}: "
                f"{handle_api_error(cause, 'trace', e.trace_id).message}"
            )
        fail(str(e))
    except (ValueError, OTLPSendError) as e:
        fail(str(e))


def parse_output_format(value: Optional[str]) -> str:
    """Normalize ``-o``; an empty value means table."""
    fmt = (value or "table").lower()
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"unknown output format: {value} (valid formats: table, json, csv)")
    return fmt


def validate_skip_header(skip_header: bool, output_format: Optional[str]) -> None:
    if skip_header and (output_format or "").lower() == "json":
        raise ValueError("--skip-header is not supported with JSON output")


def validate_json_limit(output_format: str, limit: int) -> None:
    if output_format == "json" and limit > JSON_MAX_LIMIT:
        raise ValueError(
            f"json output is limited to {JSON_MAX_LIMIT} records; use --limit {JSON_MAX_LIMIT} "
            "or lower, or choose a different output format"
        )


def page_size_for(limit: int) -> int:
    """Request pages no larger than the record limit."""
    if 0 < limit < JSON_MAX_LIMIT:
        return limit
    return JSON_MAX_LIMIT


def take(records: Iterable[Any], limit: int) -> Iterator[Any]:
    """Yield at most ``limit`` records; 0 or less means all of them."""
    count = 0
    for record in records:
        yield record
        count += 1
        if 0 < limit <= count:
            return


def collect_batches(
    batches: Iterable[OTLPModel], count: Callable[[Any], int], limit: int
) -> list[OTLPModel]:
    """Collect whole batches until at least ``limit`` records are held."""
    collected = []
    total = 0
    for batch in batches:
        collected.append(batch)
        total += count(batch)
        if 0 < limit <= total:
            break
    return collected


def write_json(field: str, batches: Sequence[OTLPModel]) -> None:
    document = {field: [batch.to_otlp() for batch in batches]}
    sys.stdout.write(json.dumps(document, indent=2) + "\n")


def write_rows(
    output_format: str,
    cols: Sequence[ColumnDef],
    rows: Iterable[dict[str, str]],
    skip_header: bool,
    empty_message: str,
) -> None:
    """Render rows as a table (printing ``empty_message`` if none) or stream them as CSV."""
    out = sys.stdout
    if output_format == "csv":
        writer = CSVWriter(out, cols)
        if not skip_header:
            writer.write_header()
        for values in rows:
            writer.write_row(values)
        return

    collected = list(rows)
    if not collected:
        out.write(empty_message + "\n")
        return
    render_table(out, cols, collected, skip_header)


def make_client(
    ctx: typer.Context,
    api_url: Optional[str],
    auth_token: Optional[str],
    dataset: Optional[str],
) -> APIClient:
    config = resolve_config(
        _state(ctx).config_path, api_url=api_url, auth_token=auth_token, dataset=dataset
    )
    return APIClient(
        config["api_url"],
        auth_token=config["auth_token"],
        dataset=config["dataset"],
        timeout=config["timeout"],
    )


def make_sender(
    ctx: typer.Context,
    otlp_url: Optional[str],
    auth_token: Optional[str],
    dataset: Optional[str],
) -> OTLPSender:
    config = resolve_config(
        _state(ctx).config_path, otlp_url=otlp_url, auth_token=auth_token, dataset=dataset
    )
    if not config["otlp_url"]:
        raise ValueError(
            "no OTLP URL configured; set otlp_url in .obsq.yaml, OBSQ_OTLP_URL or --otlp-url"
        )
    return OTLPSender(
        config["otlp_url"],
        auth_token=config["auth_token"],
        dataset=config["dataset"],
        timeout=config["timeout"],
    )


def _attributes(pairs: Optional[list[str]], kind: str) -> dict[str, str]:
    try:
        return parse_key_value_pairs(pairs or ())
    except ValueError as e:
        raise ValueError(f"invalid {kind} attribute: {e}") from e


def _rfc3339(value: str, flag: str) -> int:
    try:
        return parse_rfc3339_nanos(value)
    except ValueError as e:
        raise ValueError(
            f"invalid {flag} format (expected RFC3339 with optional nanoseconds, "
            f"e.g. '2024-03-15T10:30:00.123456789Z'): {e}"
        ) from e


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and progress to stderr"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored table output"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Config file (default: .obsq.yaml or $OBSQ_CONFIG)"
    ),
) -> None:
    """obsq - query and send logs, spans and traces."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
            force=True,
        )
    ctx.obj = State(no_color=no_color, config_path=config_file)


# Shared option declarations
API_URL_OPTION = typer.Option(None, "--api-url", help="API endpoint URL (overrides config)")
OTLP_URL_OPTION = typer.Option(None, "--otlp-url", help="OTLP endpoint URL (overrides config)")
AUTH_TOKEN_OPTION = typer.Option(None, "--auth-token", help="Auth token (overrides config)")
DATASET_OPTION = typer.Option(None, "--dataset", help="Dataset name")
OUTPUT_OPTION = typer.Option(
    None, "--output", "-o", help="Output format: table, json (OTLP/JSON), csv (default: table)"
)
TO_OPTION = typer.Option("now", "--to", help="End of time range (e.g. now, 2024-01-25T11:00:00.000Z)")
FILTER_OPTION = typer.Option(
    None, "--filter", help="Filter expression as 'key [operator] value' (repeatable)"
)
SKIP_HEADER_OPTION = typer.Option(
    False, "--skip-header", help="Omit the header row from table and CSV output"
)
COLUMN_OPTION = typer.Option(
    None, "--column", help="Column to display (alias or attribute key; repeatable; table and CSV only)"
)
SCOPE_NAME_OPTION = typer.Option(
    None, "--scope-name", help="Instrumentation scope name; defaults to 'obsq'"
)
SCOPE_VERSION_OPTION = typer.Option(
    None, "--scope-version", help="Instrumentation scope version; defaults to the obsq version"
)
SCOPE_ATTRIBUTE_OPTION = typer.Option(
    None, "--scope-attribute", help="Instrumentation scope attribute as 'key=value' (repeatable)"
)
RESOURCE_ATTRIBUTE_OPTION = typer.Option(
    None, "--resource-attribute", help="Resource attribute as 'key=value' (repeatable)"
)


@logs_app.command(name="query")
def logs_query(
    ctx: typer.Context,
    from_: str = typer.Option("now-15m", "--from", help="Start of time range (e.g. now-1h)"),
    to: str = TO_OPTION,
    filters: Optional[list[str]] = FILTER_OPTION,
    limit: int = typer.Option(50, "--limit", help="Maximum number of log records to return"),
    columns: Optional[list[str]] = COLUMN_OPTION,
    skip_header: bool = SKIP_HEADER_OPTION,
    output: Optional[str] = OUTPUT_OPTION,
    dataset: Optional[str] = DATASET_OPTION,
    api_url: Optional[str] = API_URL_OPTION,
    auth_token: Optional[str] = AUTH_TOKEN_OPTION,
) -> None:
    """Query log records.

    Columns accept aliases (timestamp, severity, body, trace id, ...), any
    built-in otel.log.* key, or any attribute key.
    """
    with cli_errors(asset_type="log records"):
        validate_skip_header(skip_header, output)
        validate_column_format(columns, output or "")
        fmt = parse_output_format(output)
        color = fmt == "table" and color_enabled(_state(ctx).no_color, sys.stdout)
        cols = resolve_for_kind(
            columns, catalog.log_default_columns(color), catalog.log_known_columns(color)
        )
        validate_json_limit(fmt, limit)
        request = build_query_request(
            time_range(normalize_timestamp(from_), normalize_timestamp(to)),
            parse_filters(filters),
            page_size=page_size_for(limit),
        )

        with make_client(ctx, api_url, auth_token, dataset) as client:
            batches = client.iter_log_records(request)
            if fmt == "json":
                write_json(
                    "resourceLogs",
                    collect_batches(batches, ResourceLogs.record_count, limit),
                )
                return

            records = take(
                (record for batch in batches for record in iter_flat_records(batch)), limit
            )
            rows = (build_values(r.values(), cols, r.raw_attrs) for r in records)
            write_rows(fmt, cols, rows, skip_header, "No log records found.")


@logs_app.command(name="send")
def logs_send(
    ctx: typer.Context,
    body: str = typer.Argument(..., help="Log record body"),
    otlp_url: Optional[str] = OTLP_URL_OPTION,
    auth_token: Optional[str] = AUTH_TOKEN_OPTION,
    dataset: Optional[str] = DATASET_OPTION,
    resource_attributes: Optional[list[str]] = RESOURCE_ATTRIBUTE_OPTION,
    log_attributes: Optional[list[str]] = typer.Option(
        None, "--log-attribute", help="Log record attribute as 'key=value' (repeatable)"
    ),
    severity_number: int = typer.Option(
        0, "--severity-number", min=0, help="Severity number (1-24, OpenTelemetry log data model)"
    ),
    severity_text: Optional[str] = typer.Option(
        None, "--severity-text", help="Severity text (e.g. INFO, WARN, ERROR)"
    ),
    time_: Optional[str] = typer.Option(
        None, "--time", help="Timestamp in RFC3339 format; defaults to now"
    ),
    observed_time: Optional[str] = typer.Option(
        None, "--observed-time", help="Observed timestamp in RFC3339 format; defaults to now"
    ),
    trace_id: Optional[str] = typer.Option(None, "--trace-id", help="Trace ID (32 hex characters)"),
    span_id: Optional[str] = typer.Option(None, "--span-id", help="Span ID (16 hex characters)"),
    event_name: Optional[str] = typer.Option(None, "--event-name", help="Event name"),
    flags: int = typer.Option(0, "--flags", min=0, help="Log record flags"),
    scope_name: Optional[str] = SCOPE_NAME_OPTION,
    scope_version: Optional[str] = SCOPE_VERSION_OPTION,
    scope_attributes: Optional[list[str]] = SCOPE_ATTRIBUTE_OPTION,
) -> None:
    """Send a single log record via OTLP."""
    with cli_errors():
        resource_attrs = _attributes(resource_attributes, "resource")
        log_attrs = _attributes(log_attributes, "log")
        scope_attrs = _attributes(scope_attributes, "scope")

        now = now_unix_nano()
        timestamp = _rfc3339(time_, "time") if time_ else now
        observed = _rfc3339(observed_time, "observed-time") if observed_time else now

        if bool(trace_id) != bool(span_id):
            raise ValueError("both --trace-id and --span-id must be specified together")
        if trace_id:
            trace_id = validate_trace_id(trace_id)
        if span_id:
            span_id = validate_span_id(span_id)

        name, version = resolve_scope(scope_name, scope_version)
        payload = build_log_payload(
            body,
            time_unix_nano=timestamp,
            observed_time_unix_nano=observed,
            severity_number=severity_number,
            severity_text=severity_text,
            trace_id=trace_id,
            span_id=span_id,
            event_name=event_name,
            flags=flags,
            resource_attributes=resource_attrs,
            log_attributes=log_attrs,
            scope_name=name,
            scope_version=version,
            scope_attributes=scope_attrs,
        )
        sender = make_sender(ctx, otlp_url, auth_token, dataset)
        try:
            sender.send_logs(payload)
        except OTLPSendError as e:
            raise OTLPSendError(f"failed to send log record: {e}") from e

    console.print("[green]✓ Log record sent successfully[/green]")


@spans_app.command(name="query")
def spans_query(
    ctx: typer.Context,
    from_: str = typer.Option("now-15m", "--from", help="Start of time range (e.g. now-1h)"),
    to: str = TO_OPTION,
    filters: Optional[list[str]] = FILTER_OPTION,
    limit: int = typer.Option(50, "--limit", help="Maximum number of spans to return"),
    columns: Optional[list[str]] = COLUMN_OPTION,
    skip_header: bool = SKIP_HEADER_OPTION,
    output: Optional[str] = OUTPUT_OPTION,
    dataset: Optional[str] = DATASET_OPTION,
    api_url: Optional[str] = API_URL_OPTION,
    auth_token: Optional[str] = AUTH_TOKEN_OPTION,
) -> None:
    """Query spans.

    Columns accept aliases (timestamp, duration, name, status, service, ...),
    any built-in otel.span.* key, or any attribute key.
    """
    with cli_errors(asset_type="spans"):
        validate_skip_header(skip_header, output)
        validate_column_format(columns, output or "")
        fmt = parse_output_format(output)
        color = fmt == "table" and color_enabled(_state(ctx).no_color, sys.stdout)
        cols = resolve_for_kind(
            columns, catalog.span_default_columns(color), catalog.span_known_columns(color)
        )
        validate_json_limit(fmt, limit)
        request = build_query_request(
            time_range(normalize_timestamp(from_), normalize_timestamp(to)),
            parse_filters(filters),
            page_size=page_size_for(limit),
        )

        with make_client(ctx, api_url, auth_token, dataset) as client:
            batches = client.iter_spans(request)
            if fmt == "json":
                write_json(
                    "resourceSpans",
                    collect_batches(batches, ResourceSpans.span_count, limit),
                )
                return

            spans = take((span for batch in batches for span in iter_flat_spans(batch)), limit)
            rows = (build_values(s.values(), cols, s.raw_attrs) for s in spans)
            write_rows(fmt, cols, rows, skip_header, "No spans found.")


@spans_app.command(name="send")
def spans_send(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Span name"),
    otlp_url: Optional[str] = OTLP_URL_OPTION,
    auth_token: Optional[str] = AUTH_TOKEN_OPTION,
    dataset: Optional[str] = DATASET_OPTION,
    kind: str = typer.Option(
        "INTERNAL", "--kind", help="Span kind: INTERNAL, SERVER, CLIENT, PRODUCER, CONSUMER"
    ),
    status_code: str = typer.Option("UNSET", "--status-code", help="Status code: UNSET, OK, ERROR"),
    status_message: Optional[str] = typer.Option(
        None, "--status-message", help="Status message (typically for ERROR status)"
    ),
    start_time: Optional[str] = typer.Option(
        None, "--start-time", help="Start timestamp in RFC3339 format; defaults to now"
    ),
    end_time: Optional[str] = typer.Option(
        None, "--end-time", help="End timestamp in RFC3339 format; excludes --duration"
    ),
    duration: Optional[str] = typer.Option(
        None, "--duration", help="Span duration (e.g. '100ms', '1.5s'); excludes --end-time"
    ),
    trace_id: Optional[str] = typer.Option(
        None, "--trace-id", help="Trace ID (32 hex characters); generated if omitted"
    ),
    span_id: Optional[str] = typer.Option(
        None, "--span-id", help="Span ID (16 hex characters); generated if omitted"
    ),
    parent_span_id: Optional[str] = typer.Option(
        None, "--parent-span-id", help="Parent span ID (16 hex characters)"
    ),
    resource_attributes: Optional[list[str]] = RESOURCE_ATTRIBUTE_OPTION,
    span_attributes: Optional[list[str]] = typer.Option(
        None, "--span-attribute", help="Span attribute as 'key=value' (repeatable)"
    ),
    span_links: Optional[list[str]] = typer.Option(
        None, "--span-link", help="Span link as 'trace-id:span-id[,key=value,...]' (repeatable)"
    ),
    scope_name: Optional[str] = SCOPE_NAME_OPTION,
    scope_version: Optional[str] = SCOPE_VERSION_OPTION,
    scope_attributes: Optional[list[str]] = SCOPE_ATTRIBUTE_OPTION,
) -> None:
    """Send a single span via OTLP."""
    with cli_errors():
        if end_time and duration:
            raise ValueError("--end-time and --duration are mutually exclusive")

        span_kind = parse_span_kind(kind)
        span_status = parse_span_status_code(status_code)
        resource_attrs = _attributes(resource_attributes, "resource")
        span_attrs = _attributes(span_attributes, "span")
        scope_attrs = _attributes(scope_attributes, "scope")

        start = _rfc3339(start_time, "start-time") if start_time else now_unix_nano()
        end = start
        if end_time:
            end = _rfc3339(end_time, "end-time")
        elif duration:
            end = start + round(parse_duration(duration) * 1_000_000_000)

        trace_id = validate_trace_id(trace_id) if trace_id else generate_trace_id()
        span_id = validate_span_id(span_id) if span_id else generate_span_id()
        if parent_span_id:
            try:
                parent_span_id = validate_span_id(parent_span_id)
            except ValueError as e:
                raise ValueError(f"invalid parent-span-id: {e}") from e
        links = [parse_span_link(link) for link in span_links or ()]

        scope, version = resolve_scope(scope_name, scope_version)
        payload = build_span_payload(
            name,
            trace_id=trace_id,
            span_id=span_id,
            start_time_unix_nano=start,
            end_time_unix_nano=end,
            kind=span_kind,
            status_code=span_status,
            status_message=status_message,
            parent_span_id=parent_span_id,
            resource_attributes=resource_attrs,
            span_attributes=span_attrs,
            links=links,
            scope_name=scope,
            scope_version=version,
            scope_attributes=scope_attrs,
        )
        sender = make_sender(ctx, otlp_url, auth_token, dataset)
        try:
            sender.send_traces(payload)
        except OTLPSendError as e:
            raise OTLPSendError(f"failed to send span: {e}") from e

    console.print(
        f"[green]✓ Span sent successfully (trace-id: {trace_id}, span-id: {span_id})[/green]"
    )


def trace_rows(groups: Sequence[TraceGroup], cols: Sequence[ColumnDef]) -> Iterator[dict[str, str]]:
    """Yield the rows of each trace group in parent-first order."""
    for group in groups:
        for span in build_tree(flatten_spans(group.resource_spans)):
            yield build_values(span.values(group.trace_id), cols, span.raw_attrs)


@traces_app.command(name="get")
def traces_get(
    ctx: typer.Context,
    trace_id: str = typer.Argument(..., help="Trace ID (32 hex characters)"),
    from_: str = typer.Option("now-1h", "--from", help="Start of time range (e.g. now-1h)"),
    to: str = TO_OPTION,
    follow_links: bool = typer.Option(
        False, "--follow-span-links", help="Also fetch traces related through span links"
    ),
    lookback: str = typer.Option(
        DEFAULT_FOLLOW_LOOKBACK,
        "--lookback",
        help="Time range searched for linked traces, counted back from now",
    ),
    columns: Optional[list[str]] = COLUMN_OPTION,
    skip_header: bool = SKIP_HEADER_OPTION,
    output: Optional[str] = OUTPUT_OPTION,
    dataset: Optional[str] = DATASET_OPTION,
    api_url: Optional[str] = API_URL_OPTION,
    auth_token: Optional[str] = AUTH_TOKEN_OPTION,
) -> None:
    """Show all spans of a trace, parents before their children.

    With --follow-span-links, traces referenced by span links (in either
    direction) are fetched too, breadth-first, up to 20 traces in total.
    """
    with cli_errors(asset_type="trace", asset_id=trace_id):
        validate_skip_header(skip_header, output)
        validate_column_format(columns, output or "")
        fmt = parse_output_format(output)
        color = fmt == "table" and color_enabled(_state(ctx).no_color, sys.stdout)
        cols = resolve_for_kind(
            columns, catalog.trace_default_columns(color), catalog.trace_known_columns(color)
        )
        trace_id = validate_trace_id(trace_id)

        with make_client(ctx, api_url, auth_token, dataset) as client:
            root_spans = client.fetch_trace_spans(
                trace_id, time_range(normalize_timestamp(from_), normalize_timestamp(to))
            )
            groups = [TraceGroup(trace_id, root_spans)]
            if follow_links:
                groups = follow_span_links(
                    trace_id,
                    root_spans,
                    client.fetch_trace_spans,
                    time_range(f"now-{lookback or DEFAULT_FOLLOW_LOOKBACK}", "now"),
                )
                logger.debug("Fetched %d trace(s)", len(groups))

        if fmt == "json":
            write_json("resourceSpans", [rs for group in groups for rs in group.resource_spans])
            return
        write_rows(fmt, cols, trace_rows(groups, cols), skip_header, "No spans found for this trace.")


@config_app.command(name="show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration (auth token masked)."""
    with cli_errors():
        config = resolve_config(_state(ctx).config_path)

    table = Table(title="obsq configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key in DEFAULT_CONFIG:
        value = config.get(key)
        if key == "auth_token":
            value = mask_token(value or "")
        table.add_row(key, escape(str(value)) if value not in (None, "") else "[dim](not set)[/dim]")
    console.print(table)


@config_app.command(name="init")
def config_init(ctx: typer.Context) -> None:
    """Write the configuration file with interactive prompts."""
    console.print("[bold blue]obsq configuration setup[/bold blue]\n")
    path = _state(ctx).config_path
    existing = load_config(path)

    config = {
        "api_url": typer.prompt("API URL", default=existing.get("api_url") or ""),
        "otlp_url": typer.prompt("OTLP URL", default=existing.get("otlp_url") or ""),
        "auth_token": typer.prompt(
            "Auth token", default=existing.get("auth_token") or "", hide_input=True
        ),
        "dataset": typer.prompt("Dataset", default=existing.get("dataset") or ""),
    }
    timeout = typer.prompt("Request timeout (seconds)", default=str(existing.get("timeout", 30.0)))
    try:
        config["timeout"] = float(timeout)
    except ValueError:
        fail(f"invalid timeout: {timeout}")

    try:
        written = save_config(config, path)
    except OSError as e:
        fail(f"failed to save configuration: {e}")
    console.print(f"[green]✓ Configuration saved to {written}[/green]")


@app.command()
def version() -> None:
    """Print the obsq version."""
    console.print(f"obsq {__version__}")


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
