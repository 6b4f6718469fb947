"""Tests for the obsq CLI."""

from __future__ import annotations

import json
from unittest.mock import Mock, patch

import httpx
import pytest
import yaml
from typer.testing import CliRunner

from obsq.client import APIClient
from obsq.config import ENV_OVERRIDES
from obsq.contrib.cli import app, collect_batches, page_size_for, parse_output_format, take

TRACE_A = "0af7651916cd43dd8448eb211c80319c"
TRACE_B = "11111111111111111111111111111111"


def make_span(name, trace_id=TRACE_A, span_id="b7ad6b7169203331", parent=None, links=(), **extra):
    span = {
        "traceId": trace_id,
        "spanId": span_id,
        "name": name,
        "kind": 2,
        "startTimeUnixNano": "1706176800000000000",
        "endTimeUnixNano": "1706176800120000000",
        "status": {"code": extra.pop("status_code", 0)},
        "links": [{"traceId": t, "spanId": "2222222222222222"} for t in links],
        **extra,
    }
    if parent:
        span["parentSpanId"] = parent
    return span


def resource_spans(*spans, service="checkout"):
    return {
        "resource": {"attributes": [{"key": "service.name", "value": {"stringValue": service}}]},
        "scopeSpans": [{"spans": list(spans)}],
    }


class Backend:
    """Fake query API serving spans per trace id and log records."""

    def __init__(self):
        self.spans = []
        self.traces = {}
        self.logs = []
        self.status_code = 200
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request.url.path, body))
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="denied")
        if request.url.path == "/api/logs":
            return httpx.Response(200, json={"resourceLogs": self.logs})

        filters = body.get("filter") or []
        trace_filter = [f for f in filters if f["key"] == "otel.trace.id"]
        if trace_filter:
            trace_id = trace_filter[0]["value"]["stringValue"]
            return httpx.Response(200, json={"resourceSpans": self.traces.get(trace_id, [])})
        return httpx.Response(200, json={"resourceSpans": self.spans})


@pytest.fixture
def cli_runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run in an empty directory with only the API and OTLP URLs configured."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OBSQ_CONFIG", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    for env_var in ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setenv("OBSQ_API_URL", "https://api.example.com")
    monkeypatch.setenv("OBSQ_OTLP_URL", "https://ingress.example.com")
    monkeypatch.setenv("OBSQ_AUTH_TOKEN", "auth_secret_token")


@pytest.fixture
def backend(monkeypatch):
    """Route every APIClient the CLI creates to a fake backend."""
    fake = Backend()

    def client_factory(api_url, **kwargs):
        return APIClient(api_url, transport=httpx.MockTransport(fake), **kwargs)

    monkeypatch.setattr("obsq.contrib.cli.APIClient", client_factory)
    return fake


class TestHelpers:
    """Tests for small CLI helpers."""

    def test_parse_output_format(self):
        """Test accepted and rejected formats."""
        assert parse_output_format(None) == "table"
        assert parse_output_format("CSV") == "csv"
        with pytest.raises(ValueError, match="unknown output format: yaml"):
            parse_output_format("yaml")

    @pytest.mark.parametrize("limit,expected", [(50, 50), (100, 100), (500, 100), (0, 100)])
    def test_page_size_for(self, limit, expected):
        """Test that pages never exceed the limit or 100."""
        assert page_size_for(limit) == expected

    def test_take(self):
        """Test limiting an iterator."""
        assert list(take(range(10), 3)) == [0, 1, 2]
        assert list(take(range(3), 0)) == [0, 1, 2]

    def test_take_stops_consuming(self):
        """Test that no record past the limit is pulled."""
        pulled = []

        def source():
            for i in range(10):
                pulled.append(i)
                yield i

        list(take(source(), 2))
        assert pulled == [0, 1]

    def test_collect_batches(self):
        """Test that whole batches are kept until the limit is reached."""
        assert collect_batches([[1, 2], [3, 4], [5]], len, 3) == [[1, 2], [3, 4]]
        assert collect_batches([[1], [2]], len, 0) == [[1], [2]]


class TestSpansQuery:
    """Tests for `obsq spans query`."""

    def test_table(self, cli_runner, backend):
        """Test the default table output."""
        backend.spans = [
            resource_spans(make_span("GET /users"), make_span("SELECT users", status_code=2))
        ]
        result = cli_runner.invoke(app, ["spans", "query"])

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].startswith("TIMESTAMP")
        assert "SPAN NAME" in lines[0]
        assert "GET /users" in lines[1]
        assert "ERROR" in lines[2]
        assert "checkout" in lines[1]
        assert "120ms" in lines[1]

    def test_request(self, cli_runner, backend):
        """Test time range, filters and page size sent to the API."""
        result = cli_runner.invoke(
            app,
            [
                "spans", "query",
                "--from", "2024-01-25T10:00:00Z",
                "--filter", "service.name is checkout",
                "--limit", "20",
                "--dataset", "prod",
            ],
        )

        assert result.exit_code == 0, result.output
        path, body = backend.requests[0]
        assert path == "/api/spans"
        assert body["timeRange"] == {"from": "2024-01-25T10:00:00.000Z", "to": "now"}
        assert body["pagination"] == {"limit": 20}
        assert body["dataset"] == "prod"
        assert body["filter"][0]["key"] == "service.name"

    def test_limit(self, cli_runner, backend):
        """Test that at most --limit rows are shown."""
        backend.spans = [resource_spans(*(make_span(f"op-{i}") for i in range(5)))]
        result = cli_runner.invoke(app, ["spans", "query", "--limit", "2", "--skip-header"])

        assert result.exit_code == 0, result.output
        assert len(result.output.splitlines()) == 2

    def test_empty(self, cli_runner, backend):
        """Test the empty result message."""
        result = cli_runner.invoke(app, ["spans", "query"])
        assert result.exit_code == 0
        assert result.output.strip() == "No spans found."

    def test_csv_columns(self, cli_runner, backend):
        """Test CSV output with custom columns."""
        backend.spans = [
            resource_spans(
                make_span(
                    "GET /users",
                    attributes=[{"key": "http.method", "value": {"stringValue": "GET"}}],
                )
            )
        ]
        result = cli_runner.invoke(
            app,
            ["spans", "query", "-o", "csv", "--column", "name", "--column", "http.method"],
        )

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["otel.span.name,http.method", "GET /users,GET"]

    def test_csv_empty_has_header(self, cli_runner, backend):
        """Test that CSV output always has its header."""
        result = cli_runner.invoke(app, ["spans", "query", "-o", "csv", "--column", "name"])
        assert result.output.splitlines() == ["otel.span.name"]

    def test_json(self, cli_runner, backend):
        """Test OTLP/JSON output."""
        backend.spans = [resource_spans(make_span("GET /users"))]
        result = cli_runner.invoke(app, ["spans", "query", "-o", "json"])

        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        span = document["resourceSpans"][0]["scopeSpans"][0]["spans"][0]
        assert span["name"] == "GET /users"
        assert span["traceId"] == TRACE_A

    @pytest.mark.parametrize(
        "args,message",
        [
            (["-o", "json", "--skip-header"], "--skip-header is not supported with JSON output"),
            (["-o", "json", "--column", "name"], "--column is not supported with JSON output"),
            (["-o", "json", "--limit", "500"], "json output is limited to 100 records"),
            (["-o", "yaml"], "unknown output format: yaml"),
            (["--filter", "service.name"], "invalid filter 'service.name'"),
        ],
    )
    def test_rejected_flags(self, cli_runner, backend, args, message):
        """Test argument errors exit 1 without querying."""
        result = cli_runner.invoke(app, ["spans", "query", *args])
        assert result.exit_code == 1
        assert message in result.output
        assert backend.requests == []

    def test_api_error(self, cli_runner, backend):
        """Test that HTTP errors become user-facing messages."""
        backend.status_code = 401
        result = cli_runner.invoke(app, ["spans", "query"])
        assert result.exit_code == 1
        assert "authentication failed" in result.output

    def test_missing_api_url(self, cli_runner, monkeypatch):
        """Test the configuration hint."""
        monkeypatch.delenv("OBSQ_API_URL")
        result = cli_runner.invoke(app, ["spans", "query"])
        assert result.exit_code == 1
        assert "no API URL configured" in result.output

    def test_invalid_timeout_in_config(self, cli_runner, backend, tmp_path):
        """Test that a null timeout is reported without a traceback."""
        (tmp_path / ".obsq.yaml").write_text("timeout: null\n")
        result = cli_runner.invoke(app, ["spans", "query"])
        assert result.exit_code == 1
        assert "invalid timeout None" in result.output
        assert not isinstance(result.exception, TypeError)
        assert backend.requests == []


class TestLogsQuery:
    """Tests for `obsq logs query`."""

    def test_table(self, cli_runner, backend):
        """Test the default log columns."""
        backend.logs = [
            {
                "scopeLogs": [
                    {
                        "logRecords": [
                            {
                                "timeUnixNano": "1706176800123000000",
                                "severityNumber": 17,
                                "body": {"stringValue": "payment failed"},
                            }
                        ]
                    }
                ]
            }
        ]
        result = cli_runner.invoke(app, ["logs", "query"])

        assert result.exit_code == 0, result.output
        header, row = result.output.splitlines()
        assert header.split() == ["TIMESTAMP", "SEVERITY", "BODY"]
        assert row.split() == ["2024-01-25T10:00:00.123Z", "ERROR", "payment", "failed"]
        assert backend.requests[0][0] == "/api/logs"

    def test_empty(self, cli_runner, backend):
        """Test the empty result message."""
        result = cli_runner.invoke(app, ["logs", "query"])
        assert result.exit_code == 0
        assert result.output.strip() == "No log records found."

    def test_json_empty(self, cli_runner, backend):
        """Test that empty JSON output is still a document."""
        result = cli_runner.invoke(app, ["logs", "query", "-o", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"resourceLogs": []}


class TestTracesGet:
    """Tests for `obsq traces get`."""

    def test_invalid_trace_id(self, cli_runner, backend):
        """Test trace id validation."""
        result = cli_runner.invoke(app, ["traces", "get", "abc"])
        assert result.exit_code == 1
        assert "trace-id must be 32 hex characters, got 3" in result.output

    def test_parent_first_order(self, cli_runner, backend):
        """Test that children are listed after their parent."""
        backend.traces[TRACE_A] = [
            resource_spans(
                make_span("child-span", span_id="00000000000000c1", parent="00000000000000a1"),
                make_span("root-span", span_id="00000000000000a1"),
            )
        ]
        result = cli_runner.invoke(app, ["traces", "get", TRACE_A])

        assert result.exit_code == 0, result.output
        assert result.output.index("root-span") < result.output.index("child-span")
        _, body = backend.requests[0]
        assert body["timeRange"] == {"from": "now-1h", "to": "now"}

    def test_empty(self, cli_runner, backend):
        """Test the empty trace message."""
        result = cli_runner.invoke(app, ["traces", "get", TRACE_A])
        assert result.exit_code == 0
        assert result.output.strip() == "No spans found for this trace."

    def test_follow_span_links(self, cli_runner, backend):
        """Test that linked traces are fetched with the lookback range."""
        backend.traces[TRACE_A] = [resource_spans(make_span("producer", links=[TRACE_B]))]
        backend.traces[TRACE_B] = [resource_spans(make_span("consumer", trace_id=TRACE_B))]
        result = cli_runner.invoke(
            app,
            ["traces", "get", TRACE_A, "--follow-span-links", "--lookback", "30m", "-o", "csv",
             "--column", "trace id", "--column", "name"],
        )

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [
            "otel.trace.id,otel.span.name",
            f"{TRACE_A},producer",
            f"{TRACE_B},consumer",
        ]
        _, linked_body = backend.requests[1]
        assert linked_body["timeRange"] == {"from": "now-30m", "to": "now"}

    def test_links_not_followed_by_default(self, cli_runner, backend):
        """Test that only the requested trace is fetched without the flag."""
        backend.traces[TRACE_A] = [resource_spans(make_span("producer", links=[TRACE_B]))]
        result = cli_runner.invoke(app, ["traces", "get", TRACE_A])
        assert result.exit_code == 0
        assert len(backend.requests) == 1

    def test_json(self, cli_runner, backend):
        """Test that JSON output concatenates all fetched traces."""
        backend.traces[TRACE_A] = [resource_spans(make_span("producer", links=[TRACE_B]))]
        backend.traces[TRACE_B] = [resource_spans(make_span("consumer", trace_id=TRACE_B))]
        result = cli_runner.invoke(
            app, ["traces", "get", TRACE_A, "--follow-span-links", "-o", "json"]
        )

        assert result.exit_code == 0, result.output
        assert len(json.loads(result.output)["resourceSpans"]) == 2

    def test_not_found(self, cli_runner, backend):
        """Test the 404 message names the trace."""
        backend.status_code = 404
        result = cli_runner.invoke(app, ["traces", "get", TRACE_A])
        assert result.exit_code == 1
        assert f"trace '{TRACE_A}' not found" in result.output


class TestSpansSend:
    """Tests for `obsq spans send`."""

    @patch("obsq.otlp.send.requests.post")
    def test_send(self, mock_post, cli_runner):
        """Test sending a span with explicit ids."""
        mock_post.return_value = Mock(ok=True, status_code=200)
        result = cli_runner.invoke(
            app,
            [
                "spans", "send",
                "--name", "GET /users",
                "--kind", "SERVER",
                "--status-code", "OK",
                "--start-time", "2024-01-25T10:00:00Z",
                "--duration", "100ms",
                "--trace-id", TRACE_A,
                "--span-id", "b7ad6b7169203331",
                "--span-attribute", "http.method=GET",
                "--span-link", f"{TRACE_B}:2222222222222222",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Span sent successfully" in result.output
        assert TRACE_A in result.output
        url = mock_post.call_args[0][0]
        assert url == "https://ingress.example.com/v1/traces"
        assert mock_post.call_args[1]["headers"]["Authorization"] == "Bearer auth_secret_token"
        span = mock_post.call_args[1]["json"]["resourceSpans"][0]["scopeSpans"][0]["spans"][0]
        assert span["kind"] == 2
        assert span["status"] == {"code": 1}
        assert span["startTimeUnixNano"] == "1706176800000000000"
        assert span["endTimeUnixNano"] == "1706176800100000000"
        assert span["links"][0]["traceId"] == TRACE_B

    @patch("obsq.otlp.send.requests.post")
    def test_generated_ids(self, mock_post, cli_runner):
        """Test that ids are generated when omitted."""
        mock_post.return_value = Mock(ok=True, status_code=200)
        result = cli_runner.invoke(app, ["spans", "send", "--name", "op"])

        assert result.exit_code == 0, result.output
        span = mock_post.call_args[1]["json"]["resourceSpans"][0]["scopeSpans"][0]["spans"][0]
        assert len(span["traceId"]) == 32
        assert len(span["spanId"]) == 16
        assert span["startTimeUnixNano"] == span["endTimeUnixNano"]

    @pytest.mark.parametrize(
        "args,message",
        [
            (
                ["--end-time", "2024-01-25T10:00:01Z", "--duration", "1s"],
                "--end-time and --duration are mutually exclusive",
            ),
            (["--kind", "UNSPECIFIED"], "unknown span kind"),
            (["--span-attribute", "oops"], "invalid span attribute"),
            (["--start-time", "yesterday"], "invalid start-time format"),
            (["--parent-span-id", "xyz"], "invalid parent-span-id"),
            (["--span-link", "nope"], "invalid span-link"),
        ],
    )
    @patch("obsq.otlp.send.requests.post")
    def test_invalid(self, mock_post, cli_runner, args, message):
        """Test validation errors exit 1 without sending."""
        result = cli_runner.invoke(app, ["spans", "send", "--name", "op", *args])
        assert result.exit_code == 1
        assert message in result.output
        assert not mock_post.called

    @patch("obsq.otlp.send.requests.post")
    def test_send_failure(self, mock_post, cli_runner):
        """Test that rejected payloads are reported."""
        mock_post.return_value = Mock(ok=False, status_code=500, text="oops")
        result = cli_runner.invoke(app, ["spans", "send", "--name", "op"])
        assert result.exit_code == 1
        assert "failed to send span" in result.output

    def test_missing_otlp_url(self, cli_runner, monkeypatch):
        """Test the configuration hint."""
        monkeypatch.delenv("OBSQ_OTLP_URL")
        result = cli_runner.invoke(app, ["spans", "send", "--name", "op"])
        assert result.exit_code == 1
        assert "no OTLP URL configured" in result.output


class TestLogsSend:
    """Tests for `obsq logs send`."""

    @patch("obsq.otlp.send.requests.post")
    def test_send(self, mock_post, cli_runner):
        """Test sending a log record."""
        mock_post.return_value = Mock(ok=True, status_code=200)
        result = cli_runner.invoke(
            app,
            [
                "logs", "send", "Deployment completed",
                "--severity-number", "9",
                "--severity-text", "INFO",
                "--time", "2024-01-25T10:00:00.000000001Z",
                "--resource-attribute", "service.name=api",
                "--scope-name", "deployer",
                "--dataset", "prod",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Log record sent successfully" in result.output
        assert mock_post.call_args[0][0] == "https://ingress.example.com/v1/logs"
        assert mock_post.call_args[1]["headers"]["X-Dataset"] == "prod"
        scope_logs = mock_post.call_args[1]["json"]["resourceLogs"][0]["scopeLogs"][0]
        assert scope_logs["scope"] == {"name": "deployer", "attributes": []}
        record = scope_logs["logRecords"][0]
        assert record["body"] == {"stringValue": "Deployment completed"}
        assert record["timeUnixNano"] == "1706176800000000001"
        assert record["severityNumber"] == 9

    @pytest.mark.parametrize(
        "args,message",
        [
            (["--trace-id", TRACE_A], "both --trace-id and --span-id must be specified together"),
            (["--log-attribute", "=x"], "invalid log attribute"),
            (["--time", "soon"], "invalid time format"),
            (["--trace-id", "abc", "--span-id", "b7ad6b7169203331"], "trace-id must be 32"),
        ],
    )
    @patch("obsq.otlp.send.requests.post")
    def test_invalid(self, mock_post, cli_runner, args, message):
        """Test validation errors exit 1 without sending."""
        result = cli_runner.invoke(app, ["logs", "send", "hello", *args])
        assert result.exit_code == 1
        assert message in result.output
        assert not mock_post.called


class TestConfigCommands:
    """Tests for `obsq config`."""

    def test_show_masks_token(self, cli_runner):
        """Test that the token is masked."""
        result = cli_runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "https://api.example.com" in result.output
        assert "oken" in result.output
        assert "auth_secret_token" not in result.output

    def test_init_writes_file(self, cli_runner, tmp_path):
        """Test interactive setup."""
        result = cli_runner.invoke(
            app,
            ["config", "init"],
            input="https://api.example.com\nhttp://localhost:4318\ntok\nprod\n10\n",
        )

        assert result.exit_code == 0, result.output
        saved = yaml.safe_load((tmp_path / ".obsq.yaml").read_text())
        assert saved == {
            "api_url": "https://api.example.com",
            "otlp_url": "http://localhost:4318",
            "auth_token": "tok",
            "dataset": "prod",
            "timeout": 10.0,
        }

    def test_init_rejects_bad_timeout(self, cli_runner, tmp_path):
        """Test that a non-numeric timeout aborts."""
        result = cli_runner.invoke(app, ["config", "init"], input="\n\n\n\nsoon\n")
        assert result.exit_code == 1
        assert "invalid timeout" in result.output
        assert not (tmp_path / ".obsq.yaml").exists()

    def test_show_invalid_timeout(self, cli_runner, tmp_path):
        """Test that config show reports a bad timeout."""
        (tmp_path / ".obsq.yaml").write_text("timeout: soon\n")
        result = cli_runner.invoke(app, ["config", "show"])
        assert result.exit_code == 1
        assert "invalid timeout 'soon'" in result.output

    def test_explicit_config_file(self, cli_runner, tmp_path, monkeypatch):
        """Test the global --config option."""
        monkeypatch.delenv("OBSQ_API_URL")
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("api_url: https://custom.example.com\n")
        result = cli_runner.invoke(app, ["--config", str(config_file), "config", "show"])
        assert result.exit_code == 0, result.output
        assert "https://custom.example.com" in result.output
