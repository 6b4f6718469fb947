"""
HTTP client for the query API.

Queries are POSTed as JSON and paginated with an opaque cursor. A
``RecordIterator`` requests pages lazily while it is being iterated, so
callers that stop early (e.g. at a record limit) never fetch further pages.
The client does not retry; failures surface as ``APIError``.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Iterator, Optional, Sequence, TypeVar

import httpx

from obsq._version import __version__
from obsq.otlp.models import OTLPModel, ResourceLogs, ResourceSpans
from obsq.query.filter import AttributeFilter, FilterOperator

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

SPANS_PATH = "/api/spans"
LOGS_PATH = "/api/logs"

T = TypeVar("T", bound=OTLPModel)


class APIError(Exception):
    """A failed request to the query API."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def handle_api_error(
    err: APIError, asset_type: str = "", asset_id: str = ""
) -> APIError:
    """Return an error whose message tells the user what to do about ``err``."""
    status = err.status_code
    if status is None:
        return err
    if status == 404:
        if asset_type and asset_id:
            message = f"{asset_type} {asset_id!r} not found"
        elif asset_type:
            message = f"{asset_type} not found"
        else:
            message = f"asset not found: {err.message}"
    elif status == 401:
        message = f"authentication failed; check your auth token: {err.message}"
    elif status == 403:
        message = f"access denied; check your permissions: {err.message}"
    elif status == 400:
        message = f"invalid request: {err.message}"
    elif status == 429:
        message = f"rate limited; please try again later: {err.message}"
    elif status >= 500:
        message = f"server error; please try again later: {err.message}"
    else:
        return err
    return APIError(message, status_code=status)


def time_range(from_: str, to: str) -> dict[str, str]:
    return {"from": from_, "to": to}


def build_query_request(
    time_range: dict[str, str],
    filters: Optional[Sequence[AttributeFilter]] = None,
    dataset: Optional[str] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> dict[str, Any]:
    """Build the request body shared by span and log record queries."""
    request: dict[str, Any] = {
        "timeRange": dict(time_range),
        "pagination": {"limit": page_size},
    }
    if dataset:
        request["dataset"] = dataset
    if filters:
        request["filter"] = [f.to_dict() for f in filters]
    return request


class RecordIterator(Generic[T]):
    """Iterates over the records of a paginated query, page by page."""

    def __init__(
        self,
        client: APIClient,
        path: str,
        request: dict[str, Any],
        field: str,
        model: type[T],
    ) -> None:
        self._client = client
        self._path = path
        self._request = request
        self._field = field
        self._model = model
        self.pages = 0

    def __iter__(self) -> Iterator[T]:
        cursor: Optional[str] = None
        while True:
            body = dict(self._request)
            pagination = dict(body.get("pagination") or {})
            if cursor:
                pagination["cursor"] = cursor
            body["pagination"] = pagination

            data = self._client.post(self._path, body)
            self.pages += 1
            records = data.get(self._field) or []
            logger.debug("Fetched page %d of %s (%d records)", self.pages, self._path, len(records))
            for item in records:
                yield self._model.model_validate(item)

            cursor = (data.get("cursors") or {}).get("after")
            if not cursor or not records:
                return


class APIClient:
    """Client for the span and log record query endpoints.

    Example:
        ```python
        client = APIClient("https://api.example.com", auth_token="...")
        request = build_query_request(time_range("now-15m", "now"))
        for resource_spans in client.iter_spans(request):
            ...
        ```
    """

    def __init__(
        self,
        api_url: str,
        auth_token: str = "",
        dataset: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_url:
            raise ValueError(
                "no API URL configured; set api_url in .obsq.yaml, OBSQ_API_URL or --api-url"
            )
        self.api_url = api_url.rstrip("/")
        self.dataset = dataset or None

        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"obsq/{__version__}",
        }
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        self._client = httpx.Client(
            base_url=self.api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> APIClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST ``body`` as JSON and return the decoded response.

        Raises:
            APIError: On transport failures and non-2xx responses
        """
        try:
            response = self._client.post(path, json=body)
        except httpx.HTTPError as e:
            raise APIError(f"request to {self.api_url}{path} failed: {e}") from e

        if response.is_error:
            raise APIError(
                f"{response.status_code} {response.reason_phrase}: {response.text.strip()}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"invalid JSON response from {path}: {e}") from e

    def _with_dataset(self, request: dict[str, Any]) -> dict[str, Any]:
        if self.dataset and "dataset" not in request:
            return {**request, "dataset": self.dataset}
        return request

    def iter_spans(self, request: dict[str, Any]) -> RecordIterator[ResourceSpans]:
        return RecordIterator(
            self, SPANS_PATH, self._with_dataset(request), "resourceSpans", ResourceSpans
        )

    def iter_log_records(self, request: dict[str, Any]) -> RecordIterator[ResourceLogs]:
        return RecordIterator(
            self, LOGS_PATH, self._with_dataset(request), "resourceLogs", ResourceLogs
        )

    def fetch_trace_spans(self, trace_id: str, time_range: dict[str, str]) -> list[ResourceSpans]:
        """Fetch every span of one trace within ``time_range``."""
        trace_filter = AttributeFilter(
            key="otel.trace.id", operator=FilterOperator.IS, value=trace_id
        )
        request = build_query_request(time_range, [trace_filter])
        return list(self.iter_spans(request))
