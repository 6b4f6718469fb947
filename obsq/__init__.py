"""obsq - command-line client for querying and sending logs, spans and traces."""

from __future__ import annotations

from obsq._version import __version__
from obsq.client import APIClient, APIError, build_query_request, time_range
from obsq.config import load_config, resolve_config
from obsq.otlp.send import OTLPSender, OTLPSendError
from obsq.query.filter import AttributeFilter, FilterParseError, parse_filter, parse_filters
from obsq.tracing.links import LinkedTraceFetchError, follow_span_links

__all__ = [
    "__version__",
    "APIClient",
    "APIError",
    "AttributeFilter",
    "FilterParseError",
    "LinkedTraceFetchError",
    "OTLPSendError",
    "OTLPSender",
    "build_query_request",
    "follow_span_links",
    "load_config",
    "parse_filter",
    "parse_filters",
    "resolve_config",
    "time_range",
]
