"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "mtadocs_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

CACHE_LOOKUPS = Counter(
    "mtadocs_cache_lookups_total",
    "Document cache lookups by outcome",
    labelnames=("outcome",),
    registry=REGISTRY,
)

FETCH_LATENCY = Histogram(
    "mtadocs_wiki_fetch_seconds",
    "Latency of wiki page fetch and parse",
    registry=REGISTRY,
)

FETCH_FAILURES = Counter(
    "mtadocs_wiki_fetch_failures_total",
    "Wiki fetches that produced no document",
    registry=REGISTRY,
)

MATCH_PATH = Counter(
    "mtadocs_match_path_total",
    "Related-function lookups by the ranking path that answered them",
    labelnames=("path",),
    registry=REGISTRY,
)

CACHED_DOCUMENTS = Gauge(
    "mtadocs_cached_documents",
    "Number of documents stored in the cache",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "CACHE_LOOKUPS",
    "FETCH_LATENCY",
    "FETCH_FAILURES",
    "MATCH_PATH",
    "CACHED_DOCUMENTS",
    "metrics_response",
]
