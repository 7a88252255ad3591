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
    "croprag_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "croprag_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "croprag_ingest_duration_seconds",
    "Ingest pipeline duration",
    registry=REGISTRY,
)

STORE_SIZE = Gauge(
    "croprag_store_records",
    "Number of vector records held by the store",
    registry=REGISTRY,
)

PROVIDER_CALLS = Counter(
    "croprag_provider_calls_total",
    "External provider attempts by outcome",
    labelnames=("kind", "provider", "outcome"),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "INGEST_DURATION",
    "STORE_SIZE",
    "PROVIDER_CALLS",
    "metrics_response",
]
