"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

GATEWAY_REQUESTS = Counter(
    "writebox_gateway_requests_total",
    "Generative API calls by feature and outcome",
    labelnames=("feature", "outcome"),
    registry=REGISTRY,
)

GATEWAY_LATENCY = Histogram(
    "writebox_gateway_latency_seconds",
    "Latency of generative API calls",
    labelnames=("feature",),
    registry=REGISTRY,
)

STORE_ERRORS = Counter(
    "writebox_store_errors_total",
    "Persistence store failures",
    labelnames=("collection", "operation"),
    registry=REGISTRY,
)

UPLOADED_FILES = Counter(
    "writebox_uploaded_files_total",
    "Files accepted for storage",
    labelnames=("destination",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "GATEWAY_REQUESTS",
    "GATEWAY_LATENCY",
    "STORE_ERRORS",
    "UPLOADED_FILES",
    "metrics_response",
]
