"""Prometheus metrics collectors and helpers."""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

REGISTRY: CollectorRegistry
HTTP_REQUESTS_TOTAL: Counter
HTTP_REQUEST_DURATION: Histogram
PUSH_DELIVERIES_TOTAL: Counter
PUSH_BATCH_DURATION: Histogram
NOTIFICATION_TASKS_INFLIGHT: Gauge


def _initialise_registry() -> None:
    global REGISTRY, HTTP_REQUESTS_TOTAL, HTTP_REQUEST_DURATION
    global PUSH_DELIVERIES_TOTAL, PUSH_BATCH_DURATION, NOTIFICATION_TASKS_INFLIGHT

    registry = CollectorRegistry(auto_describe=True)
    ProcessCollector(registry=registry)
    PlatformCollector(registry=registry)

    HTTP_REQUESTS_TOTAL = Counter(
        "http_requests_total",
        "Count of HTTP requests received",
        labelnames=("path", "method", "status"),
        registry=registry,
    )

    HTTP_REQUEST_DURATION = Histogram(
        "http_request_duration_seconds",
        "Histogram of request latency",
        labelnames=("path", "method"),
        registry=registry,
    )

    PUSH_DELIVERIES_TOTAL = Counter(
        "push_deliveries_total",
        "Per-device push delivery outcomes",
        labelnames=("category", "status"),
        registry=registry,
    )

    PUSH_BATCH_DURATION = Histogram(
        "push_batch_duration_seconds",
        "Latency of a single provider batch submission",
        labelnames=("provider",),
        registry=registry,
    )

    NOTIFICATION_TASKS_INFLIGHT = Gauge(
        "notification_tasks_inflight",
        "Background notification fan-out tasks not yet finished",
        registry=registry,
    )

    REGISTRY = registry


_initialise_registry()


def render_metrics() -> bytes:
    """Return the current metrics snapshot in Prometheus format."""

    return generate_latest(REGISTRY)


def observe_request(path: str, method: str, status: int, latency_seconds: float) -> None:
    """Record HTTP request metrics."""

    HTTP_REQUESTS_TOTAL.labels(path=path, method=method, status=str(status)).inc()
    HTTP_REQUEST_DURATION.labels(path=path, method=method).observe(latency_seconds)


def record_push_delivery(category: str, status: str, count: int = 1) -> None:
    """Increment counters for per-device push outcomes."""

    if count > 0:
        PUSH_DELIVERIES_TOTAL.labels(category=category, status=status).inc(count)


def observe_push_batch(provider: str, latency_seconds: float) -> None:
    PUSH_BATCH_DURATION.labels(provider=provider).observe(latency_seconds)


def set_notification_tasks_inflight(value: int) -> None:
    NOTIFICATION_TASKS_INFLIGHT.set(value)


def reset_metrics() -> None:
    """Reset collectors; intended for deterministic tests."""

    _initialise_registry()


__all__ = [
    "CONTENT_TYPE_LATEST",
    "REGISTRY",
    "render_metrics",
    "observe_request",
    "record_push_delivery",
    "observe_push_batch",
    "set_notification_tasks_inflight",
    "reset_metrics",
]
