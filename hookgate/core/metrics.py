"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

HTTP_REQUESTS_TOTAL = Counter(
    "hookgate_http_requests_total",
    "Total number of HTTP requests.",
    ["method", "route", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "hookgate_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    ["method", "route", "status"],
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

WEBHOOK_DELIVERY_ATTEMPTS_TOTAL = Counter(
    "hookgate_webhook_delivery_attempts_total",
    "Webhook delivery attempts by event type and outcome.",
    ["event_type", "status"],
)

WEBHOOK_DELIVERY_DURATION_SECONDS = Histogram(
    "hookgate_webhook_delivery_duration_seconds",
    "Duration of a single outbound webhook POST in seconds.",
    ["event_type"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

ADMISSION_DECISIONS_TOTAL = Counter(
    "hookgate_admission_decisions_total",
    "API key admission decisions by outcome.",
    ["outcome"],
)


def observe_http_request(
    *,
    method: str,
    route: str,
    status_code: int,
    duration_ms: float,
) -> None:
    status = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method=method, route=route, status=status).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(
        method=method, route=route, status=status
    ).observe(duration_ms / 1000.0)


def observe_delivery_attempt(*, event_type: str, status: str, duration_ms: float | None) -> None:
    WEBHOOK_DELIVERY_ATTEMPTS_TOTAL.labels(event_type=event_type, status=status).inc()
    if duration_ms is not None:
        WEBHOOK_DELIVERY_DURATION_SECONDS.labels(event_type=event_type).observe(
            duration_ms / 1000.0
        )


def observe_admission(outcome: str) -> None:
    ADMISSION_DECISIONS_TOTAL.labels(outcome=outcome).inc()
