"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
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

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

ANALYSIS_COUNTER = Counter(
    "analysis_runs_total",
    "Completed transcript analyses by provider and result provenance",
    ("provider", "source"),
)

PROVIDER_LATENCY = Histogram(
    "provider_call_duration_seconds",
    "Duration of outbound AI provider calls in seconds",
    ("provider",),
    buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0),
)

PROVIDER_ERRORS = Counter(
    "provider_errors_total",
    "Failed AI provider calls by error class",
    ("provider", "error"),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def observe_provider_call(
    provider: str,
    duration_seconds: float,
    error: BaseException | None = None,
) -> None:
    """Record latency (and failure class, if any) of one provider call."""

    safe_provider = provider or "none"
    PROVIDER_LATENCY.labels(provider=safe_provider).observe(max(duration_seconds, 0))
    if error is not None:
        PROVIDER_ERRORS.labels(
            provider=safe_provider,
            error=type(error).__name__,
        ).inc()


def observe_analysis(provider: str, source: str) -> None:
    """Count a finished analysis by provenance (provider or fallback)."""

    ANALYSIS_COUNTER.labels(provider=provider or "none", source=source).inc()
