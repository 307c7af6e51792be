"""Telemetry helpers and metrics."""

from .metrics import (
    ANALYSIS_COUNTER,
    ERROR_COUNTER,
    PROVIDER_ERRORS,
    PROVIDER_LATENCY,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    observe_analysis,
    observe_provider_call,
    observe_request,
)

__all__ = [
    "ANALYSIS_COUNTER",
    "ERROR_COUNTER",
    "PROVIDER_ERRORS",
    "PROVIDER_LATENCY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "observe_analysis",
    "observe_provider_call",
    "observe_request",
]
