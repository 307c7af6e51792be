"""Exception taxonomy shared by the provider clients and the dispatcher."""

from __future__ import annotations


class ProviderError(RuntimeError):
    """Raised when an AI backend call fails for any reason."""

    def __init__(self, backend: str, cause: object | None = None) -> None:
        self.backend = backend
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{backend}{detail}")


class ProviderUnavailableError(ProviderError):
    """Raised when the backend cannot be reached or is not configured."""


class ProviderTimeoutError(ProviderUnavailableError):
    """Raised when a provider call exceeds the configured timeout."""


class UnparsableResponseError(ValueError):
    """Raised when no JSON object can be decoded from a provider reply."""


class MissingTranscriptError(ValueError):
    """Raised when a recording has no transcript to analyse."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Recording {record_id} has no transcript")


class CapabilityUnsupportedError(ProviderError):
    """Raised when the backend does not implement the requested operation."""

    def __init__(self, backend: str, capability: str) -> None:
        self.capability = capability
        super().__init__(backend, f"{capability} is not supported")


class AnalysisInProgressError(RuntimeError):
    """Raised when a record is already being analysed."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Analysis already running for recording {record_id}")


__all__ = [
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    "UnparsableResponseError",
    "MissingTranscriptError",
    "CapabilityUnsupportedError",
    "AnalysisInProgressError",
]
