from __future__ import annotations


class DengueGuardError(RuntimeError):
    """Base error for the package."""


class ConfigurationError(DengueGuardError):
    """Raised when a required setting is missing or malformed."""


class UpstreamError(DengueGuardError):
    """An upstream HTTP call failed or returned an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class QuotaExceeded(UpstreamError):
    """Raised when an upstream reports a quota/usage limit issue."""


# Weather providers raise the same error family as the backend clients.
ProviderError = UpstreamError


class BackendError(UpstreamError):
    """A backend read failed and has no safe local substitute."""


class ReportSubmissionError(DengueGuardError):
    """A citizen report could not be recorded by the backend."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidImageError(ValueError):
    """Raised when an attached image fails type or size validation."""


__all__ = [
    "BackendError",
    "ConfigurationError",
    "DengueGuardError",
    "InvalidImageError",
    "ProviderError",
    "QuotaExceeded",
    "ReportSubmissionError",
    "UpstreamError",
]
