"""Exception taxonomy for the filtering engine.

ValidationError is raised to the caller before any I/O. UpstreamError and its
subclasses describe catalog failures; the pipeline converts them into a local
fallback and never lets them reach the caller. Zero matching videos is not an
error.
"""

from typing import Optional

from models.results import FilterValidation


class FilterEngineError(Exception):
    """Base class for filtering engine errors."""


class ValidationError(FilterEngineError):
    """The filter specification violates its invariants."""

    def __init__(self, validation: FilterValidation):
        self.validation = validation
        super().__init__("; ".join(validation.errors) or "Invalid filter specification")

    @property
    def errors(self) -> tuple[str, ...]:
        return self.validation.errors


class UpstreamError(FilterEngineError):
    """The video catalog call failed."""

    is_retryable = False

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class CatalogNetworkError(UpstreamError):
    is_retryable = True


class CatalogRateLimitError(UpstreamError):
    is_retryable = True


class CatalogQuotaExceededError(UpstreamError):
    """Daily quota is spent; retrying today will not help."""


class CatalogResponseError(UpstreamError):
    """The catalog answered with something we could not parse."""


class CatalogTimeoutError(UpstreamError):
    is_retryable = True


class FilterCancelledError(FilterEngineError):
    """The caller cancelled the in-flight catalog call."""


class FatalFilterError(FilterEngineError):
    """The local fallback could not read its candidate set."""
