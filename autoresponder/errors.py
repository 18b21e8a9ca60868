"""
Exception taxonomy for the response pipeline.

Provider failures are recoverable through fallback; only the aggregate
``AllProvidersUnavailable`` leaves the provider manager.  Nothing raised here
escapes to the event source: the processor converts failures into an absent
result and an audit entry.
"""
from typing import Optional


class ResponderError(Exception):
    """Base class for all pipeline errors."""


class ProviderError(ResponderError):
    """A single text-generation vendor failed (HTTP, transport or parse)."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.message = message
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"API Error ({status_code}): {message}")
        else:
            super().__init__(message)


class AllProvidersUnavailable(ResponderError):
    """Every configured provider was unavailable or failed for one attempt."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(
            "All AI providers are unavailable. Please check your configuration and try again."
        )


class StorageError(ResponderError):
    """Persistence failure in the response store."""


class StorefrontError(ResponderError):
    """The storefront API rejected or failed a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ReviewNotFoundError(ResponderError):
    """The storefront has no review with the requested id."""

    def __init__(self, review_id: int):
        self.review_id = review_id
        super().__init__(f"Review {review_id} not found")
