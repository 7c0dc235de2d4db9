"""
Exception hierarchy.

Errors of a single transformation attempt are converted into failed results
by the pipeline. The exceptions here are the ones that reach the caller.
"""

__all__ = [
    "TransformerError",
    "InvalidInputError",
    "FetchError",
    "UnsupportedTypeError",
    "InvalidConfigurationError",
    "RateLimitExceededError",
]

from typing import Any, Dict, Optional


class TransformerError(Exception):
    """Base exception for transformation errors, carrying debugging context."""

    def __init__(self, message: str = "", context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context: Dict[str, Any] = context or {}


class InvalidInputError(TransformerError):
    """Raised when content is rejected before transformation."""

    def __init__(
        self,
        message: str = "Invalid input provided for transformation",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)


class FetchError(TransformerError):
    """Raised when content cannot be fetched from a source."""

    def __init__(
        self,
        message: str = "Failed to fetch content from source",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)


class UnsupportedTypeError(TransformerError):
    pass


class InvalidConfigurationError(Exception):
    """Raised when no usable handler, provider or model can be resolved."""

    pass


class RateLimitExceededError(Exception):
    """Raised before any transformer work when a rate limit key is exhausted."""

    status_code = 429

    def __init__(self, key: str, max_attempts: int, retry_after: int, message: str = ""):
        self.key = key
        self.max_attempts = max_attempts
        self.retry_after = retry_after
        if not message:
            message = (
                f"Rate limit exceeded for key '{key}'. Maximum {max_attempts} attempts "
                f"allowed. Try again in {retry_after} seconds."
            )
        super().__init__(message)
