"""
encache — Error Types

Defines the exception hierarchy for the encache runtime.
All exceptions inherit from EncacheError for consistent error handling.

Cache taxonomy:
- CacheEncodingError: results not representable in the wire format
- CacheDecodingError: malformed, arity-mismatched or mistyped wire text
- CacheStoreError: failure reported by the remote key-value store
"""

from typing import Any


class EncacheError(Exception):
    """Base exception for all encache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging or API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(EncacheError):
    """Raised when configuration is invalid or a backend is unavailable."""

    pass


class CacheError(EncacheError):
    """Base exception for cache-related errors."""

    pass


class CacheEncodingError(CacheError):
    """Raised when cached results cannot be serialized."""

    pass


class CacheDecodingError(CacheError):
    """Raised when serialized results cannot be turned back into typed values."""

    pass


class CacheStoreError(CacheError):
    """Raised when the remote store fails for any reason other than a missing key."""

    def __init__(self, operation: str, key: str, details: dict[str, Any] | None = None):
        message = f"Cache store {operation} failed for key '{key}'"
        error_details = details or {}
        error_details.update({"operation": operation, "key": key})
        super().__init__(message, error_details)
        self.operation = operation
        self.key = key
