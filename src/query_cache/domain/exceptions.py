from __future__ import annotations


class QueryCacheError(Exception):
    """Base exception for all query cache errors."""


class ApiError(QueryCacheError):
    """Raised when an HTTP producer receives an unexpected HTTP error status."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        super().__init__(message or f"Upstream API error ({status_code})")


class ValidationError(QueryCacheError):
    """Raised when input parameters fail validation before any producer call."""


class SweeperError(QueryCacheError):
    """Raised when the periodic sweeper cannot be started."""
