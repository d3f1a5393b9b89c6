"""Custom exception hierarchy for the media search engine.

All application-specific exceptions inherit from MediaSearchError,
enabling uniform error handling in the global error handlers.

Hierarchy:
    MediaSearchError (base)
    ├── APIClientError          - Catalog API (TMDB) transport failures
    │   ├── APIRateLimitError   - 429 Too Many Requests
    │   └── APITimeoutError     - Request timeout
    └── InputValidationError    - Invalid discover/search parameters

Missing optional data (no logo, no backdrop, no release date) is never
an error: those conditions are filtered or defaulted, not raised.
"""
from __future__ import annotations


class MediaSearchError(Exception):
    """Base exception for the media search engine."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


# ── Transport Errors ──────────────────────────────────────────────────

class APIClientError(MediaSearchError):
    """Raised when a catalog API call fails."""

    def __init__(
        self,
        message: str,
        client_name: str = "unknown",
        status_code: int = 502,
        upstream_status: int | None = None,
    ) -> None:
        self.client_name = client_name
        self.upstream_status = upstream_status
        super().__init__(message, status_code)


class APIRateLimitError(APIClientError):
    """Raised when the catalog API keeps answering 429 Too Many Requests."""

    def __init__(self, client_name: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(
            message=f"{client_name} rate limit exceeded. Try again shortly.",
            client_name=client_name,
            status_code=429,
            upstream_status=429,
        )


class APITimeoutError(APIClientError):
    """Raised when a catalog API request times out."""

    def __init__(self, client_name: str, timeout: float) -> None:
        super().__init__(
            message=f"{client_name} request timed out after {timeout}s.",
            client_name=client_name,
            status_code=504,
        )


# ── Validation Errors ────────────────────────────────────────────────

class InputValidationError(MediaSearchError):
    """Raised when discover or search parameters fail validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=422)
