"""Abstract async API client with retry, rate limiting, caching, and structured logging.

Catalog clients inherit from this class to get HTTP handling for free.
The engine itself never retries: resilience lives here, in the transport.

Features:
- Persistent connection pooling via httpx.AsyncClient
- Automatic retry with exponential backoff (429, 5xx, timeouts)
- Per-client rate limiting (configurable delay between requests)
- TTL response caching (via mediasearch.utils.cache.ResponseCache)
- Structured logging for every request/response
- Custom exception mapping

An ``httpx.AsyncClient`` belongs to the event loop it was first used on,
so open one client per loop (``async with TMDBClient(...) as client``) and
share the ``ResponseCache`` between them instead.
"""
from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from mediasearch.utils.cache import ResponseCache
from mediasearch.utils.exceptions import (
    APIClientError,
    APIRateLimitError,
    APITimeoutError,
)

logger = structlog.get_logger(__name__)

# HTTP status codes that trigger automatic retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class AsyncBaseAPIClient(ABC):
    """Abstract base class for async catalog API clients.

    Args:
        base_url: The API's base URL (no trailing slash).
        rate_limit: Minimum seconds between consecutive requests.
        timeout: HTTP request timeout in seconds.
        max_retries: Maximum number of attempts per request.
        cache: Shared response cache; a private disabled cache when omitted.
        headers: Additional default headers to send with every request.
        default_params: Query parameters sent with every request (auth keys).
            They are left out of cache keys and logs.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        rate_limit: float = 0.0,
        timeout: int = 30,
        max_retries: int = 3,
        cache: ResponseCache | None = None,
        headers: dict[str, str] | None = None,
        default_params: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._rate_limit = rate_limit
        self._max_retries = max(1, max_retries)
        self._last_request_time: float = 0.0
        self._rate_lock = asyncio.Lock()
        self._client_name = self.__class__.__name__

        default_headers = {
            "Accept": "application/json",
            "User-Agent": "MediaSearch/1.0 (catalog-engine)",
        }
        if headers:
            default_headers.update(headers)

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout, connect=10),
            headers=default_headers,
            params=default_params or {},
            follow_redirects=True,
            transport=transport,
        )

        self._cache = cache if cache is not None else ResponseCache(ttl_seconds=0)

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release connections."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    # ── Public API ────────────────────────────────────────────────────

    async def get(
        self, endpoint: str, params: dict[str, Any] | None = None, use_cache: bool = True
    ) -> Any:
        """Make a cached, rate-limited GET request with retry.

        Args:
            endpoint: API endpoint path (e.g., "/discover/movie").
            params: Query parameters; ``None`` values are dropped.
            use_cache: Whether to use the response cache.

        Returns:
            Parsed JSON response.

        Raises:
            APIClientError: On non-retryable HTTP errors or exhausted retries.
            APIRateLimitError: When rate limited after all retries.
            APITimeoutError: On request timeout after all retries.
        """
        params = {k: v for k, v in (params or {}).items() if v is not None}

        cache_key = ResponseCache.make_key(f"{self._client_name}:GET:{endpoint}", **params)
        if use_cache:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("cache_hit", client=self._client_name, endpoint=endpoint)
                return cached

        result = await self._request_with_retry("GET", endpoint, params)

        if use_cache:
            self._cache.set(cache_key, result)

        return result

    # ── Internal Methods ──────────────────────────────────────────────

    async def _request_with_retry(
        self, method: str, endpoint: str, params: dict[str, Any]
    ) -> Any:
        """Execute an HTTP request with exponential backoff retry."""
        for attempt in range(1, self._max_retries + 1):
            try:
                await self._rate_limit_wait()

                logger.info(
                    "api_request",
                    client=self._client_name,
                    method=method,
                    endpoint=endpoint,
                    attempt=attempt,
                )

                start = time.monotonic()
                response = await self._client.request(method, endpoint, params=params)
                duration_ms = round((time.monotonic() - start) * 1000)

                logger.info(
                    "api_response",
                    client=self._client_name,
                    endpoint=endpoint,
                    status=response.status_code,
                    duration_ms=duration_ms,
                )

                if response.status_code == 429:
                    retry_after = float(response.headers.get("Retry-After", 2))
                    if attempt < self._max_retries:
                        logger.warning(
                            "rate_limited",
                            client=self._client_name,
                            retry_after=retry_after,
                            attempt=attempt,
                        )
                        await asyncio.sleep(retry_after)
                        continue
                    raise APIRateLimitError(
                        client_name=self._client_name, retry_after=retry_after
                    )

                if response.status_code in RETRYABLE_STATUS_CODES and attempt < self._max_retries:
                    backoff = 2 ** (attempt - 1)  # 1s, 2s, 4s
                    logger.warning(
                        "retryable_error",
                        client=self._client_name,
                        status=response.status_code,
                        backoff=backoff,
                        attempt=attempt,
                    )
                    await asyncio.sleep(backoff)
                    continue

                if response.status_code >= 400:
                    raise APIClientError(
                        message=f"{self._client_name}: HTTP {response.status_code} for {endpoint}",
                        client_name=self._client_name,
                        upstream_status=response.status_code,
                    )

                return response.json()

            except httpx.TimeoutException as e:
                if attempt < self._max_retries:
                    backoff = 2 ** (attempt - 1)
                    logger.warning(
                        "timeout_retry",
                        client=self._client_name,
                        endpoint=endpoint,
                        backoff=backoff,
                        attempt=attempt,
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise APITimeoutError(
                    client_name=self._client_name,
                    timeout=self._client.timeout.read or 30,
                ) from e

            except (APIClientError, APIRateLimitError, APITimeoutError):
                raise

            except httpx.HTTPError as e:
                if attempt < self._max_retries:
                    backoff = 2 ** (attempt - 1)
                    logger.warning(
                        "http_error_retry",
                        client=self._client_name,
                        error=str(e),
                        backoff=backoff,
                        attempt=attempt,
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise APIClientError(
                    message=f"{self._client_name}: {type(e).__name__} for {endpoint}: {e}",
                    client_name=self._client_name,
                ) from e

        raise APIClientError(
            message=f"{self._client_name}: All {self._max_retries} retries exhausted for {endpoint}",
            client_name=self._client_name,
        )

    async def _rate_limit_wait(self) -> None:
        """Enforce minimum delay between consecutive requests.

        Concurrent fan-out requests queue on the lock so the spacing holds
        across the whole client, not just per task.
        """
        if self._rate_limit <= 0:
            return

        async with self._rate_lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self._rate_limit:
                sleep_time = self._rate_limit - elapsed
                logger.debug(
                    "rate_limit_wait",
                    client=self._client_name,
                    sleep_seconds=round(sleep_time, 3),
                )
                await asyncio.sleep(sleep_time)
            self._last_request_time = time.monotonic()

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify the API is reachable. Used by /health endpoint."""
        ...
