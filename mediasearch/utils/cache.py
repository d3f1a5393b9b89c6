"""In-memory caches shared by the catalog client and the engine.

Two flavours live here:

- ``ResponseCache``: TTL cache for raw catalog API responses, keyed by
  endpoint + query parameters. Entries expire and the store is bounded.
- ``CatalogCache``: read-through, populate-once cache for static data
  (genre maps, per-id details, discovered network/studio catalogs).
  Entries never expire or get evicted within a session; the first value
  stored for a key wins.

Usage:
    responses = ResponseCache(ttl_seconds=300, max_size=512)
    responses.set("GET:/search/company:page=1&query=a24", data)

    catalogs = CatalogCache()
    networks = catalogs.get("networks:popular")
    if networks is None:
        networks = catalogs.populate("networks:popular", await fetch())
"""
from __future__ import annotations

import threading
import time
from typing import Any


class ResponseCache:
    """Thread-safe TTL cache with max size eviction.

    Attributes:
        _store: Dict mapping cache keys to (expiry_timestamp, value) tuples.
        _ttl: Time-to-live in seconds (0 disables caching entirely).
        _max_size: Maximum number of entries before eviction.
        _lock: Threading lock; the cache is shared across requests.
    """

    def __init__(self, ttl_seconds: int = 300, max_size: int = 512) -> None:
        self._store: dict[str, tuple[float, Any]] = {}
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expiry, value = entry
            if time.monotonic() < expiry:
                return value
            del self._store[key]
        return None

    def set(self, key: str, value: Any) -> None:
        """Store a value with the configured TTL.

        When full, expired entries are dropped first, then the entry
        closest to expiry.
        """
        if not self.enabled:
            return
        with self._lock:
            if len(self._store) >= self._max_size and key not in self._store:
                now = time.monotonic()
                self._store = {k: v for k, v in self._store.items() if v[0] > now}
                if len(self._store) >= self._max_size:
                    oldest_key = min(self._store, key=lambda k: self._store[k][0])
                    del self._store[oldest_key]

            self._store[key] = (time.monotonic() + self._ttl, value)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    @property
    def size(self) -> int:
        """Current number of entries (including potentially expired)."""
        return len(self._store)

    @staticmethod
    def make_key(prefix: str, **params: Any) -> str:
        """Build a deterministic key from a prefix and query parameters.

        Example:
            >>> ResponseCache.make_key("GET:/search/company", query="a24", page=1)
            'GET:/search/company:page=1&query=a24'
        """
        parts = "&".join(f"{k}={v}" for k, v in sorted(params.items()) if v is not None)
        return f"{prefix}:{parts}" if parts else prefix


class CatalogCache:
    """Process-wide memo of static catalog data.

    ``populate`` is first-write-wins: when two concurrent callers both
    miss and fetch, the later one gets the value stored by the earlier,
    so every consumer sees a single value per key for the session.
    """

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._store.get(key)

    def populate(self, key: str, value: Any) -> Any:
        """Store ``value`` unless the key is already populated.

        Returns:
            The value held for ``key`` after the call.
        """
        with self._lock:
            return self._store.setdefault(key, value)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        return len(self._store)
