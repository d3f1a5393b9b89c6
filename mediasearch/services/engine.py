"""Media query engine facade.

Wires a catalog client, the shared caches, the query resolver, the result
aggregator and the channel catalog behind two entry points:

- ``resolve_discover_query(query, token)`` for filter/sort/paginate browsing
- ``search_all(text, page, include_imageless, token)`` for free-text search

"Latest query wins" is explicit: callers take a ``CancellationToken`` from a
``QueryGeneration``; once a newer token has been issued (or the token is
cancelled) the older call returns ``None`` instead of its result.
"""
from __future__ import annotations

import itertools
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Optional, Protocol

import structlog

from mediasearch.api_clients.tmdb_client import TMDBClient
from mediasearch.config import Settings
from mediasearch.models.api_schemas import (
    ChannelRecord,
    CollectionResult,
    Genre,
    MediaItem,
    MovieDetails,
    TvShowDetails,
)
from mediasearch.models.query import (
    AggregateSearchResult,
    DiscoverQuery,
    MediaKind,
    MediaPage,
    PagedResult,
)
from mediasearch.services.aggregator import ResultAggregator
from mediasearch.services.channel_catalog import ChannelCatalogService
from mediasearch.services.query_resolver import QueryResolver
from mediasearch.services.release_calendar import releases_in_range
from mediasearch.utils.cache import CatalogCache, ResponseCache
from mediasearch.utils.sanitizer import clean_search_text

logger = structlog.get_logger(__name__)


class MediaCatalog(Protocol):
    """Catalog capability the engine depends on (``TMDBClient`` implements it)."""

    async def fetch_media_page(self, kind: MediaKind, params: dict[str, Any]) -> MediaPage: ...

    async def search_media(self, query: str, page: int = 1) -> MediaPage: ...

    async def fetch_collection_page(self, query: str, page: int = 1) -> PagedResult[CollectionResult]: ...

    async def fetch_company_page(self, query: str, page: int = 1) -> PagedResult[ChannelRecord]: ...

    async def fetch_popular_page(self, kind: MediaKind, page: int = 1) -> MediaPage: ...

    async def get_network(self, network_id: int) -> ChannelRecord: ...

    async def get_movie_details(self, movie_id: int) -> MovieDetails: ...

    async def get_tv_details(self, tv_id: int) -> TvShowDetails: ...

    async def get_genres(self, kind: MediaKind) -> list[Genre]: ...


# ── Cancellation ──────────────────────────────────────────────────────

class CancellationToken:
    """Handle for one in-flight query.

    A token is live until it is cancelled explicitly or its generation
    issues a newer token.
    """

    def __init__(self, generation: QueryGeneration, number: int) -> None:
        self._generation = generation
        self._number = number
        self._cancelled = False

    @property
    def number(self) -> int:
        return self._number

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled or self._generation.current != self._number


class QueryGeneration:
    """Monotonic counter that supersedes older tokens when a new one is issued."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._current = 0
        self._lock = threading.Lock()

    @property
    def current(self) -> int:
        return self._current

    def next_token(self) -> CancellationToken:
        with self._lock:
            self._current = next(self._counter)
            return CancellationToken(self, self._current)


# ── Engine ────────────────────────────────────────────────────────────

class MediaQueryEngine:
    """Entry point for discover, search and catalog lookups.

    Args:
        catalog: Catalog client implementing ``MediaCatalog``.
        catalog_cache: Populate-once cache for channel and genre catalogs.
        popular_network_ids: Networks always listed and flagged popular.
        discovery_pages: Listing pages mined when discovering channels.
        search_max_length: Free-text queries are truncated to this length.
    """

    def __init__(
        self,
        catalog: MediaCatalog,
        catalog_cache: CatalogCache | None = None,
        popular_network_ids: tuple[int, ...] = (),
        discovery_pages: int = 5,
        search_max_length: int = 200,
    ) -> None:
        self._catalog = catalog
        self.channels = ChannelCatalogService(
            catalog,
            catalog_cache if catalog_cache is not None else CatalogCache(),
            popular_network_ids=popular_network_ids,
            discovery_pages=discovery_pages,
        )
        self.resolver = QueryResolver(catalog)
        self.aggregator = ResultAggregator(catalog, self.channels)
        self._search_max_length = search_max_length

    @staticmethod
    def _superseded(token: Optional[CancellationToken], operation: str) -> bool:
        if token is not None and token.is_cancelled:
            logger.info("query_superseded", operation=operation, token=token.number)
            return True
        return False

    async def resolve_discover_query(
        self, query: DiscoverQuery, token: Optional[CancellationToken] = None
    ) -> Optional[MediaPage]:
        """Resolve a discover query.

        Returns:
            The page, or ``None`` when ``token`` was superseded before the
            result was ready.

        Raises:
            APIClientError: On transport failure (including either anime
                sub-request).
        """
        if self._superseded(token, "discover"):
            return None
        page = await self.resolver.resolve(query)
        if self._superseded(token, "discover"):
            return None
        return page

    async def search_all(
        self,
        text: str,
        page: int = 1,
        include_imageless: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> Optional[AggregateSearchResult]:
        """Ranked free-text search over media, collections and channels.

        Raises:
            ValueError: If ``text`` is empty after cleaning.
        """
        cleaned = clean_search_text(text, max_length=self._search_max_length)
        if self._superseded(token, "search"):
            return None
        result = await self.aggregator.search_all(cleaned, max(1, page), include_imageless)
        if self._superseded(token, "search"):
            return None
        return result

    async def releases_in_range(self, start: date, end: date) -> list[MediaItem]:
        return await releases_in_range(self._catalog, start, end)

    async def warm(self) -> int:
        """Pre-load the network catalog that page-1 searches match against."""
        return await self.channels.warm()


@asynccontextmanager
async def open_engine(
    settings: Settings,
    response_cache: ResponseCache | None = None,
    catalog_cache: CatalogCache | None = None,
) -> AsyncIterator[MediaQueryEngine]:
    """Build an engine over a fresh ``TMDBClient`` for the running loop.

    The HTTP client is closed on exit; the caches outlive it and should be
    shared across calls.
    """
    async with TMDBClient(
        api_key=settings.TMDB_API_KEY,
        base_url=settings.TMDB_BASE_URL,
        rate_limit=settings.TMDB_RATE_LIMIT,
        timeout=settings.HTTP_TIMEOUT,
        max_retries=settings.HTTP_MAX_RETRIES,
        cache=response_cache,
    ) as client:
        yield MediaQueryEngine(
            client,
            catalog_cache=catalog_cache,
            popular_network_ids=tuple(settings.POPULAR_NETWORK_IDS),
            discovery_pages=settings.CATALOG_DISCOVERY_PAGES,
            search_max_length=settings.SEARCH_QUERY_MAX_LENGTH,
        )
