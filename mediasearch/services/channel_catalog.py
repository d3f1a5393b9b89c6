"""Memoized channel, studio and genre catalogs.

Everything here is expensive to discover (dozens of detail lookups) and
stable for the life of the process, so results go into the shared
``CatalogCache`` once and are never refreshed. Individual lookup failures
are skipped; only a failure to list the source pages propagates.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from mediasearch.models.api_schemas import ChannelEntity, ChannelRecord, Genre
from mediasearch.models.genres import ANIMATION_GENRE_ID, ANIME_LANGUAGE
from mediasearch.models.query import ChannelDirectory, MediaKind
from mediasearch.services.identity_merger import is_member, merge_channels
from mediasearch.services.normalizer import has_displayable_image
from mediasearch.utils.cache import CatalogCache

if TYPE_CHECKING:
    from mediasearch.services.engine import MediaCatalog

logger = structlog.get_logger(__name__)

V = TypeVar("V")

NETWORKS_KEY = "networks:popular"

# Streaming networks mapped to their TMDB watch-provider ids
NETWORK_WATCH_PROVIDERS: dict[int, int] = {
    213: 8,      # Netflix
    1024: 9,     # Amazon Prime Video
    2739: 337,   # Disney+
    2552: 350,   # Apple TV+
    453: 15,     # Hulu
    3353: 386,   # Peacock
    49: 384,     # HBO
    4330: 531,   # Paramount+
}


def provider_id_for_network(network_id: int) -> int | None:
    """Watch-provider id for a well-known network, if there is one."""
    return NETWORK_WATCH_PROVIDERS.get(network_id)


def _unique_with_logo(records: Iterable[ChannelRecord]) -> list[ChannelRecord]:
    """Dedupe by id (last record for an id wins, first position kept), logo required."""
    by_id: dict[int, ChannelRecord] = {}
    for record in records:
        if has_displayable_image(record.logo_path):
            by_id[record.id] = record
    return list(by_id.values())


async def _gather_ok(coros: Iterable[Awaitable[V]], event: str) -> list[V]:
    """Await concurrently, dropping (and logging) individual failures."""
    results = await asyncio.gather(*coros, return_exceptions=True)
    ok: list[V] = []
    for result in results:
        if isinstance(result, Exception):
            logger.warning(event, error=str(result), error_type=type(result).__name__)
        elif isinstance(result, BaseException):
            raise result
        else:
            ok.append(result)
    return ok


class ChannelCatalogService:
    """Discovers and memoizes networks, studios and genre vocabularies.

    Args:
        catalog: Catalog client (details, popular and discover pages).
        cache: Process-wide populate-once cache.
        popular_network_ids: Networks always included and flagged popular.
        discovery_pages: How many listing pages to mine for channels.
    """

    def __init__(
        self,
        catalog: MediaCatalog,
        cache: CatalogCache,
        popular_network_ids: Iterable[int] = (),
        discovery_pages: int = 5,
    ) -> None:
        self._catalog = catalog
        self._cache = cache
        self._popular_ids = tuple(popular_network_ids)
        self._pages = max(1, discovery_pages)

    async def _memoized(self, key: str, load: Callable[[], Awaitable[V]]) -> V:
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        value = await load()
        return self._cache.populate(key, value)

    # ── Networks ──────────────────────────────────────────────────────

    async def get_popular_networks(self) -> list[ChannelRecord]:
        """Raw network catalog: guaranteed popular ids plus discovered ones.

        Deduplicated by id; networks without a logo are dropped. An empty
        load (catalog unreachable) is returned but not memoized.
        """
        cached = self._cache.get(NETWORKS_KEY)
        if cached is not None:
            return cached
        networks = await self._load_networks()
        if not networks:
            return networks
        return self._cache.populate(NETWORKS_KEY, networks)

    def cached_popular_networks(self) -> list[ChannelRecord]:
        """The network catalog if it has been loaded, else an empty list.

        Never touches the catalog API.
        """
        return self._cache.get(NETWORKS_KEY) or []

    async def warm(self) -> int:
        """Load the network catalog ahead of the first search.

        Returns:
            Number of networks held after the load.
        """
        networks = await self.get_popular_networks()
        logger.info("network_catalog_warmed", networks=len(networks), cached=NETWORKS_KEY in self._cache)
        return len(networks)

    async def _load_networks(self) -> list[ChannelRecord]:
        guaranteed, discovered = await asyncio.gather(
            _gather_ok(
                (self._catalog.get_network(nid) for nid in self._popular_ids),
                "network_lookup_failed",
            ),
            self._discover_networks(),
        )
        networks = _unique_with_logo([*guaranteed, *discovered])
        logger.info(
            "network_catalog_loaded",
            guaranteed=len(guaranteed),
            discovered=len(discovered),
            networks=len(networks),
        )
        return networks

    async def _discover_networks(self) -> list[ChannelRecord]:
        pages = await _gather_ok(
            (self._catalog.fetch_popular_page("tv", page) for page in range(1, self._pages + 1)),
            "popular_page_failed",
        )
        show_ids = [item.id for page in pages for item in page.items]
        details = await _gather_ok(
            (self._tv_details(show_id) for show_id in show_ids), "tv_details_failed"
        )
        return [network for show in details for network in show.networks]

    async def get_network_catalog(self) -> ChannelDirectory:
        """Merged networks split into the popular set and the rest."""
        merged = merge_channels(await self.get_popular_networks(), kind="network")
        popular: list[ChannelEntity] = []
        other: list[ChannelEntity] = []
        for entity in merged:
            (popular if is_member(entity.id, self._popular_ids) else other).append(entity)
        return ChannelDirectory(popular=popular, other=other)

    # ── Studios ───────────────────────────────────────────────────────

    async def get_movie_studios(self) -> list[ChannelEntity]:
        """Production companies behind currently popular movies."""
        records = await self._memoized("studios:movie", self._load_movie_studios)
        return merge_channels(records, kind="company")

    async def get_anime_studios(self) -> list[ChannelEntity]:
        """Production companies behind popular Japanese animated movies."""
        records = await self._memoized("studios:anime", self._load_anime_studios)
        return merge_channels(records, kind="company")

    async def _load_movie_studios(self) -> list[ChannelRecord]:
        pages = await asyncio.gather(
            *(self._catalog.fetch_popular_page("movie", page) for page in range(1, self._pages + 1))
        )
        return await self._companies_of([item.id for page in pages for item in page.items])

    async def _load_anime_studios(self) -> list[ChannelRecord]:
        params: dict[str, Any] = {
            "with_genres": ANIMATION_GENRE_ID,
            "with_original_language": ANIME_LANGUAGE,
            "sort_by": "popularity.desc",
        }
        pages = await asyncio.gather(
            *(
                self._catalog.fetch_media_page("movie", {**params, "page": page})
                for page in range(1, self._pages + 1)
            )
        )
        return await self._companies_of([item.id for page in pages for item in page.items])

    async def _companies_of(self, movie_ids: list[int]) -> list[ChannelRecord]:
        details = await _gather_ok(
            (self._movie_details(movie_id) for movie_id in movie_ids), "movie_details_failed"
        )
        companies = _unique_with_logo(c for movie in details for c in movie.production_companies)
        logger.info("studios_discovered", movies=len(details), companies=len(companies))
        return companies

    # ── Per-id details ────────────────────────────────────────────────

    async def _tv_details(self, tv_id: int):
        return await self._memoized(f"tv:{tv_id}", lambda: self._catalog.get_tv_details(tv_id))

    async def _movie_details(self, movie_id: int):
        return await self._memoized(
            f"movie:{movie_id}", lambda: self._catalog.get_movie_details(movie_id)
        )

    # ── Genres ────────────────────────────────────────────────────────

    async def get_genre_map(self, kind: MediaKind) -> dict[int, str]:
        """Genre id -> name for movies or TV."""

        async def load() -> dict[int, str]:
            genres: list[Genre] = await self._catalog.get_genres(kind)
            return {g.id: g.name for g in genres}

        return await self._memoized(f"genres:{kind}", load)

    async def get_combined_genre_map(self) -> dict[int, str]:
        """Movie and TV genres in one map; TV names win on shared ids."""
        movie, tv = await asyncio.gather(self.get_genre_map("movie"), self.get_genre_map("tv"))
        return {**movie, **tv}
