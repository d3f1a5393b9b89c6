"""TMDB API v3 client for movie, TV, collection and channel data.

Base URL: https://api.themoviedb.org/3
Auth: ``api_key`` query parameter on every request
Rate Limit: ~50 req/sec per IP (no client-side delay by default)

This is the catalog boundary the engine depends on (see
``mediasearch.services.engine.MediaCatalog``):
- fetch_media_page (discover), search_media (multi search)
- fetch_collection_page, fetch_company_page
- get_network, get_company, get_movie_details, get_tv_details
- fetch_popular_page, get_genres

Discover and popular endpoints omit ``media_type``; the client tags every
item with the media type of the endpoint it came from.
"""
from __future__ import annotations

from typing import Any

import httpx
import structlog

from mediasearch.api_clients.base_client import AsyncBaseAPIClient
from mediasearch.models.api_schemas import (
    ChannelRecord,
    CollectionResult,
    Genre,
    Movie,
    MovieDetails,
    TvShow,
    TvShowDetails,
)
from mediasearch.models.query import MediaKind, MediaPage, PagedResult
from mediasearch.utils.cache import ResponseCache

logger = structlog.get_logger(__name__)


class TMDBClient(AsyncBaseAPIClient):
    """Async client for The Movie Database API v3."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        rate_limit: float = 0.0,
        timeout: int = 30,
        max_retries: int = 3,
        cache: ResponseCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            rate_limit=rate_limit,
            timeout=timeout,
            max_retries=max_retries,
            cache=cache,
            default_params={"api_key": api_key},
            transport=transport,
        )

    # ── Discover / Search ─────────────────────────────────────────────

    async def fetch_media_page(self, kind: MediaKind, params: dict[str, Any]) -> MediaPage:
        """Run /discover/{kind} with resolver-built query parameters.

        Args:
            kind: "movie" or "tv".
            params: Discover filters (``with_genres``, ``sort_by``, ``page`` ...).

        Returns:
            MediaPage with every item tagged with ``kind``.
        """
        data = await self.get(f"/discover/{kind}", params=params)
        parse = self._parse_movie if kind == "movie" else self._parse_tv
        return MediaPage(
            items=[parse(item) for item in data.get("results", [])],
            total_pages=self._total_pages(data),
        )

    async def search_media(self, query: str, page: int = 1) -> MediaPage:
        """Multi search restricted to movies and TV shows (people are dropped)."""
        data = await self.get("/search/multi", params={"query": query, "page": page})
        items = []
        for raw in data.get("results", []):
            media_type = raw.get("media_type")
            if media_type == "movie":
                items.append(self._parse_movie(raw))
            elif media_type == "tv":
                items.append(self._parse_tv(raw))
        return MediaPage(items=items, total_pages=self._total_pages(data))

    async def fetch_collection_page(self, query: str, page: int = 1) -> PagedResult[CollectionResult]:
        """Search movie collections by name."""
        data = await self.get("/search/collection", params={"query": query, "page": page})
        return PagedResult[CollectionResult](
            items=[self._parse_collection(raw) for raw in data.get("results", [])],
            total_pages=self._total_pages(data),
        )

    async def fetch_company_page(self, query: str, page: int = 1) -> PagedResult[ChannelRecord]:
        """Search production companies by name (raw, logos unchecked)."""
        data = await self.get("/search/company", params={"query": query, "page": page})
        return PagedResult[ChannelRecord](
            items=[self._parse_channel(raw) for raw in data.get("results", [])],
            total_pages=self._total_pages(data),
        )

    async def fetch_popular_page(self, kind: MediaKind, page: int = 1) -> MediaPage:
        """/movie/popular or /tv/popular."""
        data = await self.get(f"/{kind}/popular", params={"page": page})
        parse = self._parse_movie if kind == "movie" else self._parse_tv
        return MediaPage(
            items=[parse(item) for item in data.get("results", [])],
            total_pages=self._total_pages(data),
        )

    # ── Details ───────────────────────────────────────────────────────

    async def get_network(self, network_id: int) -> ChannelRecord:
        data = await self.get(f"/network/{network_id}")
        return self._parse_channel(data)

    async def get_company(self, company_id: int) -> ChannelRecord:
        data = await self.get(f"/company/{company_id}")
        return self._parse_channel(data)

    async def get_movie_details(self, movie_id: int) -> MovieDetails:
        """Movie details, trimmed to what channel discovery needs."""
        data = await self.get(f"/movie/{movie_id}")
        return MovieDetails(
            id=data.get("id", movie_id),
            title=data.get("title") or "Unknown",
            production_companies=[
                self._parse_channel(c) for c in data.get("production_companies") or []
            ],
        )

    async def get_tv_details(self, tv_id: int) -> TvShowDetails:
        """TV show details, trimmed to what channel discovery needs."""
        data = await self.get(f"/tv/{tv_id}")
        return TvShowDetails(
            id=data.get("id", tv_id),
            name=data.get("name") or "Unknown",
            networks=[self._parse_channel(n) for n in data.get("networks") or []],
        )

    async def get_genres(self, kind: MediaKind) -> list[Genre]:
        data = await self.get(f"/genre/{kind}/list")
        return [Genre(id=g["id"], name=g.get("name", "")) for g in data.get("genres", [])]

    # ── Health Check ──────────────────────────────────────────────────

    async def health_check(self) -> bool:
        """Verify TMDB is reachable and the API key is accepted."""
        try:
            await self.get("/configuration", use_cache=False)
            return True
        except Exception:
            return False

    # ── Private Parsers ───────────────────────────────────────────────

    @staticmethod
    def _total_pages(data: dict[str, Any]) -> int:
        return max(0, int(data.get("total_pages") or 0))

    @staticmethod
    def _parse_movie(raw: dict[str, Any]) -> Movie:
        """Parse raw TMDB movie JSON into a Movie model."""
        return Movie(
            id=raw.get("id", 0),
            title=raw.get("title") or raw.get("original_title") or "Unknown",
            release_date=raw.get("release_date") or None,
            popularity=raw.get("popularity") or 0.0,
            vote_average=raw.get("vote_average") or 0.0,
            genre_ids=frozenset(raw.get("genre_ids") or []),
            original_language=raw.get("original_language") or "",
            backdrop_path=raw.get("backdrop_path"),
            poster_path=raw.get("poster_path"),
            overview=raw.get("overview") or "",
        )

    @staticmethod
    def _parse_tv(raw: dict[str, Any]) -> TvShow:
        """Parse raw TMDB TV JSON into a TvShow model."""
        return TvShow(
            id=raw.get("id", 0),
            name=raw.get("name") or raw.get("original_name") or "Unknown",
            first_air_date=raw.get("first_air_date") or None,
            popularity=raw.get("popularity") or 0.0,
            vote_average=raw.get("vote_average") or 0.0,
            genre_ids=frozenset(raw.get("genre_ids") or []),
            original_language=raw.get("original_language") or "",
            backdrop_path=raw.get("backdrop_path"),
            poster_path=raw.get("poster_path"),
            overview=raw.get("overview") or "",
        )

    @staticmethod
    def _parse_collection(raw: dict[str, Any]) -> CollectionResult:
        return CollectionResult(
            id=raw.get("id", 0),
            name=raw.get("name") or "Unknown",
            backdrop_path=raw.get("backdrop_path"),
            poster_path=raw.get("poster_path"),
            overview=raw.get("overview") or "",
        )

    @staticmethod
    def _parse_channel(raw: dict[str, Any]) -> ChannelRecord:
        return ChannelRecord(
            id=raw.get("id", 0),
            name=raw.get("name") or "",
            logo_path=raw.get("logo_path"),
            origin_country=raw.get("origin_country") or "",
        )
