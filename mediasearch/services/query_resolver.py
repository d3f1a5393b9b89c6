"""Discover query resolution.

Turns a ``DiscoverQuery`` into the concrete discover request(s) for the
catalog and, for the virtual "anime" type, merges the two result streams.

Request parameter rules:
- movie / tv: one request. Include-genres are comma-joined (all must match)
  or pipe-joined (``GenreMatch.ANY``). Newest-first sorts add a "released by
  today" upper bound so unreleased titles do not float to the top.
- anime: one movie and one TV request, both forced to Japanese-language
  Animation. Date sorts are not comparable across the two sources and fall
  back to popularity.

The resolver never retries. Transport errors propagate; on the anime path a
failure of either sub-request fails the whole query.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date
from typing import TYPE_CHECKING, Any

import structlog

from mediasearch.models.genres import ANIMATION_GENRE_ID, ANIME_LANGUAGE
from mediasearch.models.query import (
    CompanyFilter,
    DiscoverQuery,
    GenreMatch,
    MediaFetchSpec,
    MediaKind,
    MediaPage,
    NetworkFilter,
    SortKey,
)

if TYPE_CHECKING:
    from mediasearch.services.engine import MediaCatalog

logger = structlog.get_logger(__name__)

# Date field per media kind, used for sort keys and range bounds
_DATE_FIELD: dict[MediaKind, str] = {
    "movie": "primary_release_date",
    "tv": "first_air_date",
}

_YEAR_PARAM: dict[MediaKind, str] = {
    "movie": "primary_release_year",
    "tv": "first_air_date_year",
}


def min_release_date_for_max_age(max_age: int, today: date | None = None) -> date:
    """Earliest release date for a "no older than N years" filter.

    Examples:
        >>> min_release_date_for_max_age(5, date(2024, 6, 30))
        datetime.date(2019, 1, 1)
    """
    today = today or date.today()
    return date(today.year - max_age, 1, 1)


def _join_ids(ids: Any, separator: str) -> str:
    return separator.join(str(i) for i in sorted(set(ids)))


def _sort_param(sort_key: SortKey, kind: MediaKind) -> str:
    if sort_key.is_date:
        direction = "desc" if sort_key.is_descending else "asc"
        return f"{_DATE_FIELD[kind]}.{direction}"
    return sort_key.value


def _common_params(query: DiscoverQuery) -> dict[str, Any]:
    params: dict[str, Any] = {"page": query.page}
    if query.min_vote_average is not None:
        params["vote_average.gte"] = query.min_vote_average
    if query.watch_provider is not None:
        params["with_watch_providers"] = query.watch_provider
        if query.watch_region:
            params["watch_region"] = query.watch_region
    return params


def _channel_params(query: DiscoverQuery, kind: MediaKind) -> dict[str, Any]:
    """Company filters apply to movie requests, network filters to TV ones."""
    channel = query.channel
    if kind == "movie" and isinstance(channel, CompanyFilter):
        return {"with_companies": _join_ids(channel.ids, "|")}
    if kind == "tv" and isinstance(channel, NetworkFilter):
        return {"with_networks": _join_ids(channel.ids, "|")}
    return {}


def _date_params(query: DiscoverQuery, kind: MediaKind) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if query.year is not None:
        params[_YEAR_PARAM[kind]] = query.year
    if query.min_release_date is not None:
        params[f"{_DATE_FIELD[kind]}.gte"] = query.min_release_date.isoformat()
    return params


def _anime_genre_param(include_genres: frozenset[int]) -> str:
    """Animation AND any-of the other selected genres."""
    others = sorted(set(include_genres) - {ANIMATION_GENRE_ID})
    if not others:
        return str(ANIMATION_GENRE_ID)
    return f"{ANIMATION_GENRE_ID},{'|'.join(str(g) for g in others)}"


def _media_spec(query: DiscoverQuery, kind: MediaKind, today: date) -> MediaFetchSpec:
    params = _common_params(query)
    params["sort_by"] = _sort_param(query.sort_key, kind)

    if query.include_genres:
        separator = "|" if query.genre_match is GenreMatch.ANY else ","
        params["with_genres"] = _join_ids(query.include_genres, separator)
    if query.exclude_genres:
        params["without_genres"] = _join_ids(query.exclude_genres, ",")
    if query.original_language:
        params["with_original_language"] = query.original_language

    params.update(_date_params(query, kind))
    params.update(_channel_params(query, kind))

    if query.sort_key is SortKey.RELEASE_DATE_DESC:
        params[f"{_DATE_FIELD[kind]}.lte"] = today.isoformat()

    return MediaFetchSpec(kind=kind, params=params)


def _anime_spec(query: DiscoverQuery, kind: MediaKind) -> MediaFetchSpec:
    params = _common_params(query)
    sort_key = SortKey.POPULARITY_DESC if query.sort_key.is_date else query.sort_key
    params["sort_by"] = sort_key.value
    params["with_genres"] = _anime_genre_param(query.include_genres)
    params["with_original_language"] = ANIME_LANGUAGE

    params.update(_date_params(query, kind))
    params.update(_channel_params(query, kind))

    return MediaFetchSpec(kind=kind, params=params)


def build_fetch_specs(query: DiscoverQuery, today: date | None = None) -> list[MediaFetchSpec]:
    """Translate a discover query into backend requests.

    Args:
        query: The discover intent.
        today: Reference date for "released by today" bounds.

    Returns:
        One spec for movie/tv, two (movie first, then tv) for anime.
    """
    today = today or date.today()
    if query.type == "anime":
        return [_anime_spec(query, "movie"), _anime_spec(query, "tv")]
    return [_media_spec(query, query.type, today)]


def merge_anime_pages(movies: MediaPage, shows: MediaPage, sort_key: SortKey) -> MediaPage:
    """Concatenate anime movie and TV pages (movies first) and re-sort.

    The re-sort is stable and always descending: rating sorts order by
    ``vote_average``, everything else by ``popularity``.
    """
    combined = [*movies.items, *shows.items]
    if sort_key.is_rating:
        combined.sort(key=lambda item: item.vote_average or 0.0, reverse=True)
    else:
        combined.sort(key=lambda item: item.popularity or 0.0, reverse=True)
    return MediaPage(items=combined, total_pages=max(movies.total_pages, shows.total_pages))


class QueryResolver:
    """Resolves discover queries against a media catalog.

    Args:
        catalog: Anything implementing ``fetch_media_page(kind, params)``.
        today: Clock for date bounds (tests pin it).
    """

    def __init__(self, catalog: MediaCatalog, today: Callable[[], date] = date.today) -> None:
        self._catalog = catalog
        self._today = today

    async def resolve(self, query: DiscoverQuery) -> MediaPage:
        specs = build_fetch_specs(query, self._today())

        if query.type != "anime":
            (spec,) = specs
            page = await self._catalog.fetch_media_page(spec.kind, spec.params)
            logger.info(
                "discover_resolved",
                type=query.type,
                page=query.page,
                items=len(page.items),
                total_pages=page.total_pages,
            )
            return page

        # No isolation: either sub-request failing fails the anime query
        movies, shows = await asyncio.gather(
            *(self._catalog.fetch_media_page(spec.kind, spec.params) for spec in specs)
        )
        merged = merge_anime_pages(movies, shows, query.sort_key)
        logger.info(
            "discover_resolved",
            type=query.type,
            page=query.page,
            movie_items=len(movies.items),
            tv_items=len(shows.items),
            total_pages=merged.total_pages,
        )
        return merged
