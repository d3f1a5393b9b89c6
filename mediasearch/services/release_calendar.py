"""Movie and TV releases within a date window (calendar view)."""
from __future__ import annotations

import asyncio
from datetime import date
from typing import TYPE_CHECKING

import structlog

from mediasearch.models.api_schemas import MediaItem
from mediasearch.models.query import MediaKind, MediaPage
from mediasearch.utils.exceptions import InputValidationError

if TYPE_CHECKING:
    from mediasearch.services.engine import MediaCatalog

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_LIMIT = 5

_DATE_FIELD: dict[MediaKind, str] = {"movie": "primary_release_date", "tv": "first_air_date"}


async def releases_in_range(
    catalog: MediaCatalog, start: date, end: date, page_limit: int = DEFAULT_PAGE_LIMIT
) -> list[MediaItem]:
    """Popular movies and shows released between ``start`` and ``end`` (inclusive).

    Fetches ``page_limit`` discover pages per media kind concurrently. A
    failed page contributes nothing. Items are deduplicated on
    ``(media_type, id)``, keeping the first occurrence (movies first).

    Raises:
        InputValidationError: If ``end`` is before ``start``.
    """
    if end < start:
        raise InputValidationError("end date must not be before start date")

    async def fetch(kind: MediaKind, page: int) -> MediaPage:
        field = _DATE_FIELD[kind]
        return await catalog.fetch_media_page(
            kind,
            {
                f"{field}.gte": start.isoformat(),
                f"{field}.lte": end.isoformat(),
                "sort_by": "popularity.desc",
                "page": page,
            },
        )

    requests = [
        fetch(kind, page)
        for kind in ("movie", "tv")
        for page in range(1, max(1, page_limit) + 1)
    ]
    pages = await asyncio.gather(*requests, return_exceptions=True)

    seen: dict[tuple[str, int], MediaItem] = {}
    failed = 0
    for page in pages:
        if isinstance(page, Exception):
            failed += 1
            continue
        if isinstance(page, BaseException):
            raise page
        for item in page.items:
            seen.setdefault(item.identity, item)

    if failed:
        logger.warning("release_pages_failed", failed=failed, requested=len(requests))
    logger.info("releases_loaded", start=start.isoformat(), end=end.isoformat(), items=len(seen))
    return list(seen.values())
