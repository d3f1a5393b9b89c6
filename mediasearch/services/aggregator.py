"""Free-text search across media, collections and channels.

``search_all`` fans out independent sub-searches in parallel and merges
them into one ranked page:

    media (movie + tv) ──┐
    collections ─────────┤
    companies ───────────┼──> channel merge ──> rank ──> AggregateSearchResult
    networks (page 1) ───┘

A failing sub-search contributes nothing instead of failing the call.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from mediasearch.models.api_schemas import ChannelRecord
from mediasearch.models.query import AggregateSearchResult, MediaSearchPage
from mediasearch.services.identity_merger import merge_network_company
from mediasearch.services.normalizer import has_displayable_image
from mediasearch.services.relevance import rank

if TYPE_CHECKING:
    from mediasearch.services.channel_catalog import ChannelCatalogService
    from mediasearch.services.engine import MediaCatalog

logger = structlog.get_logger(__name__)


@dataclass
class _Contribution:
    """What one sub-search adds to the aggregate."""
    items: list[Any] = field(default_factory=list)
    total_pages: int = 0
    hidden_count: int = 0


def split_by_backdrop(items: Sequence[Any], include_imageless: bool) -> tuple[list[Any], int]:
    """Apply the default "backdrop required" view.

    Returns:
        (items to show, number hidden from the default view). With
        ``include_imageless`` every item is shown and the hidden count is 0.
    """
    if include_imageless:
        return list(items), 0
    kept = [item for item in items if has_displayable_image(item.backdrop_path)]
    return kept, len(items) - len(kept)


class ResultAggregator:
    """Runs ``search_all`` against a catalog and the cached network list.

    Args:
        catalog: Catalog client (multi, collection and company search).
        channel_catalog: Source of the pre-loaded popular network list.
    """

    def __init__(self, catalog: MediaCatalog, channel_catalog: ChannelCatalogService) -> None:
        self._catalog = catalog
        self._channels = channel_catalog

    async def search_media(
        self, text: str, page: int = 1, include_imageless: bool = False
    ) -> MediaSearchPage:
        """Movies and TV shows matching ``text``, backdrop-filtered."""
        raw = await self._catalog.search_media(text, page)
        items, hidden = split_by_backdrop(raw.items, include_imageless)
        return MediaSearchPage(items=items, total_pages=raw.total_pages, hidden_count=hidden)

    async def _collections(self, text: str, page: int, include_imageless: bool) -> _Contribution:
        raw = await self._catalog.fetch_collection_page(text, page)
        items, hidden = split_by_backdrop(raw.items, include_imageless)
        return _Contribution(items=items, total_pages=raw.total_pages, hidden_count=hidden)

    async def _media(self, text: str, page: int, include_imageless: bool) -> _Contribution:
        result = await self.search_media(text, page, include_imageless)
        return _Contribution(
            items=list(result.items),
            total_pages=result.total_pages,
            hidden_count=result.hidden_count,
        )

    async def _companies(self, text: str, page: int) -> _Contribution:
        raw = await self._catalog.fetch_company_page(text, page)
        # Logo-less companies are dropped without being counted as hidden
        items = [c for c in raw.items if has_displayable_image(c.logo_path)]
        return _Contribution(items=items, total_pages=raw.total_pages)

    async def _networks(self, text: str) -> _Contribution:
        # Only the already-loaded catalog is searched; a cold cache matches nothing
        needle = text.lower()
        networks = self._channels.cached_popular_networks()
        matches = [n for n in networks if needle in n.name.lower()]
        return _Contribution(items=matches)

    async def search_all(
        self, text: str, page: int = 1, include_imageless: bool = False
    ) -> AggregateSearchResult:
        """Search everything and return one ranked page.

        Args:
            text: Sanitized free-text query.
            page: 1-based page; networks are only matched on page 1.
            include_imageless: Keep media/collections without a backdrop.

        Returns:
            AggregateSearchResult. ``total_pages`` is the max over the media,
            company and collection searches that succeeded; ``hidden_count``
            covers media and collections only.
        """
        sources: dict[str, Awaitable[_Contribution]] = {
            "media": self._media(text, page, include_imageless),
            "collections": self._collections(text, page, include_imageless),
            "companies": self._companies(text, page),
        }
        if page == 1:
            sources["networks"] = self._networks(text)

        outcomes = await asyncio.gather(*sources.values(), return_exceptions=True)

        parts: dict[str, _Contribution] = {}
        for name, outcome in zip(sources, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    "search_subquery_failed",
                    source=name,
                    query=text,
                    page=page,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                parts[name] = _Contribution()
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                parts[name] = outcome

        media = parts["media"]
        collections = parts["collections"]
        companies = parts["companies"]
        networks = parts.get("networks", _Contribution())

        company_records: list[ChannelRecord] = companies.items
        network_records: list[ChannelRecord] = networks.items
        channels = merge_network_company(network_records, company_records)

        ranked = rank([*media.items, *collections.items, *channels], text)

        result = AggregateSearchResult(
            results=ranked,
            total_pages=max(media.total_pages, companies.total_pages, collections.total_pages),
            hidden_count=media.hidden_count + collections.hidden_count,
        )
        logger.info(
            "search_completed",
            query=text,
            page=page,
            media=len(media.items),
            collections=len(collections.items),
            channels=len(channels),
            total_pages=result.total_pages,
            hidden_count=result.hidden_count,
        )
        return result
