"""Unit tests for the free-text search aggregator."""
import asyncio
from unittest.mock import MagicMock

import pytest

from mediasearch.models.api_schemas import ChannelEntity, ChannelRecord, CollectionResult
from mediasearch.models.query import MediaPage, PagedResult
from mediasearch.services.aggregator import ResultAggregator, split_by_backdrop
from mediasearch.services.channel_catalog import ChannelCatalogService
from mediasearch.utils.exceptions import APIClientError, APITimeoutError


@pytest.fixture
def channels(make_channel):
    service = MagicMock(spec=ChannelCatalogService)
    service.cached_popular_networks.return_value = [
        make_channel(213, "Netflix", logo_path="/netflix.png"),
        make_channel(49, "HBO", logo_path="/hbo.png"),
    ]
    return service


@pytest.fixture
def aggregator(catalog, channels):
    return ResultAggregator(catalog, channels)


def _run(aggregator, text, page=1, include_imageless=False):
    return asyncio.run(aggregator.search_all(text, page, include_imageless))


class TestSplitByBackdrop:
    """Tests for split_by_backdrop."""

    def test_counts_hidden(self, make_movie):
        items = [make_movie(1), make_movie(2, backdrop_path=None), make_movie(3, backdrop_path="null")]
        kept, hidden = split_by_backdrop(items, include_imageless=False)
        assert [i.id for i in kept] == [1]
        assert hidden == 2

    def test_include_imageless_hides_nothing(self, make_movie):
        items = [make_movie(1), make_movie(2, backdrop_path=None)]
        kept, hidden = split_by_backdrop(items, include_imageless=True)
        assert len(kept) == 2
        assert hidden == 0


class TestSearchAll:
    """Tests for ResultAggregator.search_all."""

    def test_merges_and_ranks_everything(self, aggregator, catalog, make_movie, make_tv, make_channel):
        catalog.search_media.return_value = MediaPage(
            items=[make_movie(1, title="Netflix Originals Doc", popularity=0), make_tv(2, name="Netflix", popularity=0)],
            total_pages=3,
        )
        catalog.fetch_collection_page.return_value = PagedResult[CollectionResult](
            items=[CollectionResult(id=9, name="Netflix Collection", backdrop_path="/c.jpg")], total_pages=1
        )
        catalog.fetch_company_page.return_value = PagedResult[ChannelRecord](
            items=[make_channel(178464, "Netflix", logo_path="/nc.png")], total_pages=2
        )

        result = _run(aggregator, "netflix")

        kinds = [(r.media_type, r.id) for r in result.results]
        assert ("tv", 2) in kinds[:2]
        assert ("channel", 213) in kinds[:2]
        merged = next(r for r in result.results if r.media_type == "channel")
        assert merged.kind == "merged"
        assert merged.network_id == 213
        assert merged.company_id == 178464
        assert result.total_pages == 3
        assert all(r.relevance_score is not None for r in result.results)

    def test_hidden_count_invariant(self, aggregator, catalog, make_movie):
        raw = [make_movie(1), make_movie(2, backdrop_path=None), make_movie(3, backdrop_path=" ")]
        catalog.search_media.return_value = MediaPage(items=raw, total_pages=1)

        result = _run(aggregator, "zzz", page=2)

        media = [r for r in result.results if r.media_type == "movie"]
        assert len(media) + result.hidden_count == len(raw)

    def test_hidden_count_sums_media_and_collections_only(self, aggregator, catalog, make_movie, make_channel):
        catalog.search_media.return_value = MediaPage(items=[make_movie(1, backdrop_path=None)], total_pages=1)
        catalog.fetch_collection_page.return_value = PagedResult[CollectionResult](
            items=[CollectionResult(id=2, name="X Collection")], total_pages=1
        )
        catalog.fetch_company_page.return_value = PagedResult[ChannelRecord](
            items=[make_channel(3, "X Films", logo_path=None)], total_pages=1
        )

        result = _run(aggregator, "x", page=2)

        assert result.hidden_count == 2
        assert result.results == []

    def test_include_imageless(self, aggregator, catalog, make_movie):
        catalog.search_media.return_value = MediaPage(items=[make_movie(1, backdrop_path=None)], total_pages=1)
        result = _run(aggregator, "zzz", page=2, include_imageless=True)
        assert result.hidden_count == 0
        assert len(result.results) == 1

    def test_company_failure_is_isolated(self, aggregator, catalog, make_movie):
        catalog.search_media.return_value = MediaPage(items=[make_movie(1, title="Heat")], total_pages=4)
        catalog.fetch_collection_page.return_value = PagedResult[CollectionResult](
            items=[CollectionResult(id=5, name="Heat Collection", backdrop_path="/h.jpg")], total_pages=2
        )
        catalog.fetch_company_page.side_effect = APITimeoutError(client_name="TMDBClient", timeout=30)

        result = _run(aggregator, "heat")

        assert {r.media_type for r in result.results} == {"movie", "collection"}
        assert result.total_pages == 4

    def test_total_pages_ignores_failed_subsearches(self, aggregator, catalog):
        catalog.search_media.side_effect = APIClientError("down")
        catalog.fetch_collection_page.return_value = PagedResult[CollectionResult](total_pages=2)
        catalog.fetch_company_page.side_effect = APIClientError("down")

        result = _run(aggregator, "anything")

        assert result.total_pages == 2
        assert result.hidden_count == 0

    def test_networks_only_on_first_page(self, aggregator, channels):
        first = _run(aggregator, "hbo", page=1)
        second = _run(aggregator, "hbo", page=2)

        assert [r.name for r in first.results if r.media_type == "channel"] == ["HBO"]
        assert second.results == []
        channels.cached_popular_networks.assert_called_once()

    def test_network_match_is_case_insensitive_substring(self, aggregator):
        result = _run(aggregator, "FLI")
        assert [r.name for r in result.results] == ["Netflix"]

    def test_cold_network_catalog_matches_nothing(self, aggregator, channels, catalog, make_movie):
        channels.cached_popular_networks.return_value = []
        catalog.search_media.return_value = MediaPage(items=[make_movie(1, title="HBO Story")], total_pages=1)

        result = _run(aggregator, "hbo")

        assert [r.media_type for r in result.results] == ["movie"]

    def test_channels_always_have_logos(self, aggregator, catalog, channels, make_channel):
        channels.cached_popular_networks.return_value = [make_channel(7, "Studio Net", logo_path="undefined")]
        catalog.fetch_company_page.return_value = PagedResult[ChannelRecord](
            items=[make_channel(1, "Studio A", logo_path=None), make_channel(2, "Studio B", logo_path="/b.png")],
            total_pages=1,
        )

        result = _run(aggregator, "studio")

        channel_results = [r for r in result.results if isinstance(r, ChannelEntity)]
        assert [c.name for c in channel_results] == ["Studio B"]
        assert all(c.logo_path for c in channel_results)
