"""Unit tests for the engine facade and query cancellation."""
import asyncio

import pytest

from mediasearch.models.query import AggregateSearchResult, DiscoverQuery, MediaPage
from mediasearch.services.engine import MediaQueryEngine, QueryGeneration
from mediasearch.utils.cache import CatalogCache

BACKEND_METHODS = (
    "fetch_media_page",
    "search_media",
    "fetch_collection_page",
    "fetch_company_page",
    "fetch_popular_page",
    "get_network",
    "get_movie_details",
    "get_tv_details",
    "get_genres",
)


@pytest.fixture
def engine(catalog):
    return MediaQueryEngine(catalog, catalog_cache=CatalogCache(), popular_network_ids=(213,))


class TestQueryGeneration:
    """Tests for QueryGeneration / CancellationToken."""

    def test_newer_token_supersedes_older(self):
        generation = QueryGeneration()
        first = generation.next_token()
        second = generation.next_token()
        assert first.is_cancelled is True
        assert second.is_cancelled is False

    def test_explicit_cancel(self):
        token = QueryGeneration().next_token()
        token.cancel()
        assert token.is_cancelled is True


class TestResolveDiscoverQuery:
    """Tests for MediaQueryEngine.resolve_discover_query."""

    def test_returns_page_without_token(self, engine, catalog, make_movie):
        catalog.fetch_media_page.return_value = MediaPage(items=[make_movie(1)], total_pages=1)
        page = asyncio.run(engine.resolve_discover_query(DiscoverQuery(type="movie")))
        assert [i.id for i in page.items] == [1]

    def test_superseded_during_fetch_is_a_no_op(self, engine, catalog):
        generation = QueryGeneration()
        token = generation.next_token()

        async def fetch(kind, params):
            generation.next_token()  # user changed filters mid-flight
            return MediaPage(total_pages=1)

        catalog.fetch_media_page.side_effect = fetch

        assert asyncio.run(engine.resolve_discover_query(DiscoverQuery(type="tv"), token)) is None

    def test_cancelled_before_start_skips_fetch(self, engine, catalog):
        token = QueryGeneration().next_token()
        token.cancel()
        assert asyncio.run(engine.resolve_discover_query(DiscoverQuery(type="movie"), token)) is None
        catalog.fetch_media_page.assert_not_awaited()


class TestSearchAll:
    """Tests for MediaQueryEngine.search_all."""

    def test_cleans_query_text(self, engine, catalog):
        result = asyncio.run(engine.search_all("  iron\t man ", page=2))
        assert isinstance(result, AggregateSearchResult)
        catalog.search_media.assert_awaited_once_with("iron man", 2)

    def test_empty_query_raises(self, engine):
        with pytest.raises(ValueError):
            asyncio.run(engine.search_all("   "))

    def test_superseded_search_is_a_no_op(self, engine):
        generation = QueryGeneration()
        stale = generation.next_token()
        generation.next_token()
        assert asyncio.run(engine.search_all("alien", token=stale)) is None

    def test_cold_search_stays_within_four_requests(self, catalog):
        engine = MediaQueryEngine(
            catalog, catalog_cache=CatalogCache(), popular_network_ids=(213, 49, 2739, 1024, 453, 2552, 3353)
        )

        asyncio.run(engine.search_all("netflix"))

        backend_calls = sum(getattr(catalog, name).await_count for name in BACKEND_METHODS)
        assert backend_calls <= 4
        catalog.get_network.assert_not_awaited()
        catalog.fetch_popular_page.assert_not_awaited()

    def test_warmed_networks_are_matched(self, engine, catalog, make_channel):
        async def get_network(network_id):
            return make_channel(network_id, "Netflix", logo_path="/netflix.png")

        catalog.get_network.side_effect = get_network

        assert asyncio.run(engine.warm()) == 1
        result = asyncio.run(engine.search_all("netflix"))

        assert [(r.media_type, r.id) for r in result.results] == [("channel", 213)]
        assert catalog.get_network.await_count == 1
