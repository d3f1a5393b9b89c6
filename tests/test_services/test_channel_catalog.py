"""Unit tests for the memoized channel, studio and genre catalogs."""
import asyncio

import pytest

from mediasearch.models.api_schemas import Genre, MovieDetails, TvShowDetails
from mediasearch.models.query import MediaPage
from mediasearch.services.channel_catalog import ChannelCatalogService, provider_id_for_network
from mediasearch.utils.cache import CatalogCache
from mediasearch.utils.exceptions import APIClientError


@pytest.fixture
def service(catalog):
    return ChannelCatalogService(catalog, CatalogCache(), popular_network_ids=(213, 49), discovery_pages=2)


class TestPopularNetworks:
    """Tests for get_popular_networks / get_network_catalog."""

    @pytest.fixture(autouse=True)
    def _catalog_data(self, catalog, make_tv, make_channel):
        guaranteed = {
            213: make_channel(213, "Netflix", logo_path="/netflix.png"),
            49: make_channel(49, "HBO", logo_path="/hbo.png"),
        }

        async def get_network(network_id):
            return guaranteed[network_id]

        async def popular_page(kind, page):
            return MediaPage(items=[make_tv(page * 10), make_tv(page * 10 + 1)], total_pages=50)

        async def tv_details(tv_id):
            if tv_id == 21:
                raise APIClientError("TMDBClient: HTTP 404 for /tv/21")
            networks = {
                10: [make_channel(213, "Netflix", logo_path="/netflix.png")],
                11: [make_channel(1, "AMC", logo_path="/amc.png")],
                20: [make_channel(2, "Nowhere", logo_path=None)],
            }.get(tv_id, [])
            return TvShowDetails(id=tv_id, name=f"Show {tv_id}", networks=networks)

        catalog.get_network.side_effect = get_network
        catalog.fetch_popular_page.side_effect = popular_page
        catalog.get_tv_details.side_effect = tv_details

    def test_guaranteed_plus_discovered(self, service):
        networks = asyncio.run(service.get_popular_networks())
        assert sorted(n.id for n in networks) == [1, 49, 213]

    def test_failed_lookups_are_skipped(self, service, catalog):
        catalog.get_network.side_effect = APIClientError("down")
        networks = asyncio.run(service.get_popular_networks())
        assert [n.id for n in networks] == [213, 1]

    def test_memoized_once(self, service, catalog):
        asyncio.run(service.get_popular_networks())
        asyncio.run(service.get_popular_networks())
        assert catalog.fetch_popular_page.await_count == 2  # discovery_pages, first call only

    def test_cached_list_is_empty_until_warmed(self, service, catalog):
        assert service.cached_popular_networks() == []
        catalog.get_network.assert_not_awaited()

        assert asyncio.run(service.warm()) == 3
        assert sorted(n.id for n in service.cached_popular_networks()) == [1, 49, 213]

    def test_failed_popular_page_is_skipped(self, service, catalog, make_tv):
        async def popular_page(kind, page):
            if page == 2:
                raise APIClientError("TMDBClient: HTTP 503 for /tv/popular")
            return MediaPage(items=[make_tv(10), make_tv(11)], total_pages=50)

        catalog.fetch_popular_page.side_effect = popular_page
        networks = asyncio.run(service.get_popular_networks())
        assert sorted(n.id for n in networks) == [1, 49, 213]

    def test_empty_load_is_not_memoized(self, service, catalog):
        catalog.get_network.side_effect = APIClientError("down")
        catalog.fetch_popular_page.side_effect = APIClientError("down")

        assert asyncio.run(service.get_popular_networks()) == []
        assert asyncio.run(service.get_popular_networks()) == []
        assert catalog.get_network.await_count == 4

    def test_catalog_split(self, service):
        directory = asyncio.run(service.get_network_catalog())
        assert [e.name for e in directory.popular] == ["HBO", "Netflix"]
        assert [e.name for e in directory.other] == ["AMC"]
        assert all(e.kind == "network" for e in directory.popular + directory.other)


class TestStudios:
    """Tests for movie and anime studio discovery."""

    @pytest.fixture(autouse=True)
    def _catalog_data(self, catalog, make_movie, make_channel):
        async def movie_page(kind, page):
            return MediaPage(items=[make_movie(page)], total_pages=10)

        async def discover_page(kind, params):
            return MediaPage(items=[make_movie(100 + params["page"])], total_pages=10)

        async def movie_details(movie_id):
            companies = {
                1: [make_channel(5, "Pixar"), make_channel(6, "Logo-less", logo_path=None)],
                2: [make_channel(7, "pixar"), make_channel(5, "Pixar")],
                101: [make_channel(10342, "Studio Ghibli")],
                102: [make_channel(10342, "Studio Ghibli"), make_channel(3464, "Toho")],
            }[movie_id]
            return MovieDetails(id=movie_id, title=f"Movie {movie_id}", production_companies=companies)

        catalog.fetch_popular_page.side_effect = movie_page
        catalog.fetch_media_page.side_effect = discover_page
        catalog.get_movie_details.side_effect = movie_details

    def test_movie_studios_merged_by_name(self, service):
        studios = asyncio.run(service.get_movie_studios())
        assert [(s.id, s.name) for s in studios] == [("5|7", "Pixar")]
        assert studios[0].kind == "company"

    def test_anime_studios_from_japanese_animation(self, service, catalog):
        studios = asyncio.run(service.get_anime_studios())

        assert [s.name for s in studios] == ["Studio Ghibli", "Toho"]
        kind, params = catalog.fetch_media_page.await_args_list[0].args
        assert kind == "movie"
        assert params["with_genres"] == 16
        assert params["with_original_language"] == "ja"

    def test_studios_memoized(self, service, catalog):
        asyncio.run(service.get_movie_studios())
        asyncio.run(service.get_movie_studios())
        assert catalog.get_movie_details.await_count == 2


class TestGenres:
    """Tests for genre maps."""

    def test_combined_map_prefers_tv_names(self, service, catalog):
        async def genres(kind):
            if kind == "movie":
                return [Genre(id=28, name="Action"), Genre(id=16, name="Animation")]
            return [Genre(id=10759, name="Action & Adventure"), Genre(id=16, name="Animation (TV)")]

        catalog.get_genres.side_effect = genres

        combined = asyncio.run(service.get_combined_genre_map())

        assert combined == {28: "Action", 16: "Animation (TV)", 10759: "Action & Adventure"}

    def test_genre_map_memoized(self, service, catalog):
        catalog.get_genres.return_value = [Genre(id=18, name="Drama")]
        asyncio.run(service.get_genre_map("tv"))
        asyncio.run(service.get_genre_map("tv"))
        catalog.get_genres.assert_awaited_once_with("tv")


class TestProviderMapping:
    """Tests for provider_id_for_network."""

    def test_known_networks(self):
        assert provider_id_for_network(213) == 8
        assert provider_id_for_network(49) == 384

    def test_unknown_network(self):
        assert provider_id_for_network(999999) is None
