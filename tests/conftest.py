"""Shared pytest fixtures for the media search test suite.

Provides reusable fixtures for:
- Settings that never read the developer's .env
- A mocked catalog client (async methods become AsyncMocks)
- Movie / TV / channel factories
- Flask app and test client wired to the mocked catalog
"""
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import pytest

from mediasearch import create_app
from mediasearch.api_clients.tmdb_client import TMDBClient
from mediasearch.config import Settings, get_settings
from mediasearch.models.api_schemas import ChannelRecord, CollectionResult, Movie, TvShow
from mediasearch.models.query import MediaPage, PagedResult
from mediasearch.services.engine import MediaQueryEngine


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep every test independent of the environment and the settings cache."""
    monkeypatch.setenv("TMDB_API_KEY", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        TMDB_API_KEY="test-key",
        LOG_LEVEL="WARNING",
        LOG_FORMAT="console",
        CACHE_TTL_SECONDS=0,
        CATALOG_DISCOVERY_PAGES=2,
        WARM_CATALOG_ON_STARTUP=False,
    )


@pytest.fixture
def make_movie():
    def _make(id, title="Movie", popularity=10.0, backdrop_path="/b.jpg", **kwargs):
        return Movie(id=id, title=title, popularity=popularity, backdrop_path=backdrop_path, **kwargs)
    return _make


@pytest.fixture
def make_tv():
    def _make(id, name="Show", popularity=10.0, backdrop_path="/b.jpg", **kwargs):
        return TvShow(id=id, name=name, popularity=popularity, backdrop_path=backdrop_path, **kwargs)
    return _make


@pytest.fixture
def make_channel():
    def _make(id, name, logo_path="/logo.png", origin_country="US"):
        return ChannelRecord(id=id, name=name, logo_path=logo_path, origin_country=origin_country)
    return _make


@pytest.fixture
def catalog():
    """Catalog client mock; every coroutine method is an AsyncMock with empty defaults."""
    mock = MagicMock(spec=TMDBClient)
    mock.fetch_media_page.return_value = MediaPage()
    mock.search_media.return_value = MediaPage()
    mock.fetch_popular_page.return_value = MediaPage()
    mock.fetch_collection_page.return_value = PagedResult[CollectionResult]()
    mock.fetch_company_page.return_value = PagedResult[ChannelRecord]()
    mock.get_genres.return_value = []
    return mock


@pytest.fixture
def app(settings, catalog):
    """Flask application whose engine runs against the mocked catalog."""

    @asynccontextmanager
    async def engine_factory(app_settings, response_cache, catalog_cache):
        yield MediaQueryEngine(
            catalog,
            catalog_cache=catalog_cache,
            popular_network_ids=tuple(app_settings.POPULAR_NETWORK_IDS),
            discovery_pages=app_settings.CATALOG_DISCOVERY_PAGES,
        )

    app = create_app(settings)
    app.config["TESTING"] = True
    app.config["ENGINE_FACTORY"] = engine_factory
    yield app


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
