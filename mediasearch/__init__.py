"""Media Query Resolution & Result Ranking Engine: Flask Application Package.

This is the main application package. The `create_app()` factory function
initializes the Flask application with all configurations, middleware,
shared caches, and blueprints. The engine itself lives in
``mediasearch.services.engine`` and can be used without Flask.
"""
from __future__ import annotations

import asyncio

import structlog
from flask import Flask
from flask_cors import CORS

from mediasearch.config import get_settings, Settings
from mediasearch.utils.cache import CatalogCache, ResponseCache
from mediasearch.utils.exceptions import MediaSearchError
from mediasearch.utils.logger import setup_logging
from mediasearch.middleware.request_id import init_request_id_middleware
from mediasearch.middleware.error_handlers import register_error_handlers


def create_app(settings: Settings | None = None) -> Flask:
    """Application factory pattern.

    Creates and configures the Flask application with:
    - Pydantic-based configuration loading
    - Structured logging (structlog)
    - Request ID middleware
    - Global error handlers
    - CORS configuration
    - Shared response and catalog caches (network catalog pre-loaded)
    - Blueprint registration (health, discover, search, channels, genres, releases)

    Args:
        settings: Explicit settings (tests); loaded from the environment when omitted.

    Returns:
        Configured Flask application instance.
    """
    settings = settings or get_settings()

    # ── Logging (must be first so all subsequent logs are formatted) ──
    setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
    logger = structlog.get_logger(__name__)

    # ── Flask app ─────────────────────────────────────────────────────
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.SECRET_KEY
    app.config["FLASK_DEBUG"] = settings.FLASK_DEBUG

    # Store settings on app for access in blueprints
    app.config["SETTINGS"] = settings

    # ── Middleware ─────────────────────────────────────────────────────
    init_request_id_middleware(app)
    register_error_handlers(app)

    # ── CORS ──────────────────────────────────────────────────────────
    CORS(app, resources={r"/*": {"origins": "*", "methods": ["GET"]}})

    # ── Caches ────────────────────────────────────────────────────────
    _init_caches(app, settings)
    if settings.WARM_CATALOG_ON_STARTUP:
        _warm_catalog(app, settings)

    # ── Blueprints ────────────────────────────────────────────────────
    from mediasearch.routes.health import health_bp
    from mediasearch.routes.discover import discover_bp
    from mediasearch.routes.search import search_bp
    from mediasearch.routes.channels import channels_bp
    from mediasearch.routes.genres import genres_bp
    from mediasearch.routes.releases import releases_bp
    app.register_blueprint(health_bp)
    app.register_blueprint(discover_bp)
    app.register_blueprint(search_bp)
    app.register_blueprint(channels_bp)
    app.register_blueprint(genres_bp)
    app.register_blueprint(releases_bp)

    logger.info(
        "app_started",
        env=settings.FLASK_ENV,
        catalog=settings.TMDB_BASE_URL,
        log_level=settings.LOG_LEVEL,
    )

    return app


def _init_caches(app: Flask, settings: Settings) -> None:
    """Create the process-wide caches shared by every request's engine.

    HTTP clients are opened per request (they are bound to the event loop
    that serves it); the caches are what persists between requests.

    Args:
        app: Flask application instance.
        settings: Application settings.
    """
    app.config["RESPONSE_CACHE"] = ResponseCache(
        ttl_seconds=settings.CACHE_TTL_SECONDS,
        max_size=settings.CACHE_MAX_SIZE,
    )
    app.config["CATALOG_CACHE"] = CatalogCache()

    structlog.get_logger(__name__).info(
        "caches_initialized",
        response_ttl=settings.CACHE_TTL_SECONDS,
        response_max_size=settings.CACHE_MAX_SIZE,
    )


def _warm_catalog(app: Flask, settings: Settings) -> None:
    """Load the network catalog once, before the first request.

    Page-1 searches match networks against this cached list only. When the
    catalog API is unreachable the cache stays empty and the next call to
    ``/channels/networks`` retries the load.

    Args:
        app: Flask application instance (caches already initialized).
        settings: Application settings.
    """
    from mediasearch.services.engine import open_engine

    async def warm() -> None:
        async with open_engine(
            settings, app.config["RESPONSE_CACHE"], app.config["CATALOG_CACHE"]
        ) as engine:
            await engine.warm()

    logger = structlog.get_logger(__name__)
    try:
        asyncio.run(warm())
    except MediaSearchError as e:
        logger.warning("catalog_warm_failed", error=str(e), error_type=type(e).__name__)
