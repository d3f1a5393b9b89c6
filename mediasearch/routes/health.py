"""Health check endpoint for application and dependency monitoring.

Exposes GET /health returning the status of the catalog API and the
in-process caches. Used by Docker HEALTHCHECK and monitoring systems.

Response format:
    {
        "status": "healthy" | "degraded",
        "version": "1.0.0",
        "dependencies": {"tmdb_api": "ok" | "error: ..."},
        "caches": {"responses": 12, "catalog": 3}
    }
"""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify

import structlog

from mediasearch.api_clients.tmdb_client import TMDBClient

logger = structlog.get_logger(__name__)

health_bp = Blueprint("health", __name__)

APP_VERSION = "1.0.0"


@health_bp.route("/health", methods=["GET"])
async def health_check():
    """Application health check endpoint.

    Returns:
        200 if the catalog API is reachable.
        503 otherwise.
    """
    settings = current_app.config["SETTINGS"]
    checks: dict[str, str] = {}

    try:
        async with TMDBClient(
            api_key=settings.TMDB_API_KEY,
            base_url=settings.TMDB_BASE_URL,
            timeout=settings.HTTP_TIMEOUT,
            max_retries=1,
        ) as client:
            checks["tmdb_api"] = "ok" if await client.health_check() else "error: unreachable"
    except Exception as e:
        logger.warning("health_check_failed", dependency="tmdb_api", error=str(e))
        checks["tmdb_api"] = f"error: {str(e)}"

    all_healthy = all(v.startswith("ok") for v in checks.values())

    response = {
        "status": "healthy" if all_healthy else "degraded",
        "version": APP_VERSION,
        "dependencies": checks,
        "caches": {
            "responses": current_app.config["RESPONSE_CACHE"].size,
            "catalog": len(current_app.config["CATALOG_CACHE"]),
        },
    }

    status_code = 200 if all_healthy else 503
    return jsonify(response), status_code
