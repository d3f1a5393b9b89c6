"""Discover blueprint: filter/sort/paginate browsing.

Routes:
    GET /discover → One page of movies, TV shows or anime
"""
from __future__ import annotations

from flask import Blueprint, jsonify

from mediasearch.models.requests import DiscoverRequest
from mediasearch.models.responses import DiscoverResponse
from mediasearch.routes.common import parse_args, request_engine

discover_bp = Blueprint("discover", __name__)


@discover_bp.route("/discover", methods=["GET"])
async def discover():
    """Resolve a discover query.

    Query string:
        type=anime&genres=Action,35&sort=vote_average.desc&page=2
        network=213 | company=420 (not both)

    Response JSON:
        {
            "success": true,
            "page": 2,
            "total_pages": 9,
            "results": [{"media_type": "tv", "id": 2, ...}, ...]
        }
    """
    req = parse_args(DiscoverRequest)
    query = req.to_query()

    async with request_engine() as engine:
        page = await engine.resolve_discover_query(query)

    response = DiscoverResponse(page=query.page, total_pages=page.total_pages, results=page.items)
    return jsonify(response.model_dump(mode="json"))
