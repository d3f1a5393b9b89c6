"""Search blueprint: ranked free-text search.

Routes:
    GET /search → Movies, shows, collections and channels matching ``q``
"""
from __future__ import annotations

from flask import Blueprint, jsonify

from mediasearch.models.requests import SearchRequest
from mediasearch.models.responses import SearchResponse
from mediasearch.routes.common import parse_args, request_engine
from mediasearch.utils.exceptions import InputValidationError

search_bp = Blueprint("search", __name__)


@search_bp.route("/search", methods=["GET"])
async def search():
    """Search everything for ``q``.

    Query string:
        q=iron man&page=1&include_imageless=false

    Response JSON:
        {
            "success": true,
            "query": "iron man",
            "page": 1,
            "total_pages": 3,
            "hidden_count": 4,
            "results": [{"media_type": "movie", "relevance_score": 1018.2, ...}, ...]
        }
    """
    req = parse_args(SearchRequest)

    async with request_engine() as engine:
        try:
            result = await engine.search_all(req.q, req.page, req.include_imageless)
        except ValueError as e:
            raise InputValidationError(str(e)) from e

    response = SearchResponse(
        query=req.q,
        page=req.page,
        total_pages=result.total_pages,
        hidden_count=result.hidden_count,
        results=result.results,
    )
    return jsonify(response.model_dump(mode="json"))
