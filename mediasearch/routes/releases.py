"""Releases blueprint: calendar of upcoming / recent releases.

Routes:
    GET /releases?start=2024-05-01&end=2024-05-31
"""
from __future__ import annotations

from flask import Blueprint, jsonify

from mediasearch.models.requests import ReleasesRequest
from mediasearch.models.responses import ReleasesResponse
from mediasearch.routes.common import parse_args, request_engine

releases_bp = Blueprint("releases", __name__)


@releases_bp.route("/releases", methods=["GET"])
async def releases():
    req = parse_args(ReleasesRequest)

    async with request_engine() as engine:
        items = await engine.releases_in_range(req.start, req.end)

    response = ReleasesResponse(start=req.start.isoformat(), end=req.end.isoformat(), results=items)
    return jsonify(response.model_dump(mode="json"))
