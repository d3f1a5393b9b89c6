"""Genres blueprint.

Routes:
    GET /genres?type=movie|tv|all → Genre vocabulary, sorted by name
"""
from __future__ import annotations

from flask import Blueprint, jsonify

from mediasearch.models.api_schemas import Genre
from mediasearch.models.requests import GenresRequest
from mediasearch.models.responses import GenresResponse
from mediasearch.routes.common import parse_args, request_engine

genres_bp = Blueprint("genres", __name__)


@genres_bp.route("/genres", methods=["GET"])
async def genres():
    req = parse_args(GenresRequest)

    async with request_engine() as engine:
        if req.type == "all":
            mapping = await engine.channels.get_combined_genre_map()
        else:
            mapping = await engine.channels.get_genre_map(req.type)

    vocabulary = sorted((Genre(id=i, name=n) for i, n in mapping.items()), key=lambda g: g.name)
    return jsonify(GenresResponse(genres=vocabulary).model_dump(mode="json"))
