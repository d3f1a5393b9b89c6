"""Channels blueprint: browsable networks and studios.

Routes:
    GET /channels/networks → Networks split into popular / other
    GET /channels/studios  → Movie or anime production studios
"""
from __future__ import annotations

from flask import Blueprint, jsonify

from mediasearch.models.requests import StudiosRequest
from mediasearch.models.responses import ChannelsResponse, StudiosResponse
from mediasearch.routes.common import parse_args, request_engine
from mediasearch.services.channel_catalog import provider_id_for_network
from mediasearch.services.identity_merger import split_composite_id

channels_bp = Blueprint("channels", __name__, url_prefix="/channels")


@channels_bp.route("/networks", methods=["GET"])
async def networks():
    async with request_engine() as engine:
        directory = await engine.channels.get_network_catalog()

    providers = {}
    for entity in [*directory.popular, *directory.other]:
        if entity.network_id is None:
            continue
        for network_id in split_composite_id(entity.network_id):
            provider = provider_id_for_network(network_id)
            if provider is not None:
                providers[str(entity.id)] = provider
                break

    response = ChannelsResponse(
        popular=directory.popular, other=directory.other, watch_providers=providers
    )
    return jsonify(response.model_dump(mode="json"))


@channels_bp.route("/studios", methods=["GET"])
async def studios():
    """Studios behind popular titles (``?type=movie`` or ``?type=anime``)."""
    req = parse_args(StudiosRequest)

    async with request_engine() as engine:
        if req.type == "anime":
            found = await engine.channels.get_anime_studios()
        else:
            found = await engine.channels.get_movie_studios()

    return jsonify(StudiosResponse(type=req.type, studios=found).model_dump(mode="json"))
