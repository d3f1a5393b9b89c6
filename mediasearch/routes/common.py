"""Helpers shared by the API blueprints."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TypeVar

from flask import current_app, request
from pydantic import BaseModel

from mediasearch.services.engine import MediaQueryEngine, open_engine

M = TypeVar("M", bound=BaseModel)


def parse_args(model: type[M]) -> M:
    """Validate the query string against ``model``.

    Raises:
        pydantic.ValidationError: Rendered as 422 by the error handlers.
    """
    return model.model_validate(request.args.to_dict())


@asynccontextmanager
async def request_engine() -> AsyncIterator[MediaQueryEngine]:
    """Engine for the current request, backed by the app-wide caches.

    ``ENGINE_FACTORY`` on the app config can replace ``open_engine``
    (tests inject a stub catalog this way).
    """
    factory = current_app.config.get("ENGINE_FACTORY", open_engine)
    async with factory(
        current_app.config["SETTINGS"],
        current_app.config["RESPONSE_CACHE"],
        current_app.config["CATALOG_CACHE"],
    ) as engine:
        yield engine
