"""Pydantic models for catalog entities.

These models normalize data from the TMDB API into a consistent, immutable
internal representation. The API client parses raw JSON into them; the
engine never mutates one after construction (update = ``model_copy``).

``SearchResult`` is an explicit tagged variant over media items,
collections and channels, discriminated on ``media_type``. Each variant
exposes its own ``display_name`` and ``popularity`` so the ranker never
has to probe for fields.
"""
from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SearchResultBase(BaseModel):
    """Shared config for everything that can appear in a result list."""

    model_config = ConfigDict(frozen=True)

    # Only assigned on the free-text search path
    relevance_score: Optional[float] = None


# ══════════════════════════════════════════════════════════════════════
# Media (movies / TV shows)
# ══════════════════════════════════════════════════════════════════════

class BaseMedia(SearchResultBase):
    """Fields common to movies and TV shows."""
    id: int
    popularity: float = Field(default=0.0, ge=0.0)
    vote_average: float = Field(default=0.0, ge=0.0, le=10.0)
    genre_ids: frozenset[int] = Field(default_factory=frozenset)
    original_language: str = ""
    backdrop_path: Optional[str] = None
    poster_path: Optional[str] = None
    overview: str = ""

    @property
    def identity(self) -> tuple[str, int]:
        """(media_type, id); ids are only unique within a media type."""
        return (self.media_type, self.id)  # type: ignore[attr-defined]


class Movie(BaseMedia):
    """A movie from discover, search or popular listings."""
    media_type: Literal["movie"] = "movie"
    title: str
    release_date: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.title


class TvShow(BaseMedia):
    """A TV show from discover, search or popular listings."""
    media_type: Literal["tv"] = "tv"
    name: str
    first_air_date: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name


MediaItem = Annotated[Union[Movie, TvShow], Field(discriminator="media_type")]


# ══════════════════════════════════════════════════════════════════════
# Collections
# ══════════════════════════════════════════════════════════════════════

class CollectionResult(SearchResultBase):
    """A movie collection (franchise) from collection search."""
    media_type: Literal["collection"] = "collection"
    id: int
    name: str
    backdrop_path: Optional[str] = None
    poster_path: Optional[str] = None
    overview: str = ""

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def popularity(self) -> float:
        return 0.0


# ══════════════════════════════════════════════════════════════════════
# Channels (networks / production companies)
# ══════════════════════════════════════════════════════════════════════

class ChannelRecord(BaseModel):
    """Raw network or company as returned by the API, before merging."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    logo_path: Optional[str] = None
    origin_country: str = ""


class MovieDetails(BaseModel):
    """Subset of /movie/{id} used to discover production companies."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    production_companies: list[ChannelRecord] = Field(default_factory=list)


class TvShowDetails(BaseModel):
    """Subset of /tv/{id} used to discover networks."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    networks: list[ChannelRecord] = Field(default_factory=list)


ChannelKind = Literal["network", "company", "merged"]


class ChannelEntity(SearchResultBase):
    """Unified network / company.

    ``id`` is the canonical numeric id, or a ``|``-joined composite when
    several source records describing the same studio were merged. When
    ``kind == "merged"`` both ``network_id`` and ``company_id`` are set.
    """
    media_type: Literal["channel"] = "channel"
    id: Union[int, str]
    name: str
    logo_path: Optional[str] = None
    origin_country: str = ""
    kind: ChannelKind
    network_id: Optional[Union[int, str]] = None
    company_id: Optional[Union[int, str]] = None

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def popularity(self) -> float:
        return 0.0


SearchResult = Annotated[
    Union[Movie, TvShow, CollectionResult, ChannelEntity],
    Field(discriminator="media_type"),
]


# ══════════════════════════════════════════════════════════════════════
# Genres
# ══════════════════════════════════════════════════════════════════════

class Genre(BaseModel):
    """Genre vocabulary entry."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
