"""Pydantic models for API request validation.

Query-string values arrive as strings; list-valued parameters are
comma-separated (``?genres=28,12``).
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from mediasearch.models.genres import genre_ids_for
from mediasearch.models.query import (
    CompanyFilter,
    DiscoverQuery,
    DiscoverType,
    GenreMatch,
    NetworkFilter,
    SortKey,
)
from mediasearch.services.query_resolver import min_release_date_for_max_age


def _split_csv(v):
    if v is None or isinstance(v, (list, tuple)):
        return v
    return [part.strip() for part in str(v).split(",") if part.strip()]


class DiscoverRequest(BaseModel):
    """Incoming discover (browse) request.

    Attributes:
        type: "movie", "tv" or "anime".
        genres: Genre ids or unified genre names ("Sci-Fi"), mixed freely.
        network / company: Channel ids; at most one of the two.
        max_age: Only titles released within the last N calendar years.
    """
    type: DiscoverType = "movie"
    page: int = Field(default=1, ge=1, le=500)
    genres: list[str] = Field(default_factory=list)
    genre_match: GenreMatch = GenreMatch.ALL
    exclude_genres: list[int] = Field(default_factory=list)
    network: list[int] = Field(default_factory=list)
    company: list[int] = Field(default_factory=list)
    sort: SortKey = SortKey.POPULARITY_DESC
    year: Optional[int] = Field(default=None, ge=1800, le=2200)
    language: Optional[str] = Field(default=None, min_length=2, max_length=5)
    max_age: Optional[int] = Field(default=None, ge=0, le=200)
    min_rating: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    provider: Optional[int] = None
    region: Optional[str] = Field(default=None, min_length=2, max_length=2)

    @field_validator("genres", "exclude_genres", "network", "company", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _split_csv(v)

    @model_validator(mode="after")
    def check_single_channel(self) -> DiscoverRequest:
        if self.network and self.company:
            raise ValueError("Choose either a network or a company, not both")
        return self

    def _include_genre_ids(self) -> frozenset[int]:
        ids = {int(g) for g in self.genres if g.isdigit()}
        names = [g for g in self.genres if not g.isdigit()]
        return frozenset(ids | genre_ids_for(names, self.type))

    def to_query(self, today: date | None = None) -> DiscoverQuery:
        """Build the engine's ``DiscoverQuery``."""
        channel = None
        if self.network:
            channel = NetworkFilter(ids=tuple(self.network))
        elif self.company:
            channel = CompanyFilter(ids=tuple(self.company))

        min_release = None
        if self.max_age is not None:
            min_release = min_release_date_for_max_age(self.max_age, today)

        return DiscoverQuery(
            type=self.type,
            page=self.page,
            include_genres=self._include_genre_ids(),
            genre_match=self.genre_match,
            exclude_genres=frozenset(self.exclude_genres),
            channel=channel,
            sort_key=self.sort,
            year=self.year,
            original_language=self.language,
            min_release_date=min_release,
            min_vote_average=self.min_rating,
            watch_provider=self.provider,
            watch_region=self.region.upper() if self.region else None,
        )


class SearchRequest(BaseModel):
    """Incoming free-text search request."""
    q: str = Field(..., min_length=1, max_length=1000, description="Search text")
    page: int = Field(default=1, ge=1, le=500)
    include_imageless: bool = False

    @field_validator("q")
    @classmethod
    def validate_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Search text cannot be empty")
        return v


class StudiosRequest(BaseModel):
    type: str = Field(default="movie", pattern="^(movie|anime)$")


class GenresRequest(BaseModel):
    type: str = Field(default="all", pattern="^(movie|tv|all)$")


class ReleasesRequest(BaseModel):
    """Release calendar window (inclusive, at most a year)."""
    start: date
    end: date

    @model_validator(mode="after")
    def check_window(self) -> ReleasesRequest:
        if self.end < self.start:
            raise ValueError("end must not be before start")
        if (self.end - self.start).days > 366:
            raise ValueError("Release window cannot exceed one year")
        return self
