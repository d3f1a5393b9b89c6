"""Query and result-envelope models for the engine.

``DiscoverQuery`` is the filter/sort/paginate intent against the catalog.
The network/company selection is a tagged ``ChannelFilter`` so only one of
them can ever be set on a query.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Annotated, Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from mediasearch.models.api_schemas import ChannelEntity, MediaItem, SearchResult

T = TypeVar("T")

DiscoverType = Literal["movie", "tv", "anime"]
MediaKind = Literal["movie", "tv"]


class SortKey(str, Enum):
    """User-facing sort orders.

    Date keys are generic; the resolver maps them onto the movie or TV
    date field (``primary_release_date`` / ``first_air_date``).
    """
    POPULARITY_DESC = "popularity.desc"
    POPULARITY_ASC = "popularity.asc"
    VOTE_AVERAGE_DESC = "vote_average.desc"
    VOTE_AVERAGE_ASC = "vote_average.asc"
    RELEASE_DATE_DESC = "release_date.desc"
    RELEASE_DATE_ASC = "release_date.asc"

    @property
    def is_popularity(self) -> bool:
        return self.value.startswith("popularity")

    @property
    def is_rating(self) -> bool:
        return self.value.startswith("vote_average")

    @property
    def is_date(self) -> bool:
        return self.value.startswith("release_date")

    @property
    def is_descending(self) -> bool:
        return self.value.endswith(".desc")


class GenreMatch(str, Enum):
    """How multiple include-genres combine: comma (AND) or pipe (OR)."""
    ALL = "all"
    ANY = "any"


# ── Channel filter (tagged variant) ───────────────────────────────────

class NetworkFilter(BaseModel):
    """Restrict TV results to one or more networks (OR)."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["network"] = "network"
    ids: tuple[int, ...] = Field(..., min_length=1)


class CompanyFilter(BaseModel):
    """Restrict movie results to one or more production companies (OR)."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["company"] = "company"
    ids: tuple[int, ...] = Field(..., min_length=1)


ChannelFilter = Annotated[Union[NetworkFilter, CompanyFilter], Field(discriminator="kind")]


class DiscoverQuery(BaseModel):
    """Discovery intent: type, filters, sort and page."""
    model_config = ConfigDict(frozen=True)

    type: DiscoverType
    page: int = Field(default=1, ge=1)
    include_genres: frozenset[int] = Field(default_factory=frozenset)
    genre_match: GenreMatch = GenreMatch.ALL
    exclude_genres: frozenset[int] = Field(default_factory=frozenset)
    channel: Optional[ChannelFilter] = None
    sort_key: SortKey = SortKey.POPULARITY_DESC
    year: Optional[int] = Field(default=None, ge=1800, le=2200)
    original_language: Optional[str] = None
    min_release_date: Optional[date] = None
    min_vote_average: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    watch_provider: Optional[int] = None
    watch_region: Optional[str] = None


@dataclass(frozen=True)
class MediaFetchSpec:
    """One concrete backend request produced by the query resolver."""
    kind: MediaKind
    params: dict[str, Any] = field(default_factory=dict)


# ── Result envelopes ──────────────────────────────────────────────────

class PagedResult(BaseModel, Generic[T]):
    """One page of results plus the backend-reported page count."""
    items: list[T] = Field(default_factory=list)
    total_pages: int = Field(default=0, ge=0)


class MediaPage(BaseModel):
    """A page of movies and/or TV shows (``PagedResult[MediaItem]``)."""
    items: list[MediaItem] = Field(default_factory=list)
    total_pages: int = Field(default=0, ge=0)


class MediaSearchPage(MediaPage):
    """Media search page after image filtering.

    ``hidden_count`` is how many items the default view dropped for lacking
    a displayable backdrop (0 when image-less results were requested).
    """
    hidden_count: int = Field(default=0, ge=0)


class AggregateSearchResult(BaseModel):
    """Ranked, merged outcome of ``search_all``."""
    results: list[SearchResult] = Field(default_factory=list)
    total_pages: int = 0
    hidden_count: int = 0


class ChannelDirectory(BaseModel):
    """Browsable channel catalog, split into well-known and everything else."""
    popular: list[ChannelEntity] = Field(default_factory=list)
    other: list[ChannelEntity] = Field(default_factory=list)
