"""Pydantic models for API response serialization."""
from __future__ import annotations

from pydantic import BaseModel, Field

from mediasearch.models.api_schemas import ChannelEntity, Genre, MediaItem, SearchResult


class DiscoverResponse(BaseModel):
    """One page of discover results."""
    success: bool = True
    page: int
    total_pages: int
    results: list[MediaItem] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Ranked free-text search page.

    Attributes:
        hidden_count: Media/collections left out for lacking a backdrop.
    """
    success: bool = True
    query: str
    page: int
    total_pages: int
    hidden_count: int = 0
    results: list[SearchResult] = Field(default_factory=list)


class ChannelsResponse(BaseModel):
    """Network directory.

    Attributes:
        watch_providers: Listed network id (composite ids included) to the
            streaming watch-provider id of its first member that has one.
    """
    success: bool = True
    popular: list[ChannelEntity] = Field(default_factory=list)
    other: list[ChannelEntity] = Field(default_factory=list)
    watch_providers: dict[str, int] = Field(default_factory=dict)


class StudiosResponse(BaseModel):
    success: bool = True
    type: str
    studios: list[ChannelEntity] = Field(default_factory=list)


class GenresResponse(BaseModel):
    success: bool = True
    genres: list[Genre] = Field(default_factory=list)


class ReleasesResponse(BaseModel):
    success: bool = True
    start: str
    end: str
    results: list[MediaItem] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: dict = Field(..., description="Error details with 'message' and 'code'")
