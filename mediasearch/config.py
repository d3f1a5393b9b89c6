"""Centralized application configuration using Pydantic Settings.

Loads configuration from environment variables and `.env` file with
full validation, type coercion, and sensible defaults.

Usage:
    from mediasearch.config import get_settings

    settings = get_settings()  # cached singleton
    print(settings.TMDB_BASE_URL)
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Netflix, HBO, Disney+, Amazon, Hulu, Apple TV+, Peacock
DEFAULT_POPULAR_NETWORK_IDS = [213, 49, 2739, 1024, 453, 2552, 3353]


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file.

    Required:
        TMDB_API_KEY: Must be set; the app refuses to start without it.

    All other fields have sensible defaults and are optional overrides.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Flask ──────────────────────────────────────────────────────────
    FLASK_ENV: str = Field(default="development", description="Flask environment (development/production)")
    FLASK_DEBUG: bool = Field(default=True, description="Enable Flask debug mode")
    SECRET_KEY: str = Field(default="change-me-in-production", description="Flask secret key")

    # ── Catalog API (TMDB) ────────────────────────────────────────────
    TMDB_API_KEY: str = Field(..., description="TMDB v3 API key (required)")
    TMDB_BASE_URL: str = Field(default="https://api.themoviedb.org/3", description="TMDB API base URL")
    TMDB_RATE_LIMIT: float = Field(default=0.0, ge=0.0, description="Min delay between TMDB requests (sec)")

    # ── HTTP Client ───────────────────────────────────────────────────
    HTTP_TIMEOUT: int = Field(default=30, ge=1, le=120, description="HTTP request timeout (seconds)")
    HTTP_MAX_RETRIES: int = Field(default=3, ge=1, le=10, description="Max attempts for failed HTTP requests")

    # ── Logging ───────────────────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    LOG_FORMAT: str = Field(default="json", description="Log output format ('json' for prod, 'console' for dev)")

    # ── Cache ─────────────────────────────────────────────────────────
    CACHE_TTL_SECONDS: int = Field(default=300, ge=0, description="API response cache TTL (seconds)")
    CACHE_MAX_SIZE: int = Field(default=512, ge=1, description="Max number of cached API responses")

    # ── Engine ────────────────────────────────────────────────────────
    CATALOG_DISCOVERY_PAGES: int = Field(
        default=5, ge=1, le=20,
        description="Popular-list pages scanned when discovering networks/studios",
    )
    POPULAR_NETWORK_IDS: list[int] = Field(
        default_factory=lambda: list(DEFAULT_POPULAR_NETWORK_IDS),
        description="Network ids always fetched into the popular network catalog",
    )
    SEARCH_QUERY_MAX_LENGTH: int = Field(default=200, ge=1, le=1000, description="Max free-text query length")
    WARM_CATALOG_ON_STARTUP: bool = Field(
        default=True, description="Load the network catalog when the app starts"
    )

    # ── Validators ────────────────────────────────────────────────────

    @field_validator("TMDB_API_KEY")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Ensure the API key is not empty or a placeholder."""
        v = v.strip()
        if not v or v in ("your-api-key-here", "changeme"):
            raise ValueError(
                "TMDB_API_KEY must be set to a valid API key. "
                "Get one at https://www.themoviedb.org/settings/api"
            )
        return v

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Refuse the default secret key in production."""
        env = info.data.get("FLASK_ENV", "development")
        if env == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed from the default in production.")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper().strip()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @field_validator("TMDB_BASE_URL")
    @classmethod
    def validate_urls(cls, v: str) -> str:
        """Ensure base URLs don't have trailing slashes."""
        return v.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Uses `lru_cache` so the `.env` file is only read once.
    """
    return Settings()
