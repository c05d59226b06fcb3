"""Application configuration models."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils import normalise_list_keys


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    tmdb_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TMDB_API_KEY", "SECRET_API_KEY"),
    )
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    region: str = Field(default="US", alias="TMDB_REGION")
    original_language: str = Field(default="en", alias="ORIGINAL_LANGUAGE")

    fetch_lists: str | None = Field(default=None, alias="FETCH_LISTS")
    fetch_series_lists: str | None = Field(default=None, alias="FETCH_SERIES_LISTS")

    max_pages: int = Field(default=25, alias="MAX_PAGES", ge=1, le=500)
    endpoint_max_pages: int = Field(default=15, alias="ENDPOINT_MAX_PAGES", ge=1, le=500)
    network_max_pages: int = Field(default=10, alias="NETWORK_MAX_PAGES", ge=1, le=500)
    collection_search_max_pages: int = Field(
        default=100, alias="COLLECTION_SEARCH_MAX_PAGES", ge=1, le=500
    )
    latest_window_days: int = Field(default=42, alias="LATEST_WINDOW_DAYS", ge=1)

    min_vote_count: int = Field(default=100, alias="MIN_VOTE_COUNT", ge=0)
    min_rating: float = Field(default=6.0, alias="MIN_RATING", ge=0, le=10)
    min_popularity: float = Field(default=5.0, alias="MIN_POPULARITY", ge=0)
    min_collection_size: int = Field(default=2, alias="MIN_COLLECTION_SIZE", ge=1)
    min_year: int | None = Field(default=None, alias="MIN_YEAR", ge=1800)

    page_delay_seconds: float = Field(default=0.1, alias="PAGE_DELAY", ge=0)
    detail_delay_seconds: float = Field(default=0.03, alias="DETAIL_DELAY", ge=0)
    failure_backoff_seconds: float = Field(default=0.1, alias="FAILURE_BACKOFF", ge=0)
    max_consecutive_failures: int = Field(
        default=3, alias="MAX_CONSECUTIVE_FAILURES", ge=1, le=50
    )
    request_timeout_seconds: float = Field(default=30.0, alias="REQUEST_TIMEOUT", gt=0)

    server_url_placeholder: str = Field(
        default="[[SERVER_URL]]", alias="SERVER_URL_PLACEHOLDER"
    )
    image_base_url: str = Field(
        default="https://image.tmdb.org/t/p/original", alias="IMAGE_BASE_URL"
    )
    output_dir: str = Field(default=".", alias="OUTPUT_DIR")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    @field_validator("min_year", mode="before")
    @classmethod
    def _blank_year_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def api_key(self) -> str:
        """Return the stripped API key, or an empty string when unset."""

        return (self.tmdb_api_key or "").strip()

    @property
    def movie_list_keys(self) -> tuple[str, ...] | None:
        """Return the requested movie list keys, ``None`` meaning all of them."""

        return normalise_list_keys(self.fetch_lists)

    @property
    def series_list_keys(self) -> tuple[str, ...] | None:
        """Series selections fall back to ``FETCH_LISTS`` when unset."""

        return normalise_list_keys(self.fetch_series_lists) or self.movie_list_keys

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )

