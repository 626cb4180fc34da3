"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils import slugify


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="TMDB references", alias="APP_NAME")
    app_id: str = Field(default="tmdb", alias="APP_ID")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")
    public_base_url: str = Field(
        default="http://localhost:3000", alias="PUBLIC_BASE_URL"
    )

    admin_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_url: HttpUrl = Field(
        default="https://image.tmdb.org/t/p", alias="TMDB_IMAGE_URL"
    )
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")

    link_preview_timeout: float = Field(
        default=10.0, alias="LINK_PREVIEW_TIMEOUT", ge=1.0, le=60.0
    )
    reference_cache_seconds: int = Field(
        default=3_600, alias="REFERENCE_CACHE_TTL", ge=60
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./tmdbref.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("public_base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: object) -> str:
        """Drop trailing slashes so joined paths never double up."""

        if value is None:
            raise ValueError("PUBLIC_BASE_URL may not be empty")
        cleaned = str(value).strip().rstrip("/")
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("PUBLIC_BASE_URL must be an http(s) URL")
        return cleaned

    @field_validator("app_id", mode="before")
    @classmethod
    def _normalise_app_id(cls, value: object) -> str:
        raw = str(value or "").strip()
        if not raw:
            raise ValueError("APP_ID may not be empty")
        return slugify(raw).replace("-", "_")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
