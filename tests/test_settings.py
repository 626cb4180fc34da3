"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tmdbref.config import Settings


def test_defaults_enable_tmdb_namespace() -> None:
    """Settings should fall back to the default namespace and endpoints."""

    settings = Settings(_env_file=None)

    assert settings.app_id == "tmdb"
    assert str(settings.tmdb_api_url).startswith("https://api.themoviedb.org/3")
    assert settings.reference_cache_seconds == 3_600


def test_public_base_url_is_normalised() -> None:
    settings = Settings(_env_file=None, PUBLIC_BASE_URL=" https://cloud.example.com/// ")

    assert settings.public_base_url == "https://cloud.example.com"


def test_public_base_url_must_be_http() -> None:
    with pytest.raises(ValidationError, match="http"):
        Settings(_env_file=None, PUBLIC_BASE_URL="cloud.example.com")


def test_app_id_is_slugged() -> None:
    """The namespace should be safe to use in route and rich-object names."""

    settings = Settings(_env_file=None, APP_ID="My TMDB")

    assert settings.app_id == "my_tmdb"


def test_cache_ttl_lower_bound() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, REFERENCE_CACHE_TTL=5)
