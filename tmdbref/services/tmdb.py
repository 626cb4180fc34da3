"""Utilities for fetching metadata from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)


class TMDBClient:
    """Client fetching movie details and poster images from TMDB.

    Lookups never raise for upstream failures. They return a dictionary
    carrying an ``error`` key instead, mirroring the detail payload shape.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        settings_store: SettingsStore,
        image_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self._store = settings_store
        self._image_client = image_client or http_client

    async def get_movie_info(self, user_id: str | None, movie_id: str) -> dict[str, Any]:
        return await self._get_detail(user_id, f"/movie/{movie_id}")

    async def get_image(self, size: str, image_path: str) -> tuple[bytes, str] | None:
        """Download a poster/profile image, returning its bytes and content type."""

        url = f"{str(self._settings.tmdb_image_url).rstrip('/')}/{size}/{image_path.lstrip('/')}"
        try:
            response = await self._image_client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("TMDB image fetch failed for %s: %s", image_path, exc)
            return None
        if response.status_code >= 400:
            logger.warning(
                "TMDB image fetch for %s returned %s", image_path, response.status_code
            )
            return None
        content_type = response.headers.get("content-type", "image/jpeg")
        return response.content, content_type

    async def _get_detail(self, user_id: str | None, endpoint: str) -> dict[str, Any]:
        api_key = await self._resolve_setting(user_id, "api_key", self._settings.tmdb_api_key)
        if not api_key:
            logger.info("No TMDB API key configured, skipping %s", endpoint)
            return {"error": "No TMDB API key configured"}
        language = await self._resolve_setting(
            user_id, "language", self._settings.tmdb_language
        )
        params = {"api_key": api_key, "language": language}

        try:
            response = await self._client.get(endpoint, params=params)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request %s failed: %s", endpoint, exc)
            return {"error": str(exc) or exc.__class__.__name__}
        if response.status_code >= 400:
            logger.warning(
                "TMDB request %s failed with %s: %s",
                endpoint,
                response.status_code,
                response.text,
            )
            return {"error": self._error_message(response)}
        try:
            payload = response.json()
        except ValueError:
            logger.warning("TMDB request %s returned a non-JSON body", endpoint)
            return {"error": "Invalid response from TMDB"}
        if not isinstance(payload, dict):
            return {"error": "Unexpected response from TMDB"}
        return payload

    async def _resolve_setting(
        self, user_id: str | None, key: str, fallback: str | None
    ) -> str | None:
        """Return the user's value, else the deployment value, else ``fallback``."""

        namespace = self._settings.app_id
        app_value = await self._store.get_app_value(namespace, key, fallback or "")
        user_value = await self._store.get_user_value(user_id, namespace, key, app_value)
        return user_value or None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("status_message"):
            return str(data["status_message"])
        return f"TMDB request failed with status {response.status_code}"
