"""URL helpers for same-origin image proxying and static assets."""

from __future__ import annotations

from urllib.parse import quote

IMAGE_SIZES: frozenset[str] = frozenset(
    {"w92", "w154", "w185", "w342", "w500", "w780", "original"}
)


class URLBuilder:
    """Build absolute URLs pointing back at this service."""

    def __init__(self, public_base_url: str, app_id: str) -> None:
        self._base_url = public_base_url.rstrip("/")
        self._app_id = app_id

    def build_absolute_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    def build_image_url(self, size: str, image_path: str | None) -> str:
        """Return the proxy route serving ``image_path`` at ``size``."""

        if not image_path:
            return ""
        cleaned = quote(image_path.lstrip("/"), safe="/")
        return self.build_absolute_url(f"/images/{size}/{cleaned}")

    def image_path(self, asset: str) -> str:
        return f"/static/{self._app_id}/img/{asset}"
