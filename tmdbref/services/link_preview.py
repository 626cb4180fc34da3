"""Generic OpenGraph link previews used when no catalog lookup applies."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from ..models import ResolvedPreview

logger = logging.getLogger(__name__)

_TITLE_KEYS = ("og:title", "twitter:title")
_DESCRIPTION_KEYS = ("og:description", "twitter:description", "description")
_IMAGE_KEYS = ("og:image", "og:image:url", "twitter:image")


class LinkPreviewClient:
    """Fetch a web page and summarise its OpenGraph metadata."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def resolve_reference(self, text: str) -> ResolvedPreview | None:
        url = (text or "").strip()
        if not self._is_http_url(url):
            return None

        try:
            response = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            logger.warning("Link preview fetch failed for %s: %s", url, exc)
            return None
        if response.status_code >= 400:
            logger.info("Link preview for %s returned %s", url, response.status_code)
            return None
        content_type = response.headers.get("content-type", "")
        if "html" not in content_type.lower():
            return None

        meta = self._extract_meta(response.text)
        title = meta.get("title")
        if not title:
            return None
        image = meta.get("image")
        return ResolvedPreview(
            source_text=text,
            title=title,
            description=meta.get("description") or "",
            image_url=urljoin(str(response.url), image) if image else "",
            catalog_url=text,
        )

    @staticmethod
    def _is_http_url(value: str) -> bool:
        parsed = urlparse(value)
        return parsed.scheme in {"http", "https"} and bool(parsed.netloc)

    @staticmethod
    def _extract_meta(html: str) -> dict[str, str]:
        soup = BeautifulSoup(html, "html.parser")
        found: dict[str, str] = {}
        for tag in soup.find_all("meta"):
            name = (tag.get("property") or tag.get("name") or "").strip().lower()
            content = (tag.get("content") or "").strip()
            if name and content and name not in found:
                found[name] = content

        def first(keys: tuple[str, ...]) -> str | None:
            for key in keys:
                if found.get(key):
                    return found[key]
            return None

        title = first(_TITLE_KEYS)
        if not title and soup.title and soup.title.string:
            title = " ".join(soup.title.string.split())
        result: dict[str, str] = {}
        if title:
            result["title"] = title
        description = first(_DESCRIPTION_KEYS)
        if description:
            result["description"] = description
        image = first(_IMAGE_KEYS)
        if image:
            result["image"] = image
        return result
