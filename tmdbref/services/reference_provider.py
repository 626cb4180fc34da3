"""Recognise themoviedb.org links and turn them into preview cards."""

from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from ..models import MatchedReference, MovieInfo, ReferenceKind, ResolvedPreview, RichObject
from ..urls import URLBuilder
from ..utils import is_enabled

logger = logging.getLogger(__name__)

# Examples:
#   https://www.themoviedb.org/movie/293-blabla
#   https://www.themoviedb.org/person/3636-blabla
#   https://www.themoviedb.org/tv/42009-blabla
REFERENCE_PATTERNS: dict[ReferenceKind, re.Pattern[str]] = {
    kind: re.compile(
        rf"^(?:https?://)?(?:www\.)?themoviedb\.org/{kind.path_segment}/(\d+)",
        re.IGNORECASE,
    )
    for kind in ReferenceKind
}

# Kinds with a detail resolver. Person and series links are recognised but
# always go through the generic preview.
RESOLVABLE_KINDS: tuple[ReferenceKind, ...] = (ReferenceKind.MOVIE,)

SEARCH_PROVIDER_IDS: tuple[str, ...] = (
    "tmdb-search-movie",
    "tmdb-search-person",
    "tmdb-search-series",
)

POSTER_SIZE = "w500"


class SettingsReader(Protocol):
    async def get_app_value(self, namespace: str, key: str, default: str = "") -> str: ...

    async def get_user_value(
        self, user_id: str | None, namespace: str, key: str, default: str = ""
    ) -> str: ...


class MetadataFetcher(Protocol):
    async def get_movie_info(self, user_id: str | None, movie_id: str) -> dict[str, Any]: ...


class PreviewFallback(Protocol):
    async def resolve_reference(self, text: str) -> ResolvedPreview | None: ...


class CacheInvalidator(Protocol):
    async def invalidate(self, prefix: str) -> int: ...


def match_kind(text: str) -> ReferenceKind | None:
    """Return the catalog kind ``text`` links to, ignoring feature flags."""

    for kind, pattern in REFERENCE_PATTERNS.items():
        if pattern.match(text):
            return kind
    return None


def extract_identity(text: str) -> MatchedReference | None:
    """Extract the kind and numeric id for kinds that can be resolved."""

    for kind in RESOLVABLE_KINDS:
        match = REFERENCE_PATTERNS[kind].match(text)
        if match is None or not match.group(1):
            continue
        return MatchedReference(kind=kind, raw_text=text, identifier=match.group(1))
    return None


class TMDBReferenceProvider:
    """Discoverable and searchable reference provider for TMDB links.

    One instance serves one acting user. It holds no mutable state: flags
    and cached previews live in the injected collaborators.
    """

    def __init__(
        self,
        *,
        settings_reader: SettingsReader,
        metadata: MetadataFetcher,
        fallback: PreviewFallback,
        cache: CacheInvalidator,
        url_builder: URLBuilder,
        app_id: str,
        user_id: str | None = None,
        title: str = "TMDB items",
        attach_rich_object: bool = False,
    ) -> None:
        self._settings = settings_reader
        self._metadata = metadata
        self._fallback = fallback
        self._cache = cache
        self._urls = url_builder
        self._app_id = app_id
        self._user_id = user_id or None
        self._title = title
        self._attach_rich_object = attach_rich_object

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def get_id(self) -> str:
        return "tmdb-items"

    def get_title(self) -> str:
        return self._title

    def get_order(self) -> int:
        return 10

    def get_icon_url(self) -> str:
        return self._urls.build_absolute_url(self._urls.image_path("app-dark.svg"))

    def rich_object_type(self, kind: ReferenceKind) -> str:
        return f"{self._app_id}_{kind.value}"

    async def get_supported_search_provider_ids(self) -> list[str]:
        if self._user_id is None:
            return list(SEARCH_PROVIDER_IDS)
        search_enabled = await self._settings.get_user_value(
            self._user_id, self._app_id, "search_enabled", "1"
        )
        return list(SEARCH_PROVIDER_IDS) if is_enabled(search_enabled) else []

    async def matches(self, text: str) -> bool:
        admin_enabled = await self._settings.get_app_value(
            self._app_id, "link_preview_enabled", "1"
        )
        user_enabled = await self._settings.get_user_value(
            self._user_id, self._app_id, "link_preview_enabled", "1"
        )
        if not (is_enabled(admin_enabled) and is_enabled(user_enabled)):
            return False
        return match_kind(text) is not None

    async def resolve(self, text: str) -> ResolvedPreview | None:
        """Resolve a link into a preview, falling back to the generic preview."""

        if not await self.matches(text):
            return None

        identity = extract_identity(text)
        if identity is not None:
            preview = await self._resolve_identity(identity)
            if preview is not None:
                return preview
        else:
            logger.debug("No resolver for %s, using generic preview", text)

        return await self._fallback.resolve_reference(text)

    async def _resolve_identity(self, identity: MatchedReference) -> ResolvedPreview | None:
        if identity.kind is ReferenceKind.MOVIE:
            return await self._resolve_movie(identity)
        return None

    async def _resolve_movie(self, identity: MatchedReference) -> ResolvedPreview | None:
        raw = await self._metadata.get_movie_info(self._user_id, identity.identifier)
        # Any non-null ``error`` value marks a failed lookup, whatever its type.
        if raw.get("error") is not None:
            logger.info(
                "TMDB movie %s unavailable (%s), using generic preview",
                identity.identifier,
                raw["error"],
            )
            return None
        info = MovieInfo.model_validate(raw)

        rich_object = None
        if self._attach_rich_object:
            rich_object = RichObject(
                type=self.rich_object_type(identity.kind),
                payload={**raw, "tmdb_url": identity.raw_text},
            )
        return ResolvedPreview(
            source_text=identity.raw_text,
            title=info.display_title(),
            description=info.overview or "",
            image_url=self._urls.build_image_url(POSTER_SIZE, info.poster_path),
            catalog_url=identity.raw_text,
            rich_object=rich_object,
        )

    def cache_prefix(self, reference_id: str) -> str:
        """Partition cached previews by user so a settings change can drop them all."""

        return self._user_id or ""

    def cache_key(self, reference_id: str) -> str:
        return reference_id

    async def invalidate_user_cache(self, user_id: str) -> None:
        await self._cache.invalidate(user_id)
