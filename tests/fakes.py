"""In-memory collaborators shared by the test-suite."""

from __future__ import annotations

from typing import Any

from tmdbref.models import ResolvedPreview


class InMemorySettings:
    """Dictionary-backed stand-in for ``SettingsStore``."""

    def __init__(self) -> None:
        self.app_values: dict[tuple[str, str], str] = {}
        self.user_values: dict[tuple[str, str, str], str] = {}

    async def get_app_value(self, namespace: str, key: str, default: str = "") -> str:
        return self.app_values.get((namespace, key), default)

    async def get_user_value(
        self, user_id: str | None, namespace: str, key: str, default: str = ""
    ) -> str:
        if not user_id:
            return default
        return self.user_values.get((user_id, namespace, key), default)


class RecordingMetadata:
    """Returns a canned movie record and remembers every lookup."""

    def __init__(self, record: dict[str, Any]) -> None:
        self.record = record
        self.calls: list[tuple[str | None, str]] = []

    async def get_movie_info(self, user_id: str | None, movie_id: str) -> dict[str, Any]:
        self.calls.append((user_id, movie_id))
        return dict(self.record)


class RecordingFallback:
    def __init__(self, preview: ResolvedPreview | None = None) -> None:
        self.preview = preview
        self.calls: list[str] = []

    async def resolve_reference(self, text: str) -> ResolvedPreview | None:
        self.calls.append(text)
        return self.preview


class RecordingCache:
    def __init__(self) -> None:
        self.invalidated: list[str] = []

    async def invalidate(self, prefix: str) -> int:
        self.invalidated.append(prefix)
        return 0
