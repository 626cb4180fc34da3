"""Pydantic models describing catalog references and previews."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_TITLE = "???"


class ReferenceKind(str, Enum):
    """Catalog entity a reference points to."""

    MOVIE = "movie"
    PERSON = "person"
    SERIES = "series"

    @property
    def path_segment(self) -> str:
        """Return the URL path segment used by themoviedb.org."""

        return "tv" if self is ReferenceKind.SERIES else self.value


@dataclass(frozen=True, slots=True)
class MatchedReference:
    """Kind and catalog identifier extracted from a reference URL."""

    kind: ReferenceKind
    raw_text: str
    identifier: str


class MovieInfo(BaseModel):
    """Subset of the TMDB movie detail payload used for previews.

    Every field is optional because the API omits keys freely. ``error`` is
    set instead of the detail fields when the lookup failed.
    """

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    title: str | None = None
    original_title: str | None = None
    overview: str | None = None
    poster_path: str | None = None
    error: Any = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def display_title(self) -> str:
        """Combine the localized and original titles for a preview card."""

        if self.title and self.original_title and self.title != self.original_title:
            return f"{self.title} ({self.original_title})"
        for candidate in (self.title, self.original_title):
            if candidate:
                return candidate
        return UNKNOWN_TITLE


class RichObject(BaseModel):
    """Structured attachment carrying the full upstream record."""

    model_config = ConfigDict(frozen=True)

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ResolvedPreview(BaseModel):
    """Preview card shown in place of a raw reference."""

    model_config = ConfigDict(frozen=True)

    source_text: str
    title: str
    description: str = ""
    image_url: str = ""
    catalog_url: str
    rich_object: RichObject | None = None
