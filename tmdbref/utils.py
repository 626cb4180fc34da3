"""Utility helpers for the TMDB reference service."""

from __future__ import annotations

import re
import unicodedata


def slugify(value: str) -> str:
    """Return a URL-friendly slug."""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value)
    value = value.strip("-")
    value = re.sub(r"-+", "-", value)
    return value.lower()


def is_enabled(value: str | None) -> bool:
    """Interpret a stored ``"1"``/``"0"`` setting."""

    return (value or "").strip() == "1"


def coerce_setting_value(value: object) -> str:
    """Convert a submitted settings value into its stored string form."""

    if isinstance(value, bool):
        return "1" if value else "0"
    if value is None:
        return ""
    return str(value)
