"""Canonical URL templates and path normalization."""

from __future__ import annotations

from collections.abc import Iterable


def normalize_path(path: str) -> str:
    """Add a leading slash, lowercase, and strip a trailing slash."""
    normalized = path if path.startswith("/") else f"/{path}"
    normalized = normalized.lower()
    if len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def locale_url(content_type: str, slug: str, locale: str) -> str:
    """Public URL of ``slug`` in ``locale``."""
    if content_type == "programs":
        if locale == "es":
            return f"/es/programas-de-carrera/{slug}"
        return f"/{locale}/career-programs/{slug}"
    if content_type == "locations":
        if locale == "es":
            return f"/es/ubicaciones/{slug}"
        return f"/{locale}/locations/{slug}"
    if content_type == "landings":
        return f"/landing/{slug}"
    return f"/{locale}/{slug}"


def canonical_url(content_type: str, slug: str, locale: str) -> str:
    """Redirect target for a file; every non-Spanish locale maps to English."""
    if content_type in ("programs", "locations"):
        return locale_url(content_type, slug, "es" if locale == "es" else "en")
    return locale_url(content_type, slug, locale)


def valid_url_set(urls: Iterable[str], static_routes: Iterable[str]) -> set[str]:
    valid = set(urls)
    valid.update(static_routes)
    return valid
