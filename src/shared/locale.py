"""Locale negotiation helpers."""

from __future__ import annotations

SUPPORTED_LOCALES = ("en", "es")
DEFAULT_LOCALE = "en"


def normalize_locale(locale: str | None) -> str:
    """Collapse any tag (``es-MX``, ``es_AR``, ``fr``) to a supported locale."""
    if not locale:
        return DEFAULT_LOCALE
    primary = locale.lower().split("-")[0].split("_")[0]
    return "es" if primary == "es" else DEFAULT_LOCALE


def preferred_locale(accept_language: str | None) -> str:
    """Pick ``es`` when the first Accept-Language tag starts with it, else ``en``."""
    if not accept_language:
        return DEFAULT_LOCALE
    first = accept_language.split(",")[0].split(";")[0].strip().lower()
    return "es" if first.startswith("es") else DEFAULT_LOCALE


def is_valid_locale(locale: str) -> bool:
    return locale in SUPPORTED_LOCALES
