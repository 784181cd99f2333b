"""YAML loading helpers with typed, per-file failure semantics.

``load_yaml`` raises :class:`ContentLoadError`; the ``read_*`` helpers are
the soft variants used while scanning, returning ``None`` instead.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from contentkit.errors import ContentLoadError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yml", ".yaml")


def is_yaml_file(name: str) -> bool:
    return name.endswith(YAML_SUFFIXES)


def strip_yaml_suffix(name: str) -> str:
    for suffix in YAML_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def load_yaml(path: Path) -> Any:
    """Parse a YAML file.

    Raises:
        ContentLoadError: If the file cannot be read or is not valid YAML.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentLoadError(path, f"unreadable: {exc}") from exc
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ContentLoadError(path, f"invalid YAML: {exc}") from exc


def read_mapping(path: Path) -> dict[str, Any] | None:
    """Return the file's top-level mapping, or None on any failure."""
    try:
        data = load_yaml(path)
    except ContentLoadError as exc:
        logger.warning("Skipping %s (%s)", exc.path, exc.reason)
        return None
    return data if isinstance(data, dict) else None


def string_field(document: Any, *fields: str) -> str | None:
    """Return the first of ``fields`` holding a non-empty string, if any."""
    if not isinstance(document, dict):
        return None
    for field in fields:
        value = document.get(field)
        if isinstance(value, str) and value:
            return value
    return None
