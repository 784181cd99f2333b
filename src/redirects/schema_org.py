"""Schema.org registry keys referenced by content ``schema`` blocks."""

from __future__ import annotations

import logging
from pathlib import Path

from contentkit.errors import ContentLoadError
from contentkit.shared.yaml_io import load_yaml

logger = logging.getLogger(__name__)

# Sections whose children are addressed as "section:child".
NESTED_SECTIONS = ("courses", "item_lists")


def load_schema_keys(path: Path) -> set[str]:
    """Return every referenceable key in the schema-org registry.

    A missing or unreadable registry yields an empty set, which makes every
    reference invalid.
    """
    if not path.is_file():
        logger.warning("Schema registry not found: %s", path)
        return set()
    try:
        data = load_yaml(path)
    except ContentLoadError as exc:
        logger.error("Failed to parse schema registry %s: %s", path, exc.reason)
        return set()
    if not isinstance(data, dict):
        return set()

    keys: set[str] = set()
    for key, value in data.items():
        if key in NESTED_SECTIONS and isinstance(value, dict):
            keys.update(f"{key}:{child}" for child in value)
        else:
            keys.add(str(key))
    return keys
