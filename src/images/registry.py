"""JSON-backed image registry persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from contentkit.errors import RegistryError
from contentkit.images.models import ImageRegistry

logger = logging.getLogger(__name__)


def load_registry(path: Path, *, strict: bool = False) -> ImageRegistry:
    """Load the registry, starting empty when it is missing.

    A corrupt or invalid registry also loads as empty, unless ``strict`` is
    set. Callers that write the registry back pass ``strict=True`` so an
    unreadable file is never replaced.

    Raises:
        RegistryError: If ``strict`` and the file cannot be read or validated.
    """
    if not path.exists():
        logger.warning("Image registry not found at %s, starting empty", path)
        return ImageRegistry()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return ImageRegistry.model_validate(raw)
    except (json.JSONDecodeError, ValidationError, OSError, UnicodeDecodeError) as exc:
        if strict:
            raise RegistryError(f"Image registry {path} is unreadable or invalid: {exc}") from exc
        logger.warning("Corrupt image registry at %s, starting empty: %s", path, exc)
        return ImageRegistry()


def save_registry(registry: ImageRegistry, path: Path) -> None:
    """Write the registry as indented JSON with a trailing newline.

    Raises:
        RegistryError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(registry.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise RegistryError(f"Could not write image registry {path}: {exc}") from exc
