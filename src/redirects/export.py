"""Persist the validated redirect map as ``dist/redirects.json``.

The artifact is a flat JSON object keyed by normalized source path. Each
value is either a target path or a ``locale → path`` map, so locale-keyed
targets survive serialization.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from contentkit.content.models import RedirectTarget
from contentkit.redirects.models import ValidationResult

logger = logging.getLogger(__name__)

REDIRECTS_FILENAME = "redirects.json"


def export_redirect_map(result: ValidationResult, dist_dir: Path) -> Path | None:
    """Write the redirect map when validation passed and the map is non-empty.

    Returns the written path, or None when nothing was written.
    """
    if not result.passed:
        logger.warning("Validation failed; not exporting redirect map")
        return None
    if not result.redirect_map:
        return None

    output_path = dist_dir / REDIRECTS_FILENAME
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(result.redirects_as_json(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    logger.info("Redirect map exported to %s", output_path)
    return output_path


def load_redirect_map(path: Path) -> dict[str, RedirectTarget]:
    """Read a previously exported redirect map; missing or corrupt gives {}."""
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        logger.warning("Corrupt redirect map at %s, ignoring", path)
        return {}
    if not isinstance(raw, dict):
        return {}
    return {
        str(source): target
        for source, target in raw.items()
        if isinstance(target, str) or isinstance(target, dict)
    }
