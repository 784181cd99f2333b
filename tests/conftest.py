"""Shared fixtures: a miniature marketing-content project on disk."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml
from contentkit.config import ContentkitConfig, PathsConfig
from contentkit.content.index import ContentIndex, reset_content_index

PNG_BYTES = b"\x89PNG\r\n\x1a\n"

WriteYaml = Callable[[str, Any], Path]


def _meta(title: str, **extra: Any) -> dict[str, Any]:
    return {"page_title": title, "description": f"{title} description", **extra}


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Build a small but complete content tree and return its root."""
    content = tmp_path / "marketing-content"

    files: dict[str, Any] = {
        "programs/python-bootcamp/en.yml": {
            "slug": "python-bootcamp",
            "title": "Python Bootcamp",
            "meta": _meta("Python Bootcamp", redirects=["/old-python-course"]),
            "hero": {"image": "/attached_assets/team_1700000000000.png"},
        },
        "programs/python-bootcamp/es.yml": {
            "slug": "bootcamp-python",
            "title": "Bootcamp de Python",
            "meta": _meta("Bootcamp de Python"),
        },
        "landings/summer-promo/_common.yml": {
            "slug": "summer-promo",
            "title": "Summer Promo",
            "meta": _meta("Summer Promo"),
        },
        "landings/summer-promo/en.yml": {
            "meta": _meta("Summer Promo EN"),
            "sections": [{"image_id": "team"}],
        },
        "pages/about/en.yml": {
            "title": "About us",
            "sections": [
                {"type": "hero", "background_image": "/attached_assets/team_1700000000000.png"},
            ],
        },
        "locations/miami/en.yml": {"slug": "miami", "name": "Miami Campus"},
        "locations/miami/es.yml": {"slug": "miami"},
        "schema-org.yml": {
            "organization": {"name": "Academy"},
            "website": {"url": "https://example.com"},
            "courses": {"full-stack": {}, "python": {}},
            "item_lists": {"career-programs": {}},
        },
    }
    for rel, data in files.items():
        path = content / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")

    (content / "locations" / "miami" / "notes.txt").write_text("not content", encoding="utf-8")
    (content / "programs" / "empty-folder").mkdir()

    assets = tmp_path / "attached_assets"
    assets.mkdir()
    (assets / "team_1700000000000.png").write_bytes(PNG_BYTES)

    registry = {
        "presets": {},
        "images": {
            "team": {
                "src": "/attached_assets/team_1700000000000.png",
                "alt": "The team",
                "focal_point": "center",
                "tags": ["people"],
                "usage_count": 2,
            }
        },
    }
    (content / "image-registry.json").write_text(json.dumps(registry, indent=2), encoding="utf-8")
    return tmp_path


@pytest.fixture
def write_yaml(project_root: Path) -> WriteYaml:
    """Write a YAML document below marketing-content/."""

    def _write(rel: str, data: Any) -> Path:
        path = project_root / "marketing-content" / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config(project_root: Path) -> ContentkitConfig:
    return ContentkitConfig(paths=PathsConfig(root=str(project_root)))


@pytest.fixture
def index(config: ContentkitConfig) -> ContentIndex:
    return ContentIndex.from_config(config)


@pytest.fixture(autouse=True)
def _reset_default_index():
    yield
    reset_content_index()
