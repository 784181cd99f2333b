"""Image registry reconciliation.

Compares three sources of truth and reports drift between them:

- the declared registry (``image-registry.json``),
- the physical asset tree (``attached_assets/**``),
- every asset path referenced from YAML content.

``scan()`` never mutates anything. ``apply()`` commits a scan result:
it registers new images, repoints updated ones, and rewrites YAML
references structurally so only exact path values change.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from contentkit.config import ContentkitConfig
from contentkit.errors import ContentLoadError
from contentkit.images.models import (
    ApplyResult,
    BrokenReference,
    ImageRegistryEntry,
    NewImage,
    ScanResult,
    ScanSummary,
    UpdatedImage,
)
from contentkit.images.naming import extension, extract_timestamp, filename_to_id, id_base
from contentkit.images.registry import load_registry, save_registry
from contentkit.shared.yaml_io import is_yaml_file, load_yaml

logger = logging.getLogger(__name__)

ASSETS_URL_PREFIX = "/attached_assets/"


class ImageRegistryScanner:
    """Reconcile the image registry against disk and content references."""

    def __init__(self, config: ContentkitConfig) -> None:
        self.config = config
        self.root = config.root
        self.content_root = config.content_root
        self.assets_root = config.assets_root
        self.registry_path = config.registry_path
        self._extensions = {e.lower() for e in config.images.extensions}
        self._prefixes = tuple(config.images.asset_prefixes)

    # ── Inputs ───────────────────────────────────────────────────

    def scan_assets(self) -> dict[str, str]:
        """Return ``relative path → /attached_assets/... src`` for every image file."""
        assets: dict[str, str] = {}
        if not self.assets_root.is_dir():
            return assets
        for path in sorted(self.assets_root.rglob("*")):
            if path.is_file() and path.suffix.lower() in self._extensions:
                rel = path.relative_to(self.assets_root).as_posix()
                assets[rel] = f"{ASSETS_URL_PREFIX}{rel}"
        return assets

    def iter_yaml_files(self) -> Iterator[Path]:
        if not self.content_root.is_dir():
            return
        for path in sorted(self.content_root.rglob("*")):
            if path.is_file() and is_yaml_file(path.name):
                yield path

    def scan_yaml_references(self) -> list[tuple[str, str, str]]:
        """Return ``(yaml_file, field_path, src)`` for every asset reference.

        Unparseable files are skipped.
        """
        refs: list[tuple[str, str, str]] = []
        for path in self.iter_yaml_files():
            try:
                document = load_yaml(path)
            except ContentLoadError:
                logger.debug("Skipping unparseable %s", path)
                continue
            if not isinstance(document, (dict, list)):
                continue
            rel = self._relative(path)
            for field, src in self._find_refs(document, ""):
                refs.append((rel, field, src))
        return refs

    def _find_refs(self, value: Any, current: str) -> Iterator[tuple[str, str]]:
        if isinstance(value, str):
            if value.startswith(self._prefixes):
                yield current, value
        elif isinstance(value, list):
            for i, item in enumerate(value):
                yield from self._find_refs(item, f"{current}[{i}]")
        elif isinstance(value, dict):
            for key, item in value.items():
                yield from self._find_refs(item, f"{current}.{key}" if current else str(key))

    # ── Scan ─────────────────────────────────────────────────────

    def scan(self) -> ScanResult:
        registry = load_registry(self.registry_path)
        assets = self.scan_assets()
        yaml_refs = self.scan_yaml_references()

        registered_srcs = {entry.src for entry in registry.images.values()}
        by_base: dict[str, tuple[str, str] | None] = {}
        for image_id, entry in registry.images.items():
            base = id_base(entry.src.rsplit("/", 1)[-1])
            if not base:
                continue
            # Colliding bases are ambiguous and never fuzzy-matched.
            by_base[base] = None if base in by_base else (image_id, entry.src)

        new_images: list[NewImage] = []
        updated_images: list[UpdatedImage] = []

        for rel, src in assets.items():
            if src in registered_srcs:
                continue
            match = by_base.get(id_base(rel))
            if match is not None:
                image_id, old_src = match
                old_file = old_src.rsplit("/", 1)[-1]
                if extension(old_file) != extension(rel) and extract_timestamp(rel) >= extract_timestamp(old_file):
                    updated_images.append(UpdatedImage(id=image_id, old_src=old_src, new_src=src))
                continue
            filename = rel.rsplit("/", 1)[-1]
            image_id = filename_to_id(filename)
            if image_id and image_id not in registry.images:
                new_images.append(NewImage(id=image_id, src=src, filename=rel))

        broken: list[BrokenReference] = []
        checked: set[tuple[str, str]] = set()
        for yaml_file, field, src in yaml_refs:
            normalized = src if src.startswith("/") else f"/{src}"
            if (yaml_file, normalized) in checked:
                continue
            checked.add((yaml_file, normalized))
            if not (self.root / normalized.lstrip("/")).exists():
                broken.append(BrokenReference(yaml_file=yaml_file, field=field, missing_src=normalized))

        result = ScanResult(
            new_images=new_images,
            updated_images=updated_images,
            broken_references=broken,
            registered_count=len(registry.images),
            scanned_images_count=len(assets),
            summary=ScanSummary(new=len(new_images), updated=len(updated_images), broken=len(broken)),
        )
        logger.info(
            "Image registry scan: %d registered, %d files, %d new, %d updated, %d broken",
            result.registered_count,
            result.scanned_images_count,
            len(new_images),
            len(updated_images),
            len(broken),
        )
        return result

    # ── Apply ────────────────────────────────────────────────────

    def apply(self, result: ScanResult) -> ApplyResult:
        """Commit proposed additions and renames from a scan result.

        The registry is saved before any YAML file is rewritten.

        Raises:
            RegistryError: If the existing registry cannot be loaded or saved.
        """
        registry = load_registry(self.registry_path, strict=True)

        for image in result.new_images:
            registry.images[image.id] = ImageRegistryEntry(
                src=image.src,
                alt=f"TODO: Add alt text for {image.filename}",
            )
        for image in result.updated_images:
            entry = registry.images.get(image.id)
            if entry is not None:
                entry.src = image.new_src

        save_registry(registry, self.registry_path)

        touched: set[str] = set()
        for image in result.updated_images:
            touched.update(self.replace_references(image.old_src, image.new_src))

        logger.info(
            "Applied %d new and %d updated images, %d YAML files rewritten",
            len(result.new_images),
            len(result.updated_images),
            len(touched),
        )
        return ApplyResult(
            added=len(result.new_images),
            updated=len(result.updated_images),
            yaml_files_updated=sorted(touched),
        )

    def replace_references(self, old_src: str, new_src: str) -> list[str]:
        """Repoint YAML values equal to ``old_src`` at ``new_src``.

        Matches are exact string scalars, with or without the leading slash;
        the slash style of each value is kept. Comments and quoting survive
        the round trip.
        """
        replacements = {
            old_src: new_src,
            old_src.lstrip("/"): new_src.lstrip("/"),
        }
        needle = old_src.lstrip("/")
        updated: list[str] = []

        for path in self.iter_yaml_files():
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Not rewriting unreadable %s: %s", self._relative(path), exc)
                continue
            if needle not in text:
                continue
            yaml = _round_trip_yaml()
            try:
                document = yaml.load(text)
            except YAMLError as exc:
                logger.warning("Not rewriting unparseable %s: %s", self._relative(path), exc)
                continue
            if not _replace_scalars(document, replacements):
                continue
            buffer = io.StringIO()
            yaml.dump(document, buffer)
            try:
                path.write_text(buffer.getvalue(), encoding="utf-8")
            except OSError as exc:
                logger.error("Could not rewrite %s: %s", self._relative(path), exc)
                continue
            updated.append(self._relative(path))

        return updated

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


def _round_trip_yaml() -> YAML:
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = 4096
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


def _swap(value: str, replacements: dict[str, str]) -> str:
    # Keep ruamel's quoted-scalar subclass so the original quoting is kept.
    return type(value)(replacements[value])


def _replace_scalars(node: Any, replacements: dict[str, str]) -> int:
    count = 0
    if isinstance(node, dict):
        for key, value in list(node.items()):
            if isinstance(value, str):
                if value in replacements:
                    node[key] = _swap(value, replacements)
                    count += 1
            else:
                count += _replace_scalars(value, replacements)
    elif isinstance(node, list):
        for i, value in enumerate(node):
            if isinstance(value, str):
                if value in replacements:
                    node[i] = _swap(value, replacements)
                    count += 1
            else:
                count += _replace_scalars(value, replacements)
    return count
