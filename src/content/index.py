"""In-memory index of the marketing content tree.

Scans ``{content_root}/{type}/{folder}/{locale}.yml`` once and answers
lookups by slug, folder and type without touching the filesystem again.
Alongside the entries it tracks image usage, declared redirects and
per-locale slug aliases.

Every scan builds a complete ``_IndexSnapshot`` and swaps it in with a
single assignment, so readers never observe a half-built index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from contentkit.config import ContentkitConfig
from contentkit.content.models import (
    COMMON_LOCALE,
    CONTENT_TYPES,
    ContentEntry,
    ContentType,
    FileContent,
    RedirectEntry,
    RedirectTarget,
)
from contentkit.errors import ContentLoadError
from contentkit.shared.urls import canonical_url, locale_url, normalize_path
from contentkit.shared.yaml_io import (
    is_yaml_file,
    load_yaml,
    read_mapping,
    string_field,
    strip_yaml_suffix,
)

logger = logging.getLogger(__name__)

SLUG_CANDIDATES = ("en.yml", "en.yaml", "_common.yml", "_common.yaml")
COMMON_FILES = ("_common.yml", "_common.yaml")
TITLE_CANDIDATES: dict[ContentType, tuple[str, ...]] = {
    ContentType.LANDINGS: COMMON_FILES,
}
DEFAULT_TITLE_CANDIDATES = ("en.yml", "en.yaml")

IMAGE_KEYS = frozenset({"image", "src", "background_image", "logo", "icon_image"})
IMAGE_PREFIXES = ("/attached_assets/", "/marketing-content/images/", "http://", "https://")
REDIRECT_TYPES = (ContentType.PROGRAMS, ContentType.LANDINGS)


@dataclass
class _IndexSnapshot:
    entries: list[ContentEntry] = field(default_factory=list)
    by_slug: dict[str, list[ContentEntry]] = field(default_factory=dict)
    by_path: dict[str, ContentEntry] = field(default_factory=dict)
    image_usage: dict[str, set[str]] = field(default_factory=dict)
    redirects: list[RedirectEntry] = field(default_factory=list)
    locale_slugs: dict[str, str] = field(default_factory=dict)


class ContentIndex:
    """Queryable view of all content folders.

    The first query triggers ``scan()`` if it has not run yet; ``refresh()``
    forces a full rebuild.
    """

    def __init__(
        self,
        content_root: Path,
        project_root: Path | None = None,
        *,
        custom_redirects_file: str = "custom-redirects.yml",
        default_status: int = 301,
        allowed_statuses: tuple[int, ...] = (301, 302),
    ) -> None:
        self.content_root = content_root
        self.project_root = project_root or content_root.parent
        self._custom_redirects_file = custom_redirects_file
        self._default_status = default_status
        self._allowed_statuses = tuple(allowed_statuses)
        self._snapshot: _IndexSnapshot | None = None

    @classmethod
    def from_config(cls, config: ContentkitConfig) -> ContentIndex:
        return cls(
            config.content_root,
            config.root,
            custom_redirects_file=config.paths.custom_redirects_file,
            default_status=config.redirects.default_status,
            allowed_statuses=tuple(config.redirects.allowed_statuses),
        )

    @property
    def is_scanned(self) -> bool:
        return self._snapshot is not None

    # ── Scanning ─────────────────────────────────────────────────

    def scan(self) -> None:
        """Rebuild the whole index from disk."""
        snapshot = _IndexSnapshot()

        for content_type in CONTENT_TYPES:
            type_dir = self.content_root / content_type.value
            if not type_dir.is_dir():
                continue
            for folder_path in sorted(p for p in type_dir.iterdir() if p.is_dir()):
                self._scan_folder(snapshot, content_type, folder_path)

        snapshot.redirects.extend(self._scan_custom_redirects())

        self._snapshot = snapshot
        logger.info(
            "Scanned %d content entries, %d image references tracked, %d redirects",
            len(snapshot.entries),
            len(snapshot.image_usage),
            len(snapshot.redirects),
        )

    def refresh(self) -> None:
        """Force a full rescan."""
        self.scan()

    def _scan_folder(
        self, snapshot: _IndexSnapshot, content_type: ContentType, folder_path: Path
    ) -> None:
        files = sorted(f.name for f in folder_path.iterdir() if f.is_file() and is_yaml_file(f.name))
        if not files:
            return

        documents = {name: self._parse(folder_path / name) for name in files}
        rel_folder = self._relative(folder_path)

        entry = ContentEntry(
            slug=_extract_slug(documents, folder_path.name),
            content_type=content_type,
            folder=rel_folder,
            files=files,
            locales=_extract_locales(files, content_type),
            title=_extract_title(documents, content_type),
        )
        snapshot.entries.append(entry)
        snapshot.by_slug.setdefault(entry.slug, []).append(entry)
        snapshot.by_path[rel_folder] = entry

        for name, document in documents.items():
            if document is None:
                continue
            rel_file = f"{rel_folder}/{name}"
            _collect_image_refs(document, rel_file, snapshot.image_usage)

            if content_type in REDIRECT_TYPES and isinstance(document, dict):
                locale = strip_yaml_suffix(name)
                snapshot.redirects.extend(
                    self._extract_redirects(document, entry, locale, documents, rel_file)
                )

            locale_slug = string_field(document, "slug")
            if locale_slug and locale_slug != entry.slug:
                snapshot.locale_slugs[f"{locale_slug}:{content_type.value}"] = entry.slug

    def _parse(self, path: Path) -> Any:
        try:
            return load_yaml(path)
        except ContentLoadError as exc:
            logger.warning("Could not parse %s: %s", self._relative(path), exc.reason)
            return None

    def _extract_redirects(
        self,
        document: dict[str, Any],
        entry: ContentEntry,
        locale: str,
        documents: dict[str, Any],
        rel_file: str,
    ) -> list[RedirectEntry]:
        meta = document.get("meta")
        declared = meta.get("redirects") if isinstance(meta, dict) else None
        if not isinstance(declared, list):
            return []

        label = "program" if entry.content_type == ContentType.PROGRAMS else "landing"
        target: RedirectTarget
        if locale == COMMON_LOCALE:
            label = f"{label}-common"
            target = _locale_urls(entry, documents)
            if not target:
                target = canonical_url(entry.content_type, entry.slug, "en")
        else:
            slug = string_field(document, "slug") or entry.slug
            target = canonical_url(entry.content_type, slug, locale)

        redirects: list[RedirectEntry] = []
        for item in declared:
            parsed = self._parse_redirect_item(item)
            if parsed is None:
                continue
            raw_path, status = parsed
            redirects.append(
                RedirectEntry(
                    from_path=normalize_path(raw_path),
                    to=target,
                    status=status,
                    type=label,
                    source=rel_file,
                )
            )
        return redirects

    def _parse_redirect_item(self, item: Any) -> tuple[str, int] | None:
        if isinstance(item, str) and item:
            return item, self._default_status
        if isinstance(item, dict) and isinstance(item.get("path"), str) and item["path"]:
            return item["path"], self._coerce_status(item.get("status"))
        return None

    def _coerce_status(self, status: Any) -> int:
        return status if status in self._allowed_statuses else self._default_status

    def _scan_custom_redirects(self) -> list[RedirectEntry]:
        path = self.content_root / self._custom_redirects_file
        if not path.is_file():
            return []
        try:
            data = load_yaml(path)
        except ContentLoadError as exc:
            logger.error("Failed to read %s: %s", self._relative(path), exc.reason)
            return []
        items = data.get("redirects") if isinstance(data, dict) else None
        if not isinstance(items, list):
            return []

        source = self._relative(path)
        redirects: list[RedirectEntry] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            from_path, to = item.get("from"), item.get("to")
            if not isinstance(from_path, str) or not isinstance(to, (str, dict)):
                continue
            try:
                redirect = RedirectEntry(
                    from_path=normalize_path(from_path),
                    to=to,
                    status=self._coerce_status(item.get("status")),
                    type="custom",
                    source=source,
                )
            except ValidationError as exc:
                logger.warning(
                    "Skipping custom redirect %r in %s: %d invalid field(s)",
                    from_path,
                    source,
                    exc.error_count(),
                )
                continue
            redirects.append(redirect)
        return redirects

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_root).as_posix()
        except ValueError:
            return path.as_posix()

    # ── Queries ──────────────────────────────────────────────────

    def _current(self) -> _IndexSnapshot:
        if self._snapshot is None:
            self.scan()
        assert self._snapshot is not None
        return self._snapshot

    def find_by_slug(
        self, slug: str, content_type: ContentType | None = None
    ) -> list[ContentEntry]:
        """Return all entries with ``slug``, optionally limited to one type."""
        matches = self._current().by_slug.get(slug, [])
        if content_type is not None:
            return [e for e in matches if e.content_type == content_type]
        return list(matches)

    def find_by_path(self, folder: str) -> ContentEntry | None:
        """Return the entry for a relative folder path, or None."""
        return self._current().by_path.get(folder)

    def find_by_type(self, content_type: ContentType) -> list[ContentEntry]:
        return [e for e in self._current().entries if e.content_type == content_type]

    def list_all(self) -> list[ContentEntry]:
        return list(self._current().entries)

    def get_file_content(
        self, slug: str, locale: str, content_type: ContentType | None = None
    ) -> FileContent | None:
        """Return the file that serves ``slug`` in ``locale``.

        Landings prefer their shared ``_common`` file over any locale file.
        """
        for entry in self.find_by_slug(slug, content_type):
            base = self.project_root / entry.folder
            candidates = [f"{locale}.yml", f"{locale}.yaml"]
            if entry.content_type == ContentType.LANDINGS:
                candidates = [*COMMON_FILES, *candidates]
            for candidate in candidates:
                path = base / candidate
                if not path.is_file():
                    continue
                try:
                    text = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    logger.warning("Could not read %s/%s: %s", entry.folder, candidate, exc)
                    continue
                return FileContent(content=text, file_path=f"{entry.folder}/{candidate}")
        return None

    def get_all_files(
        self, slug: str, content_type: ContentType | None = None
    ) -> list[FileContent]:
        results: list[FileContent] = []
        for entry in self.find_by_slug(slug, content_type):
            base = self.project_root / entry.folder
            for name in entry.files:
                try:
                    text = (base / name).read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    logger.warning("Could not read %s/%s: %s", entry.folder, name, exc)
                    continue
                results.append(FileContent(content=text, file_path=f"{entry.folder}/{name}"))
        return results

    def resolve_base_slug(self, slug: str, content_type: ContentType) -> str:
        """Map a per-locale slug back to the folder's base slug."""
        snapshot = self._current()
        if slug in snapshot.by_slug:
            return slug
        return snapshot.locale_slugs.get(f"{slug}:{content_type.value}", slug)

    def get_locale_urls(self, slug: str, content_type: ContentType) -> dict[str, str]:
        """Return locale → public URL for the entry, honouring per-locale slugs."""
        entries = self.find_by_slug(slug, content_type)
        if not entries:
            return {}
        entry = entries[0]
        base = self.project_root / entry.folder
        documents = {name: read_mapping(base / name) for name in entry.files}
        return _locale_urls(entry, documents)

    def get_image_usage(self, image_id: str, image_src: str | None = None) -> list[str]:
        """Return the content files referencing an image by id or src."""
        usage = self._current().image_usage
        files: set[str] = set(usage.get(image_id, ()))
        if image_src:
            files.update(usage.get(image_src, ()))
        return sorted(files)

    def get_redirects(self) -> list[RedirectEntry]:
        return list(self._current().redirects)

    def get_stats(self) -> dict[str, Any]:
        by_type: dict[str, int] = {}
        entries = self._current().entries
        for entry in entries:
            by_type[entry.content_type.value] = by_type.get(entry.content_type.value, 0) + 1
        return {"total": len(entries), "by_type": by_type}


# ── Extraction helpers ───────────────────────────────────────────


def _extract_slug(documents: dict[str, Any], folder_name: str) -> str:
    for candidate in SLUG_CANDIDATES:
        if candidate in documents:
            slug = string_field(documents[candidate], "slug")
            if slug:
                return slug
    return folder_name


def _extract_title(documents: dict[str, Any], content_type: ContentType) -> str | None:
    for candidate in TITLE_CANDIDATES.get(content_type, DEFAULT_TITLE_CANDIDATES):
        if candidate in documents:
            title = string_field(documents[candidate], "title", "name")
            if title:
                return title
    return None


def _extract_locales(files: list[str], content_type: ContentType) -> list[str]:
    names = [strip_yaml_suffix(f) for f in files]
    if content_type == ContentType.LANDINGS:
        return [n for n in names if n != COMMON_LOCALE]
    return [n for n in names if len(n) == 2 and n.isascii() and n.isalpha() and n.islower()]


def _locale_urls(entry: ContentEntry, documents: dict[str, Any]) -> dict[str, str]:
    urls: dict[str, str] = {}
    for locale in entry.locales:
        if locale.startswith("_") or "." in locale:
            continue
        localized = entry.slug
        for candidate in (f"{locale}.yml", f"{locale}.yaml"):
            if candidate in documents:
                localized = string_field(documents[candidate], "slug") or entry.slug
                break
        urls[locale] = locale_url(entry.content_type, localized, locale)
    return urls


def _collect_image_refs(node: Any, file_path: str, usage: dict[str, set[str]]) -> None:
    if isinstance(node, list):
        for item in node:
            _collect_image_refs(item, file_path, usage)
        return
    if not isinstance(node, dict):
        return
    for key, value in node.items():
        if isinstance(value, str) and value.strip():
            if key == "image_id" or (key in IMAGE_KEYS and value.startswith(IMAGE_PREFIXES)):
                usage.setdefault(value, set()).add(file_path)
        elif isinstance(value, (dict, list)):
            _collect_image_refs(value, file_path, usage)


# ── Process-wide default ─────────────────────────────────────────

_default_index: ContentIndex | None = None


def get_content_index(config: ContentkitConfig | None = None) -> ContentIndex:
    """Return the shared index, creating it from ``config`` on first use."""
    global _default_index
    if _default_index is None:
        _default_index = ContentIndex.from_config(config or ContentkitConfig())
    return _default_index


def reset_content_index() -> None:
    global _default_index
    _default_index = None
