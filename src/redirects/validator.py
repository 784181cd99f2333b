"""Content and redirect validation.

Collects every problem in one pass so a single run reports the complete
error set. Nothing here raises for content problems; the caller decides
pass/fail from ``ValidationResult.passed`` at the end.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Any

from contentkit.config import ContentkitConfig
from contentkit.content.index import ContentIndex
from contentkit.content.models import COMMON_LOCALE, ContentType, RedirectEntry, RedirectTarget
from contentkit.redirects.models import (
    ContentFile,
    RedirectMapResult,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from contentkit.redirects.schema_org import load_schema_keys
from contentkit.shared.urls import canonical_url, normalize_path, valid_url_set
from contentkit.shared.yaml_io import read_mapping, string_field, strip_yaml_suffix

logger = logging.getLogger(__name__)

VALIDATED_TYPES = (ContentType.PROGRAMS, ContentType.LANDINGS)
VALID_CHANGE_FREQUENCIES = ("always", "hourly", "daily", "weekly", "monthly", "yearly", "never")
VALID_ROBOTS_DIRECTIVES = frozenset({"index", "noindex", "follow", "nofollow", "none", "all"})


def _error(code: str, message: str, file: str | None = None, suggestion: str | None = None) -> ValidationIssue:
    return ValidationIssue(type=Severity.ERROR, code=code, message=message, file=file, suggestion=suggestion)


def _warning(code: str, message: str, file: str | None = None, suggestion: str | None = None) -> ValidationIssue:
    return ValidationIssue(type=Severity.WARNING, code=code, message=message, file=file, suggestion=suggestion)


# ── Loading ──────────────────────────────────────────────────────


def load_content_files(index: ContentIndex) -> list[ContentFile]:
    """Parse every program and landing file known to the index.

    Files that fail to parse are logged and left out.
    """
    files: list[ContentFile] = []
    for content_type in VALIDATED_TYPES:
        for entry in index.find_by_type(content_type):
            folder_name = PurePosixPath(entry.folder).name
            for name in entry.files:
                data = read_mapping(index.project_root / entry.folder / name)
                if data is None:
                    continue
                meta = data.get("meta")
                schema = data.get("schema")
                files.append(
                    ContentFile(
                        slug=string_field(data, "slug") or folder_name,
                        title=string_field(data, "title") or folder_name,
                        content_type=content_type,
                        locale=strip_yaml_suffix(name),
                        file_path=f"{entry.folder}/{name}",
                        folder=entry.folder,
                        meta=meta if isinstance(meta, dict) else {},
                        schema_ref=schema if isinstance(schema, dict) else {},
                    )
                )
    return files


def file_canonical_url(file: ContentFile) -> str:
    return canonical_url(file.content_type, file.slug, file.locale)


def build_valid_urls(content_files: Iterable[ContentFile], static_routes: Iterable[str]) -> set[str]:
    return valid_url_set((file_canonical_url(f) for f in content_files), static_routes)


# ── Redirect registration ────────────────────────────────────────


def _target_paths(target: RedirectTarget) -> list[str]:
    values = target.values() if isinstance(target, dict) else [target]
    return [normalize_path(v) for v in values if isinstance(v, str) and v]


def _is_empty_target(target: RedirectTarget) -> bool:
    if isinstance(target, dict):
        return not any(isinstance(v, str) and v.strip() for v in target.values())
    return not target.strip()


def _is_common(source: str) -> bool:
    return strip_yaml_suffix(PurePosixPath(source).name) == COMMON_LOCALE


def build_redirect_map(
    redirects: Iterable[RedirectEntry],
    content_files: Iterable[ContentFile],
    valid_urls: set[str],
) -> RedirectMapResult:
    """Register redirects in declaration order, rejecting invalid ones.

    The first claim on a source path wins; later claims are reported.
    """
    result = RedirectMapResult()
    own_urls = {f.file_path: normalize_path(file_canonical_url(f)) for f in content_files}

    for redirect in redirects:
        source = redirect.from_path
        custom = redirect.type == "custom"

        if source == own_urls.get(redirect.source) or source in _target_paths(redirect.to):
            result.errors.append(
                _error(
                    "SELF_REDIRECT",
                    f'Self-redirect detected: "{source}" redirects to itself',
                    redirect.source,
                    "Remove this redirect or change the target URL",
                )
            )
            continue

        existing = result.redirects.get(source)
        if existing is not None:
            same_folder = (
                PurePosixPath(existing.source).parent == PurePosixPath(redirect.source).parent
            )
            if not custom and same_folder and (_is_common(existing.source) or _is_common(redirect.source)):
                locale_file = existing.source if _is_common(redirect.source) else redirect.source
                result.warnings.append(
                    _warning(
                        "REDIRECT_OVERLAP",
                        f'Redirect "{source}" exists in both _common.yml and locale file "{locale_file}"',
                        redirect.source,
                        "Keep the redirect in only one place",
                    )
                )
            else:
                result.errors.append(
                    _error(
                        "REDIRECT_CONFLICT",
                        f'Redirect conflict: "{source}" is claimed by both '
                        f'"{redirect.source}" and "{existing.source}"',
                        redirect.source,
                        "Remove one of the conflicting redirects",
                    )
                )
            continue

        if source in valid_urls:
            result.errors.append(
                _error(
                    "REDIRECT_OVERWRITES_CONTENT",
                    f'Redirect "{source}" conflicts with an existing content URL',
                    redirect.source,
                    "Choose a different redirect source URL",
                )
            )
            continue

        if custom and _is_empty_target(redirect.to):
            result.errors.append(
                _error(
                    "CUSTOM_REDIRECT_MISSING_DEST",
                    f'Custom redirect "{source}" has no destination URL',
                    redirect.source,
                    "Add a valid destination URL",
                )
            )
            continue

        result.redirects[source] = redirect

    return result


def _next_hop(target: RedirectTarget) -> str | None:
    if not isinstance(target, str) or not target or "://" in target:
        return None
    return normalize_path(target)


def find_redirect_loops(redirect_map: dict[str, RedirectEntry]) -> list[list[str]]:
    """Return each distinct redirect cycle once, as ``[a, b, ..., a]``."""
    loops: list[list[str]] = []
    seen: set[frozenset[str]] = set()

    for start, entry in redirect_map.items():
        chain = [start]
        visited = {start}
        current = _next_hop(entry.to)
        while current is not None and current in redirect_map:
            if current in visited:
                cycle = chain[chain.index(current):] + [current]
                members = frozenset(cycle)
                if members not in seen:
                    seen.add(members)
                    loops.append(cycle)
                break
            visited.add(current)
            chain.append(current)
            current = _next_hop(redirect_map[current].to)

    return loops


# ── Meta and schema checks ───────────────────────────────────────


def _is_valid_priority(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return 0 <= value <= 1


def validate_meta(content_files: Iterable[ContentFile]) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    for file in content_files:
        meta = file.meta
        if not meta.get("page_title"):
            warnings.append(
                _warning("MISSING_PAGE_TITLE", "Missing page_title in meta", file.file_path,
                         "Add a descriptive page_title for better SEO")
            )
        if not meta.get("description"):
            warnings.append(
                _warning("MISSING_DESCRIPTION", "Missing description in meta", file.file_path,
                         "Add a meta description (150-160 characters) for better SEO")
            )

        if "priority" in meta and meta["priority"] is not None and not _is_valid_priority(meta["priority"]):
            errors.append(
                _error(
                    "INVALID_PRIORITY",
                    f"Invalid priority value: {meta['priority']}. Must be a number between 0 and 1",
                    file.file_path,
                    "Set priority to a value between 0.0 and 1.0 (e.g., 0.8)",
                )
            )

        frequency = meta.get("change_frequency")
        if frequency and frequency not in VALID_CHANGE_FREQUENCIES:
            errors.append(
                _error(
                    "INVALID_CHANGE_FREQUENCY",
                    f'Invalid change_frequency: "{frequency}". '
                    f"Must be one of: {', '.join(VALID_CHANGE_FREQUENCIES)}",
                    file.file_path,
                )
            )

        robots = meta.get("robots")
        if isinstance(robots, str) and robots.strip():
            unknown = [
                d for d in (part.strip().lower() for part in robots.split(","))
                if d and d not in VALID_ROBOTS_DIRECTIVES
            ]
            if unknown:
                warnings.append(
                    _warning(
                        "INVALID_ROBOTS",
                        f"Unknown robots directive(s): {', '.join(unknown)}",
                        file.file_path,
                        f"Use any of: {', '.join(sorted(VALID_ROBOTS_DIRECTIVES))}",
                    )
                )

    return errors, warnings


def validate_schema_refs(content_files: Iterable[ContentFile], schema_keys: set[str]) -> list[ValidationIssue]:
    """Check ``schema.include`` entries and ``schema.overrides`` keys exist."""
    errors: list[ValidationIssue] = []
    available = ", ".join(sorted(schema_keys))

    for file in content_files:
        include = file.schema_ref.get("include")
        if isinstance(include, list):
            for ref in include:
                if not (isinstance(ref, str) and ref in schema_keys):
                    errors.append(
                        _error(
                            "INVALID_SCHEMA_REFERENCE",
                            f'Invalid schema reference: "{ref}". Available schemas: {available}',
                            file.file_path,
                        )
                    )
        overrides = file.schema_ref.get("overrides")
        if isinstance(overrides, dict):
            for key in overrides:
                if key not in schema_keys:
                    errors.append(
                        _error(
                            "INVALID_SCHEMA_OVERRIDE",
                            f'Invalid schema override key: "{key}". Available schemas: {available}',
                            file.file_path,
                        )
                    )
    return errors


# ── Entry points ─────────────────────────────────────────────────


def _loop_error(cycle: list[str]) -> ValidationIssue:
    return _error(
        "REDIRECT_LOOP",
        f"Redirect loop detected: {' -> '.join(cycle)}",
        suggestion="Break the redirect chain by removing one of the redirects",
    )


def resolve_redirects(index: ContentIndex, config: ContentkitConfig) -> RedirectMapResult:
    """Build the served redirect map from the index's declared redirects.

    Every source taking part in a cycle is dropped from the map and reported
    as a ``REDIRECT_LOOP`` error.
    """
    content_files = load_content_files(index)
    valid_urls = build_valid_urls(content_files, config.redirects.static_routes)
    result = build_redirect_map(index.get_redirects(), content_files, valid_urls)
    for cycle in find_redirect_loops(result.redirects):
        result.errors.append(_loop_error(cycle))
        for source in cycle:
            result.redirects.pop(source, None)
    return result


def validate_content(index: ContentIndex, config: ContentkitConfig) -> ValidationResult:
    """Run every content check and return the aggregated result."""
    content_files = load_content_files(index)
    valid_urls = build_valid_urls(content_files, config.redirects.static_routes)

    registered = build_redirect_map(index.get_redirects(), content_files, valid_urls)
    result = ValidationResult(
        errors=list(registered.errors),
        warnings=list(registered.warnings),
        redirect_map=registered.redirects,
        content_files=content_files,
    )

    for cycle in find_redirect_loops(registered.redirects):
        result.errors.append(_loop_error(cycle))

    meta_errors, meta_warnings = validate_meta(content_files)
    result.errors.extend(meta_errors)
    result.warnings.extend(meta_warnings)

    result.errors.extend(validate_schema_refs(content_files, load_schema_keys(config.schema_org_path)))

    logger.info(
        "Validated %d content files: %d errors, %d warnings, %d redirects",
        len(content_files),
        len(result.errors),
        len(result.warnings),
        len(result.redirect_map),
    )
    return result
