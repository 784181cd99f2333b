"""Filename normalization used to match renamed or re-encoded images."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

# Unix-epoch milliseconds appended by the asset uploader, e.g. ``hero_1700000000000``.
TIMESTAMP_SUFFIX = re.compile(r"_(\d{13,})$")

_SEPARATORS = re.compile(r"[_\s]+")
_DISALLOWED = re.compile(r"[^a-zA-Z0-9-]")
_HYPHEN_RUNS = re.compile(r"-+")


def _slugify(name: str) -> str:
    slug = _SEPARATORS.sub("-", name)
    slug = _DISALLOWED.sub("", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-").lower()


def filename_to_id(filename: str) -> str:
    """Registry id proposed for a file: its stem, slugified."""
    return _slugify(PurePosixPath(filename).stem)


def id_base(filename: str) -> str:
    """Stem with any timestamp suffix removed, slugified."""
    return _slugify(TIMESTAMP_SUFFIX.sub("", PurePosixPath(filename).stem))


def extract_timestamp(filename: str) -> int:
    match = TIMESTAMP_SUFFIX.search(PurePosixPath(filename).stem)
    return int(match.group(1)) if match else 0


def extension(filename: str) -> str:
    return PurePosixPath(filename).suffix.lower()
