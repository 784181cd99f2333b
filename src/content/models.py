"""Content domain models — pure Pydantic v2 data types.

A ContentEntry is one logical content unit (page, program, location or
landing) backed by a single folder holding one YAML file per locale.
RedirectEntry records are derived from ``meta.redirects`` declarations in
those files and from the hand-maintained custom redirects file.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ContentType(StrEnum):
    """Category of a content folder, named after its directory."""

    PAGES = "pages"
    PROGRAMS = "programs"
    LOCATIONS = "locations"
    LANDINGS = "landings"


CONTENT_TYPES: tuple[ContentType, ...] = (
    ContentType.PAGES,
    ContentType.PROGRAMS,
    ContentType.LOCATIONS,
    ContentType.LANDINGS,
)

COMMON_LOCALE = "_common"

RedirectTarget = str | dict[str, str]


class ContentEntry(BaseModel):
    """One content folder and the locale files it contains."""

    slug: str
    content_type: ContentType
    folder: str
    files: list[str] = Field(default_factory=list)
    locales: list[str] = Field(default_factory=list)
    title: str | None = None


class RedirectEntry(BaseModel):
    """A declared redirect rule.

    ``from_path`` is already normalized (leading slash, lowercase, no
    trailing slash). ``to`` is either a single path or a locale → path map.
    """

    model_config = ConfigDict(populate_by_name=True)

    from_path: str = Field(alias="from")
    to: RedirectTarget
    status: int = 301
    type: str
    source: str


class FileContent(BaseModel):
    """Raw text of a content file together with its relative path."""

    content: str
    file_path: str
