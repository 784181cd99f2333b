"""Validation result types for content and redirect checks."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from contentkit.content.models import ContentType, RedirectEntry, RedirectTarget


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A single problem found during validation."""

    type: Severity
    code: str
    message: str
    file: str | None = None
    suggestion: str | None = None

    def render(self) -> str:
        return f"{self.message} ({self.file})" if self.file else self.message


class ContentFile(BaseModel):
    """One parsed locale file of a program or landing."""

    slug: str
    title: str
    content_type: ContentType
    locale: str
    file_path: str
    folder: str
    meta: dict[str, Any] = Field(default_factory=dict)
    schema_ref: dict[str, Any] = Field(default_factory=dict)


class RedirectMapResult(BaseModel):
    """Registered redirects plus the issues found while registering them."""

    redirects: dict[str, RedirectEntry] = Field(default_factory=dict)
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Outcome of a full content validation run.

    ``errors`` break the build; ``warnings`` are advisory.
    """

    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    redirect_map: dict[str, RedirectEntry] = Field(default_factory=dict)
    content_files: list[ContentFile] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    def redirects_as_json(self) -> dict[str, RedirectTarget]:
        """Flat ``from → target`` mapping as persisted to ``redirects.json``."""
        return {source: entry.to for source, entry in self.redirect_map.items()}
