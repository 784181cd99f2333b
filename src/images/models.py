"""Image registry and reconciliation report models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ImageRegistryEntry(BaseModel):
    """Declared metadata for one physical asset.

    Only ``src`` is required. Hand-edited entries often carry ``null`` for
    the descriptive fields, so those accept None and are written back as-is.
    """

    model_config = ConfigDict(extra="allow")

    src: str
    alt: str | None = ""
    focal_point: str | None = "center"
    tags: list[str] | None = Field(default_factory=list)
    usage_count: int | None = 0


class ImageRegistry(BaseModel):
    """Contents of ``image-registry.json``."""

    model_config = ConfigDict(extra="allow")

    presets: dict[str, Any] = Field(default_factory=dict)
    images: dict[str, ImageRegistryEntry] = Field(default_factory=dict)


class NewImage(BaseModel):
    id: str
    src: str
    filename: str


class UpdatedImage(BaseModel):
    """A registered image whose file reappeared with a different extension."""

    id: str
    old_src: str
    new_src: str


class BrokenReference(BaseModel):
    yaml_file: str
    field: str
    missing_src: str


class ScanSummary(BaseModel):
    new: int = 0
    updated: int = 0
    broken: int = 0


class ScanResult(BaseModel):
    new_images: list[NewImage] = Field(default_factory=list)
    updated_images: list[UpdatedImage] = Field(default_factory=list)
    broken_references: list[BrokenReference] = Field(default_factory=list)
    registered_count: int = 0
    scanned_images_count: int = 0
    summary: ScanSummary = Field(default_factory=ScanSummary)

    @property
    def has_broken_references(self) -> bool:
        return bool(self.broken_references)

    @property
    def is_clean(self) -> bool:
        return not (self.new_images or self.updated_images or self.broken_references)


class ApplyResult(BaseModel):
    added: int = 0
    updated: int = 0
    yaml_files_updated: list[str] = Field(default_factory=list)
