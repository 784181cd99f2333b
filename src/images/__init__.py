"""Image registry domain — registry models, persistence and reconciliation."""

from contentkit.images.models import (
    ApplyResult,
    BrokenReference,
    ImageRegistry,
    ImageRegistryEntry,
    NewImage,
    ScanResult,
    UpdatedImage,
)
from contentkit.images.registry import load_registry, save_registry
from contentkit.images.scanner import ImageRegistryScanner

__all__ = [
    "ApplyResult",
    "BrokenReference",
    "ImageRegistry",
    "ImageRegistryEntry",
    "ImageRegistryScanner",
    "NewImage",
    "ScanResult",
    "UpdatedImage",
    "load_registry",
    "save_registry",
]
