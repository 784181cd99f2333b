"""Redirect domain — build-time validation and the persisted redirect map."""

from contentkit.redirects.export import REDIRECTS_FILENAME, export_redirect_map, load_redirect_map
from contentkit.redirects.models import (
    ContentFile,
    RedirectMapResult,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from contentkit.redirects.validator import resolve_redirects, validate_content

__all__ = [
    "REDIRECTS_FILENAME",
    "ContentFile",
    "RedirectMapResult",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "export_redirect_map",
    "load_redirect_map",
    "resolve_redirects",
    "validate_content",
]
