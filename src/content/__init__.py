"""Content domain — content folder models and the in-memory content index."""

from contentkit.content.index import ContentIndex, get_content_index, reset_content_index
from contentkit.content.models import (
    CONTENT_TYPES,
    ContentEntry,
    ContentType,
    FileContent,
    RedirectEntry,
)

__all__ = [
    "CONTENT_TYPES",
    "ContentEntry",
    "ContentIndex",
    "ContentType",
    "FileContent",
    "RedirectEntry",
    "get_content_index",
    "reset_content_index",
]
