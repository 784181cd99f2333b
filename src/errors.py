"""Exception hierarchy shared across contentkit."""

from __future__ import annotations

from pathlib import Path


class ContentkitError(Exception):
    """Base class for all contentkit errors."""


class ContentLoadError(ContentkitError):
    """A content file could not be read or parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class RegistryError(ContentkitError):
    """The image registry could not be persisted."""


class ConfigError(ContentkitError):
    """Configuration values are invalid."""
