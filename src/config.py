"""Unified configuration loaded from .contentkit.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from contentkit.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".contentkit.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "contentkit" / "config.toml"

DEFAULT_STATIC_ROUTES = [
    "/",
    "/us",
    "/es",
    "/learning-paths",
    "/career-paths",
    "/skill-boosters",
    "/tool-mastery",
    "/career-programs",
    "/en/career-programs",
    "/es/programas-de-carrera",
    "/en/locations",
    "/es/ubicaciones",
    "/dashboard",
]


class PathsConfig(BaseModel):
    """[paths] section."""

    root: str = "."
    content_dir: str = "marketing-content"
    assets_dir: str = "attached_assets"
    dist_dir: str = "dist"
    registry_file: str = "image-registry.json"
    schema_org_file: str = "schema-org.yml"
    custom_redirects_file: str = "custom-redirects.yml"


class RedirectsConfig(BaseModel):
    """[redirects] section."""

    static_routes: list[str] = Field(default_factory=lambda: list(DEFAULT_STATIC_ROUTES))
    default_status: int = 301
    allowed_statuses: list[int] = Field(default_factory=lambda: [301, 302])

    @field_validator("default_status")
    @classmethod
    def _check_status(cls, value: int) -> int:
        if value not in (301, 302, 307, 308):
            raise ValueError(f"unsupported redirect status {value}")
        return value


class ImagesConfig(BaseModel):
    """[images] section."""

    extensions: list[str] = Field(
        default_factory=lambda: [".png", ".jpg", ".jpeg", ".webp", ".svg", ".avif", ".gif"]
    )
    asset_prefixes: list[str] = Field(
        default_factory=lambda: ["/attached_assets/", "attached_assets/"]
    )


class LoggingConfig(BaseModel):
    """[logging] section."""

    level: str = "INFO"


class ContentkitConfig(BaseModel):
    """Top-level configuration model for contentkit."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    redirects: RedirectsConfig = Field(default_factory=RedirectsConfig)
    images: ImagesConfig = Field(default_factory=ImagesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def root(self) -> Path:
        return Path(self.paths.root).resolve()

    @property
    def content_root(self) -> Path:
        return self.root / self.paths.content_dir

    @property
    def assets_root(self) -> Path:
        return self.root / self.paths.assets_dir

    @property
    def dist_root(self) -> Path:
        return self.root / self.paths.dist_dir

    @property
    def registry_path(self) -> Path:
        return self.content_root / self.paths.registry_file

    @property
    def schema_org_path(self) -> Path:
        return self.content_root / self.paths.schema_org_file


def load_config(path: str | Path | None = None) -> ContentkitConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .contentkit.toml in CWD
    3. ~/.config/contentkit/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged ContentkitConfig.

    Raises:
        ConfigError: If the merged values fail validation.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = _validate(data) if data else ContentkitConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: ContentkitConfig, **cli_kwargs: object) -> ContentkitConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "root": ("paths", "root"),
        "content_dir": ("paths", "content_dir"),
        "assets_dir": ("paths", "assets_dir"),
        "dist_dir": ("paths", "dist_dir"),
        "log_level": ("logging", "level"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        data[section][field] = str(value)

    return _validate(data)


def _validate(data: dict[str, object]) -> ContentkitConfig:
    try:
        return ContentkitConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: ContentkitConfig) -> ContentkitConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "CONTENTKIT_ROOT": ("paths", "root"),
        "CONTENTKIT_CONTENT_DIR": ("paths", "content_dir"),
        "CONTENTKIT_ASSETS_DIR": ("paths", "assets_dir"),
        "CONTENTKIT_DIST_DIR": ("paths", "dist_dir"),
        "CONTENTKIT_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    return _validate(data)
