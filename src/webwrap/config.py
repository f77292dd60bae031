"""Pydantic v2 configuration models and YAML load/save."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from webwrap.raster import DEFAULT_MAX_PIXELS


CONFIG_FILENAME = "webwrap.yaml"
CONFIG_SEARCH_PATHS = [
    Path.cwd() / CONFIG_FILENAME,
    Path.home() / ".config" / "webwrap" / CONFIG_FILENAME,
]

DEFAULT_ICON_PREFIX = "webwrap_icon_"


class IconSettings(BaseModel):
    """PNG-to-ICO conversion and cache settings."""

    cache_dir: str = ""
    prefix: str = DEFAULT_ICON_PREFIX
    key_mode: Literal["path", "content"] = "path"
    allow_upscale: bool = True
    max_pixels: int = Field(default=DEFAULT_MAX_PIXELS, ge=1)

    @model_validator(mode="after")
    def validate_prefix(self) -> IconSettings:
        if any(sep in self.prefix for sep in ("/", "\\")) or self.prefix in (".", ".."):
            raise ValueError(f"icon prefix must be a plain filename fragment, got: '{self.prefix}'")
        return self

    def resolve_cache_dir(self) -> Path:
        """Directory that holds converted icons. Empty means the system temp dir."""
        if self.cache_dir:
            return Path(self.cache_dir).expanduser()
        return Path(tempfile.gettempdir())


class WindowSettings(BaseModel):
    """Native window defaults for 'webwrap open'."""

    title: str = "Web App"
    width: int = Field(default=1280, ge=200)
    height: int = Field(default=800, ge=200)
    resizable: bool = True
    min_width: int = Field(default=400, ge=1)
    min_height: int = Field(default=300, ge=1)
    debug: bool = False

    @model_validator(mode="after")
    def min_le_size(self) -> WindowSettings:
        if self.min_width > self.width or self.min_height > self.height:
            raise ValueError(
                f"window min size ({self.min_width}x{self.min_height}) "
                f"must fit inside default size ({self.width}x{self.height})"
            )
        return self


class WebWrapConfig(BaseModel):
    """Root configuration model for webwrap."""

    config_version: int = 1
    icons: IconSettings = Field(default_factory=IconSettings)
    window: WindowSettings = Field(default_factory=WindowSettings)


# ---------------------------------------------------------------------------
# Config file operations
# ---------------------------------------------------------------------------


def find_config_path() -> Path | None:
    """Find the config file in search paths. Returns None if not found."""
    for path in CONFIG_SEARCH_PATHS:
        if path.exists():
            return path
    return None


def load_config(path: Path | None = None) -> WebWrapConfig:
    """Load config from YAML file.

    Unlike most settings files this one is optional: with no file anywhere
    on the search path the defaults are returned.
    """
    if path is None:
        path = find_config_path()
    if path is None or not path.exists():
        return WebWrapConfig()
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}
    return WebWrapConfig.model_validate(data)


def save_config(config: WebWrapConfig, path: Path | None = None) -> Path:
    """Save config to YAML file. Returns the path written to."""
    if path is None:
        path = find_config_path()
    if path is None:
        path = CONFIG_SEARCH_PATHS[0]
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump()
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return path


def get_config_or_exit() -> WebWrapConfig:
    """Load config or raise a ClickException describing what is wrong with it."""
    import click

    path = find_config_path()
    try:
        return load_config(path)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Could not parse {path}: {e}") from e
    except Exception as e:
        raise click.ClickException(f"Invalid config: {e}") from e
