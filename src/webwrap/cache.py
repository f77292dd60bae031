"""Convert-once icon cache keyed by source path."""

from __future__ import annotations

import glob
import hashlib
import logging
import os
from pathlib import Path

from webwrap import ico
from webwrap.config import DEFAULT_ICON_PREFIX, IconSettings, WebWrapConfig, load_config
from webwrap.errors import DecodeFailure, SourceNotFound, UnsupportedFormat
from webwrap.formats import IconFormat, classify
from webwrap.raster import ImagingSession, select_target_size, to_square_canvas


logger = logging.getLogger(__name__)

KEY_LENGTH = 16


def _absolute(path: str | Path) -> Path:
    return Path(os.path.abspath(Path(path).expanduser()))


class IconCache:
    """Maps source images to converted ICO files under a scratch directory.

    The cache file name is derived from the absolute source path, so an
    existing file is reused even if the PNG it came from has since been
    edited. Files are never updated or removed here. key_mode="content"
    derives the name from the file bytes instead, which picks up edits at
    the cost of reading the source on every lookup.
    """

    def __init__(
        self,
        scratch_dir: str | Path,
        imaging: ImagingSession,
        prefix: str = DEFAULT_ICON_PREFIX,
        key_mode: str = "path",
        allow_upscale: bool = True,
    ) -> None:
        if key_mode not in ("path", "content"):
            raise ValueError(f"key_mode must be 'path' or 'content', got: '{key_mode}'")
        self.scratch_dir = Path(scratch_dir)
        self.imaging = imaging
        self.prefix = prefix
        self.key_mode = key_mode
        self.allow_upscale = allow_upscale

    @classmethod
    def from_settings(cls, settings: IconSettings, imaging: ImagingSession) -> IconCache:
        return cls(
            scratch_dir=settings.resolve_cache_dir(),
            imaging=imaging,
            prefix=settings.prefix,
            key_mode=settings.key_mode,
            allow_upscale=settings.allow_upscale,
        )

    def cache_key(self, source: str | Path) -> str:
        """Stable hex key for a source: hash of its absolute path (or bytes)."""
        path = _absolute(source)
        if self.key_mode == "content":
            try:
                material = path.read_bytes()
            except OSError as e:
                raise DecodeFailure(path, e.strerror or str(e)) from e
        else:
            material = os.fsencode(path)
        return hashlib.sha256(material).hexdigest()[:KEY_LENGTH]

    def cache_path(self, source: str | Path) -> Path:
        """Where the converted icon for a source lives, whether or not it exists yet."""
        return self.scratch_dir / f"{self.prefix}{self.cache_key(source)}.ico"

    def _check_source(self, source: str | Path) -> tuple[Path, IconFormat]:
        path = _absolute(source)
        fmt = classify(path)
        if fmt is IconFormat.UNSUPPORTED:
            raise UnsupportedFormat(path, f"extension '{path.suffix}'")
        if not path.is_file():
            raise SourceNotFound(path)
        return path, fmt

    def _convert_png(self, path: Path) -> bytes:
        image = self.imaging.decode(path)
        target = select_target_size(image.width, image.height)
        canvas = to_square_canvas(image, target, allow_upscale=self.allow_upscale)
        logger.debug("Rescaled %s from %dx%d to %dx%d", path, image.width, image.height, target, target)
        return ico.encode(canvas)

    def convert_to_bytes(self, source: str | Path) -> bytes:
        """Encode a source into ICO bytes without touching the cache.

        ICO sources are returned as their file contents.
        """
        path, fmt = self._check_source(source)
        if fmt is IconFormat.ICO:
            try:
                return path.read_bytes()
            except OSError as e:
                raise DecodeFailure(path, e.strerror or str(e)) from e
        return self._convert_png(path)

    def get_or_convert(self, source: str | Path) -> Path:
        """Return a path to a loadable ICO file for a PNG or ICO source.

        ICO sources pass through unchanged. PNG sources are converted on the
        first request and the cached file is returned from then on.
        """
        path, fmt = self._check_source(source)
        if fmt is IconFormat.ICO:
            return path

        location = self.cache_path(path)
        if location.is_file():
            logger.debug("Icon cache hit for %s: %s", path, location)
            return location

        data = self._convert_png(path)
        ico.write_icon(data, location)
        logger.info("Converted %s to %s", path, location)
        return location

    def entries(self) -> list[Path]:
        """Existing cache files, sorted by name."""
        if not self.scratch_dir.is_dir():
            return []
        return sorted(self.scratch_dir.glob(f"{glob.escape(self.prefix)}*.ico"))


def get_or_convert(source: str | Path, config: WebWrapConfig | None = None) -> Path:
    """One-shot get_or_convert using the settings from config (or the config file)."""
    config = config or load_config()
    with ImagingSession(config.icons.max_pixels) as imaging:
        return IconCache.from_settings(config.icons, imaging).get_or_convert(source)


def convert_to_bytes(source: str | Path, config: WebWrapConfig | None = None) -> bytes:
    """One-shot convert_to_bytes using the settings from config (or the config file)."""
    config = config or load_config()
    with ImagingSession(config.icons.max_pixels) as imaging:
        return IconCache.from_settings(config.icons, imaging).convert_to_bytes(source)
