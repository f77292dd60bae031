"""Shared fixtures: an imaging session, PNG writers and a scratch icon cache."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from webwrap.cache import IconCache
from webwrap.raster import ImagingSession


RED = (255, 0, 0, 255)


@pytest.fixture
def imaging():
    """An open imaging session, closed after the test."""
    with ImagingSession() as session:
        yield session


@pytest.fixture
def make_png(tmp_path: Path):
    """Factory writing a solid-color PNG into tmp_path."""

    def _make(
        name: str = "icon.png",
        size: tuple[int, int] = (10, 10),
        color: tuple[int, ...] = RED,
        mode: str = "RGBA",
    ) -> Path:
        path = tmp_path / name
        Image.new(mode, size, color).save(path, format="PNG")
        return path

    return _make


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


@pytest.fixture
def icon_cache(scratch_dir: Path, imaging: ImagingSession) -> IconCache:
    return IconCache(scratch_dir, imaging)
