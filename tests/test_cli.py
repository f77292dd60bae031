"""Tests for the webwrap command line."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from PIL import Image

from webwrap import __version__
from webwrap import ico
from webwrap.cli import cli
from webwrap.config import IconSettings, WebWrapConfig, load_config, save_config
from webwrap.raster import RasterImage


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def tmp_config(tmp_path: Path, cache_dir: Path):
    """Write a config pointing the icon cache at tmp_path and make it the one found."""
    config = WebWrapConfig(icons=IconSettings(cache_dir=str(cache_dir)))
    config_path = tmp_path / "webwrap.yaml"
    save_config(config, config_path)

    with patch("webwrap.config.CONFIG_SEARCH_PATHS", [config_path]):
        yield config_path


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestGlobal:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "icon", "cache", "open"):
            assert command in result.output


class TestInit:
    def test_writes_defaults(self, runner: CliRunner, tmp_path: Path) -> None:
        target = tmp_path / "cfg" / "webwrap.yaml"
        with patch("webwrap.config.CONFIG_SEARCH_PATHS", [target]):
            result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0, result.output
        assert load_config(target) == WebWrapConfig()

    def test_keeps_existing_when_declined(self, runner: CliRunner, tmp_config: Path) -> None:
        before = tmp_config.read_text(encoding="utf-8")
        result = runner.invoke(cli, ["init"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert tmp_config.read_text(encoding="utf-8") == before

    def test_overwrites_when_confirmed(self, runner: CliRunner, tmp_config: Path) -> None:
        result = runner.invoke(cli, ["init"], input="y\n")
        assert result.exit_code == 0
        assert load_config(tmp_config) == WebWrapConfig()


class TestIconPath:
    def test_converts_png(self, runner: CliRunner, tmp_config: Path, make_png, cache_dir: Path) -> None:
        result = runner.invoke(cli, ["icon", "path", str(make_png())])
        assert result.exit_code == 0, result.output
        location = Path(result.output.strip())
        assert location.parent == cache_dir
        assert len(location.read_bytes()) == ico.encoded_size(16)

    def test_same_path_twice(self, runner: CliRunner, tmp_config: Path, make_png) -> None:
        source = str(make_png())
        first = runner.invoke(cli, ["icon", "path", source])
        second = runner.invoke(cli, ["icon", "path", source])
        assert first.output == second.output

    def test_ico_passthrough(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        source = tmp_path / "app.ico"
        Image.new("RGBA", (16, 16)).save(source, format="ICO", sizes=[(16, 16)])
        result = runner.invoke(cli, ["icon", "path", str(source)])
        assert result.exit_code == 0
        assert Path(result.output.strip()) == source

    def test_unsupported(self, runner: CliRunner, tmp_config: Path, tmp_path: Path, cache_dir: Path) -> None:
        source = tmp_path / "logo.bmp"
        source.write_bytes(b"BM")
        result = runner.invoke(cli, ["icon", "path", str(source)])
        assert result.exit_code == 1
        assert "Unsupported icon format" in result.output
        assert not cache_dir.exists()

    def test_missing(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["icon", "path", str(tmp_path / "gone.png")])
        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestIconConvert:
    def test_default_output_next_to_source(self, runner: CliRunner, tmp_config: Path, make_png) -> None:
        source = make_png(size=(100, 40))
        result = runner.invoke(cli, ["icon", "convert", str(source)])
        assert result.exit_code == 0, result.output
        output = source.with_suffix(".ico")
        assert ico.read_entries(output.read_bytes())[0].width == 128
        assert "128x128" in result.output

    def test_explicit_output(self, runner: CliRunner, tmp_config: Path, make_png, tmp_path: Path) -> None:
        output = tmp_path / "out" / "app.ico"
        result = runner.invoke(cli, ["icon", "convert", str(make_png()), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert len(output.read_bytes()) == ico.encoded_size(16)

    def test_does_not_populate_cache(self, runner: CliRunner, tmp_config: Path, make_png, cache_dir: Path) -> None:
        runner.invoke(cli, ["icon", "convert", str(make_png())])
        assert not cache_dir.exists()

    def test_ico_source_needs_output(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        source = tmp_path / "app.ico"
        source.write_bytes(b"")
        result = runner.invoke(cli, ["icon", "convert", str(source)])
        assert result.exit_code == 1
        assert "already an ICO" in result.output

    def test_corrupt_png(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        source = tmp_path / "broken.png"
        source.write_text("nope")
        result = runner.invoke(cli, ["icon", "convert", str(source)])
        assert result.exit_code == 1
        assert "Failed to decode" in result.output
        assert not source.with_suffix(".ico").exists()


class TestIconInfo:
    def test_shows_entry(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "app.ico"
        path.write_bytes(ico.encode(_blank(256)))
        result = runner.invoke(cli, ["icon", "info", str(path)])
        assert result.exit_code == 0, result.output
        assert "256x256" in result.output

    def test_not_an_icon(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "fake.ico"
        path.write_bytes(b"\x89PNG\r\n\x1a\n")
        result = runner.invoke(cli, ["icon", "info", str(path)])
        assert result.exit_code == 1
        assert "not an ICO file" in result.output


class TestCacheList:
    def test_empty(self, runner: CliRunner, tmp_config: Path) -> None:
        result = runner.invoke(cli, ["cache", "list"])
        assert result.exit_code == 0
        assert "No converted icons" in result.output

    def test_lists_converted(self, runner: CliRunner, tmp_config: Path, make_png) -> None:
        runner.invoke(cli, ["icon", "path", str(make_png())])
        result = runner.invoke(cli, ["cache", "list"])
        assert result.exit_code == 0
        assert "Icon Cache" in result.output
        assert "1,086" in result.output  # 6 + 16 + 40 + 16*16*4


class TestOpen:
    def test_launches_with_converted_icon(
        self, runner: CliRunner, tmp_config: Path, make_png, cache_dir: Path
    ) -> None:
        with patch("webwrap.desktop.app.launch") as launch:
            result = runner.invoke(
                cli, ["open", "--target", "https://example.com", "--name", "Example", "--icon", str(make_png())]
            )
        assert result.exit_code == 0, result.output
        target, title, icon_file, window = launch.call_args.args
        assert (target, title) == ("https://example.com", "Example")
        assert icon_file.parent == cache_dir
        assert window.debug is False

    def test_default_title(self, runner: CliRunner, tmp_config: Path) -> None:
        with patch("webwrap.desktop.app.launch") as launch:
            result = runner.invoke(cli, ["open", "--target", "http://localhost:3000"])
        assert result.exit_code == 0, result.output
        assert launch.call_args.args[1] == "Web App"
        assert launch.call_args.args[2] is None

    def test_bad_icon_falls_back(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        with patch("webwrap.desktop.app.launch") as launch:
            result = runner.invoke(
                cli, ["open", "--target", "https://example.com", "--icon", str(tmp_path / "app.gif")]
            )
        assert result.exit_code == 0, result.output
        assert "Continuing without custom icon" in result.output
        assert launch.call_args.args[2] is None

    def test_missing_icon_falls_back(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        with patch("webwrap.desktop.app.launch") as launch:
            result = runner.invoke(
                cli, ["open", "--target", "https://example.com", "--icon", str(tmp_path / "gone.png")]
            )
        assert result.exit_code == 0, result.output
        assert launch.call_args.args[2] is None

    def test_invalid_target(self, runner: CliRunner, tmp_config: Path) -> None:
        with patch("webwrap.desktop.app.launch") as launch:
            result = runner.invoke(cli, ["open", "--target", "example.com"])
        assert result.exit_code == 1
        assert "Invalid URL" in result.output
        launch.assert_not_called()

    def test_file_target(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        page = tmp_path / "index.html"
        page.write_text("<h1>hi</h1>", encoding="utf-8")
        with patch("webwrap.desktop.app.launch") as launch:
            result = runner.invoke(cli, ["open", "--target", page.as_uri(), "--debug"])
        assert result.exit_code == 0, result.output
        assert launch.call_args.args[3].debug is True

    def test_missing_file_target(self, runner: CliRunner, tmp_config: Path, tmp_path: Path) -> None:
        with patch("webwrap.desktop.app.launch"):
            result = runner.invoke(cli, ["open", "--target", (tmp_path / "nope.html").as_uri()])
        assert result.exit_code == 1
        assert "Local file not found" in result.output


def _blank(size: int) -> RasterImage:
    return RasterImage(width=size, height=size, pixels=b"\x00" * (size * size * 4))
