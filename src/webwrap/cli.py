"""Click CLI entry point for webwrap."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from webwrap import __version__
from webwrap import display
from webwrap.cache import IconCache
from webwrap.config import (
    WebWrapConfig,
    find_config_path,
    get_config_or_exit,
    save_config,
)
from webwrap.errors import IconError
from webwrap.formats import IconFormat, classify
from webwrap.ico import read_entries, write_icon
from webwrap.raster import ImagingSession


@contextmanager
def open_cache(config: WebWrapConfig) -> Iterator[IconCache]:
    """Icon cache backed by an imaging session that lives for the command."""
    with ImagingSession(config.icons.max_pixels) as imaging:
        yield IconCache.from_settings(config.icons, imaging)


@click.group()
@click.version_option(version=__version__, prog_name="webwrap")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """webwrap: Wrap web applications in a native window with a custom icon."""
    display.setup_logging(verbose)


@cli.command()
def init() -> None:
    """Write a config file with default settings."""
    existing = find_config_path()
    if existing is not None:
        if not click.confirm(f"Config already exists at {existing}. Overwrite?"):
            display.info("Cancelled.")
            return

    path = save_config(WebWrapConfig(), existing)
    display.success(f"Config saved to {path}")


# ---------------------------------------------------------------------------
# Icon conversion
# ---------------------------------------------------------------------------


@cli.group()
def icon() -> None:
    """Convert and inspect icon files."""


@icon.command("convert")
@click.argument("source", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the .ico (default: next to SOURCE).",
)
def icon_convert(source: Path, output: Path | None) -> None:
    """Convert a PNG to a single-image ICO file."""
    config = get_config_or_exit()
    if output is None:
        if classify(source) is IconFormat.ICO:
            raise click.ClickException(f"{source} is already an ICO file; pass --output to copy it.")
        output = source.with_suffix(".ico")

    try:
        with open_cache(config) as icon_cache:
            data = icon_cache.convert_to_bytes(source)
        write_icon(data, output)
        entries = read_entries(data, output)
    except IconError as e:
        raise click.ClickException(str(e)) from e

    size = entries[0].width if entries else 0
    display.success(f"Created {output} ({size}x{size}, {len(data):,} bytes)")


@icon.command("path")
@click.argument("source", type=click.Path(dir_okay=False, path_type=Path))
def icon_path(source: Path) -> None:
    """Print the path of a loadable ICO for SOURCE, converting PNGs once."""
    config = get_config_or_exit()
    try:
        with open_cache(config) as icon_cache:
            location = icon_cache.get_or_convert(source)
    except IconError as e:
        raise click.ClickException(str(e)) from e
    click.echo(str(location))


@icon.command("info")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def icon_info(path: Path) -> None:
    """Show the image directory of an ICO file."""
    try:
        entries = read_entries(path.read_bytes(), path)
    except IconError as e:
        raise click.ClickException(str(e)) from e
    display.show_entries(path, entries)


# ---------------------------------------------------------------------------
# Cache inspection
# ---------------------------------------------------------------------------


@cli.group()
def cache() -> None:
    """Inspect converted icons."""


@cache.command("list")
def cache_list() -> None:
    """List converted icons in the cache directory."""
    config = get_config_or_exit()
    with open_cache(config) as icon_cache:
        paths = icon_cache.entries()
        display.info(f"Cache directory: {icon_cache.scratch_dir}")
    display.show_cache(paths)


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------


@cli.command("open")
@click.option("--target", required=True, help="http://, https:// or file:// URL to display.")
@click.option("--name", default=None, help="Window title (default from config).")
@click.option("--icon", "icon_source", default=None, help="Window icon (.ico or .png).")
@click.option("--debug", is_flag=True, help="Enable web inspector.")
def open_window(target: str, name: str | None, icon_source: str | None, debug: bool) -> None:
    """Open a web page in a native window."""
    from webwrap.desktop.app import launch, validate_target

    config = get_config_or_exit()
    try:
        validate_target(target)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    title = name or config.window.title
    window = config.window.model_copy(update={"debug": debug or config.window.debug})

    icon_file: Path | None = None
    if icon_source:
        try:
            with open_cache(config) as icon_cache:
                icon_file = icon_cache.get_or_convert(icon_source)
        except IconError as e:
            display.warning(str(e))
            display.warning("Continuing without custom icon...")

    display.info(f"Title: {title}")
    display.info(f"Target URL: {target}")
    if icon_file is not None:
        display.info(f"Icon: {icon_file}")

    launch(target, title, icon_file, window)
