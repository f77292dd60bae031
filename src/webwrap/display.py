"""Rich output formatting for terminal display."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from webwrap.ico import IcoEntry

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route library log records through rich. DEBUG with -v, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{message}[/green]")


def warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]{message}[/yellow]")


def info(message: str) -> None:
    """Print an informational message in cyan."""
    console.print(f"[cyan]{message}[/cyan]")


def show_entries(path: Path, entries: list[IcoEntry]) -> None:
    """Display the directory entries of an ICO file."""
    if not entries:
        warning(f"{path} contains no images.")
        return

    table = Table(title=path.name, border_style="cyan")
    table.add_column("#", style="dim", width=3)
    table.add_column("Size", justify="center")
    table.add_column("Bits", justify="center")
    table.add_column("Planes", justify="center")
    table.add_column("Bytes", justify="right")
    table.add_column("Offset", justify="right")

    for i, entry in enumerate(entries, 1):
        table.add_row(
            str(i),
            f"{entry.width}x{entry.height}",
            str(entry.bit_count),
            str(entry.planes),
            f"{entry.bytes_in_res:,}",
            str(entry.image_offset),
        )

    console.print(table)


def show_cache(paths: list[Path]) -> None:
    """Display the converted icons held in the cache directory."""
    if not paths:
        warning("No converted icons in cache.")
        return

    table = Table(title="Icon Cache", border_style="cyan")
    table.add_column("#", style="dim", width=3)
    table.add_column("File", style="bold")
    table.add_column("Bytes", justify="right")
    table.add_column("Created")

    for i, path in enumerate(paths, 1):
        stat = path.stat()
        created = datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M")
        table.add_row(str(i), path.name, f"{stat.st_size:,}", created)

    console.print(table)
