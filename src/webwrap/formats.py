"""Icon source classification by file extension."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class IconFormat(str, Enum):
    PNG = "png"
    ICO = "ico"
    UNSUPPORTED = "unsupported"


_SUFFIXES = {
    ".png": IconFormat.PNG,
    ".ico": IconFormat.ICO,
}


def classify(path: str | Path) -> IconFormat:
    """Classify a path as PNG, ICO or unsupported.

    Only the extension is inspected (case-insensitive); the file is never
    opened and need not exist.
    """
    return _SUFFIXES.get(Path(path).suffix.lower(), IconFormat.UNSUPPORTED)
