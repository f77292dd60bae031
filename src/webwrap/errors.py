"""Exceptions raised by icon conversion."""

from __future__ import annotations

from pathlib import Path


class IconError(Exception):
    """Base class for icon conversion failures.

    Callers are expected to fall back to a default icon, so every subclass
    carries the offending path and a short reason for diagnostics.
    """

    def __init__(self, path: str | Path, reason: str = "") -> None:
        self.path = Path(path)
        self.reason = reason
        message = f"{self.describe()}: {self.path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)

    def describe(self) -> str:
        return "Icon conversion failed"


class UnsupportedFormat(IconError):
    """The path does not end in .png or .ico."""

    def describe(self) -> str:
        return "Unsupported icon format, use .ico or .png"


class SourceNotFound(IconError):
    """The path does not resolve to an existing file."""

    def describe(self) -> str:
        return "Icon file does not exist"


class DecodeFailure(IconError):
    """The source is unreadable or not an image the decoder understands."""

    def describe(self) -> str:
        return "Failed to decode image"


class EncodeFailure(IconError):
    """Writing the encoded icon to disk failed."""

    def describe(self) -> str:
        return "Failed to write icon"
