"""PyWebView window hosting a wrapped web page."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from webwrap.config import WindowSettings


def launch(
    target: str,
    title: str,
    icon_path: Path | None = None,
    window: WindowSettings | None = None,
) -> None:
    """Open target in a native window and block until it is closed."""
    import webview

    window = window or WindowSettings()

    webview.create_window(
        title=title,
        url=target,
        width=window.width,
        height=window.height,
        resizable=window.resizable,
        text_select=True,
        min_size=(window.min_width, window.min_height),
    )

    webview.start(
        debug=window.debug,
        icon=str(icon_path) if icon_path else None,
    )


def file_url_path(target: str) -> Path:
    """Local filesystem path named by a file:// URL."""
    parsed = urlparse(target)
    path = url2pathname(parsed.path)
    if parsed.netloc and parsed.netloc != "localhost":
        path = f"//{parsed.netloc}{path}"
    return Path(path)


def validate_target(target: str) -> str:
    """Check that target is an http(s) URL or a file:// URL to an existing file.

    Returns the target unchanged; raises ValueError with a message for the user.
    """
    if target.startswith(("http://", "https://")):
        return target
    if target.startswith("file://"):
        path = file_url_path(target)
        if not path.is_file():
            raise ValueError(f"Local file not found: {path}")
        return target
    raise ValueError(
        f"Invalid URL '{target}'. URL must start with http://, https://, or file://"
    )
