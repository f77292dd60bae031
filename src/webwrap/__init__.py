"""webwrap: wrap a web page in a native window, with PNG-to-ICO icon conversion."""

__version__ = "0.3.0"
