"""PNG decoding and square icon canvas rescaling via Pillow."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from webwrap.errors import DecodeFailure


logger = logging.getLogger(__name__)

CANONICAL_SIZES = (16, 32, 48, 64, 128, 256)

# Pillow's own default decompression-bomb threshold.
DEFAULT_MAX_PIXELS = 89_478_485


@dataclass
class RasterImage:
    """An RGBA8 pixel buffer, row-major, top-down, straight alpha."""

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(f"image dimensions must be positive, got {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"pixel buffer holds {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    @classmethod
    def from_pil(cls, img: Image.Image) -> RasterImage:
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(width=img.width, height=img.height, pixels=img.tobytes())

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Return the (r, g, b, a) sample at column x, row y."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        i = (y * self.width + x) * 4
        r, g, b, a = self.pixels[i:i + 4]
        return r, g, b, a


class ImagingSession:
    """Process-scoped setup of the Pillow imaging subsystem.

    Opened once before the first decode and closed once at shutdown,
    usually as a context manager around the whole program run::

        with ImagingSession() as imaging:
            image = imaging.decode(path)

    Opening registers Pillow's format plugins and applies the pixel limit
    used to reject decompression bombs; closing restores the previous limit.
    """

    def __init__(self, max_pixels: int = DEFAULT_MAX_PIXELS) -> None:
        self.max_pixels = max_pixels
        self._active = False
        self._saved_limit: int | None = None

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> ImagingSession:
        if self._active:
            return self
        Image.init()
        self._saved_limit = Image.MAX_IMAGE_PIXELS
        Image.MAX_IMAGE_PIXELS = self.max_pixels
        self._active = True
        logger.debug("Imaging session started (max %d pixels)", self.max_pixels)
        return self

    def close(self) -> None:
        if not self._active:
            return
        Image.MAX_IMAGE_PIXELS = self._saved_limit
        self._saved_limit = None
        self._active = False
        logger.debug("Imaging session closed")

    def __enter__(self) -> ImagingSession:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def decode(self, path: str | Path) -> RasterImage:
        """Load a PNG file at its native size, converted to RGBA8.

        Raises DecodeFailure if the file cannot be opened, is not a PNG
        stream, or exceeds the session's pixel limit.
        """
        if not self._active:
            raise RuntimeError("ImagingSession.decode() called before start()")
        path = Path(path)
        try:
            with Image.open(path, formats=["PNG"]) as img:
                if img.width * img.height > self.max_pixels:
                    raise DecodeFailure(
                        path, f"{img.width}x{img.height} exceeds the {self.max_pixels} pixel limit"
                    )
                img.load()
                image = RasterImage.from_pil(img)
        except Image.DecompressionBombError as e:
            raise DecodeFailure(path, str(e)) from e
        except (OSError, EOFError, SyntaxError, ValueError) as e:
            raise DecodeFailure(path, str(e) or type(e).__name__) from e
        logger.debug("Decoded %s (%dx%d)", path, image.width, image.height)
        return image


def select_target_size(width: int, height: int) -> int:
    """Pick the canonical icon size for an image of the given dimensions.

    The smallest canonical size that holds the largest dimension; anything
    beyond 128 in either axis maps to 256, the largest size the format has.
    """
    largest = max(width, height)
    for size in CANONICAL_SIZES:
        if largest <= size:
            return size
    return CANONICAL_SIZES[-1]


def _scaled_length(length: int, scale: float, target: int) -> int:
    rounded = math.floor(length * scale + 0.5)
    return max(1, min(target, rounded))


def square_layout(
    width: int, height: int, target: int, allow_upscale: bool = True
) -> tuple[int, int, int, int]:
    """Return (scaled_width, scaled_height, offset_x, offset_y) for a canvas."""
    scale = min(target / width, target / height)
    if not allow_upscale:
        scale = min(scale, 1.0)
    scaled_w = _scaled_length(width, scale, target)
    scaled_h = _scaled_length(height, scale, target)
    return scaled_w, scaled_h, (target - scaled_w) // 2, (target - scaled_h) // 2


def to_square_canvas(
    image: RasterImage, target: int, allow_upscale: bool = True
) -> RasterImage:
    """Fit an image into a transparent target x target canvas.

    The image is scaled uniformly with bicubic resampling and centered;
    the margins left by a non-square source stay fully transparent.
    With allow_upscale=False images smaller than the canvas keep their
    native size.
    """
    if target not in CANONICAL_SIZES:
        raise ValueError(f"target size must be one of {CANONICAL_SIZES}, got {target}")

    scaled_w, scaled_h, offset_x, offset_y = square_layout(
        image.width, image.height, target, allow_upscale
    )

    source = image.to_pil()
    if (scaled_w, scaled_h) != source.size:
        scaled = source.resize((scaled_w, scaled_h), Image.Resampling.BICUBIC)
    else:
        scaled = source

    canvas = Image.new("RGBA", (target, target), (0, 0, 0, 0))
    canvas.paste(scaled, (offset_x, offset_y))
    return RasterImage.from_pil(canvas)
