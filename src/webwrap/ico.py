"""Single-image ICO container encoding and reading.

Layout written by encode() (little-endian throughout)::

    ICONDIR            6 bytes   reserved=0, type=1, count=1
    ICONDIRENTRY      16 bytes   width, height (256 stored as 0), 32 bpp,
                                 bytes_in_res, image_offset=22
    BITMAPINFOHEADER  40 bytes   height doubled, uncompressed
    pixel rows        size*size*4 bytes, bottom-up, B G R A

The doubled bitmap height traditionally announces a 1-bit AND mask after
the color rows. No mask is written: 32 bpp icons carry transparency in
their alpha channel and Windows, Pillow and browsers all read them that way.
"""

from __future__ import annotations

import contextlib
import logging
import os
import struct
import tempfile
from dataclasses import dataclass
from pathlib import Path

from webwrap.errors import DecodeFailure, EncodeFailure
from webwrap.raster import CANONICAL_SIZES, RasterImage


logger = logging.getLogger(__name__)

ICONDIR = struct.Struct("<HHH")
ICONDIRENTRY = struct.Struct("<BBBBHHII")
BITMAPINFOHEADER = struct.Struct("<IiiHHIIiiII")

ICON_TYPE = 1
BITS_PER_PIXEL = 32
BI_RGB = 0
IMAGE_OFFSET = ICONDIR.size + ICONDIRENTRY.size

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@dataclass
class IcoEntry:
    """One directory entry of an ICO file, with 0 sizes unwrapped to 256."""

    width: int
    height: int
    color_count: int
    planes: int
    bit_count: int
    bytes_in_res: int
    image_offset: int


def encoded_size(size: int) -> int:
    """Total length in bytes of the container encode() produces for a size."""
    return IMAGE_OFFSET + BITMAPINFOHEADER.size + size * size * 4


def _flip_and_swap(pixels: bytes, width: int, height: int) -> bytes:
    """Reverse row order and swap the first and third byte of every pixel.

    Turns top-down RGBA into bottom-up BGRA and back again.
    """
    stride = width * 4
    out = bytearray()
    for y in range(height - 1, -1, -1):
        row = pixels[y * stride:(y + 1) * stride]
        swapped = bytearray(row)
        swapped[0::4] = row[2::4]
        swapped[2::4] = row[0::4]
        out += swapped
    return bytes(out)


def encode(canvas: RasterImage) -> bytes:
    """Serialize a square canonical-size canvas into ICO bytes."""
    size = canvas.width
    if canvas.height != size:
        raise ValueError(f"icon canvas must be square, got {canvas.width}x{canvas.height}")
    if size not in CANONICAL_SIZES:
        raise ValueError(f"icon size must be one of {CANONICAL_SIZES}, got {size}")

    stored = 0 if size == 256 else size
    pixel_bytes = size * size * 4

    header = ICONDIR.pack(0, ICON_TYPE, 1)
    entry = ICONDIRENTRY.pack(
        stored,
        stored,
        0,  # color count, 0 for true color
        0,
        1,  # planes
        BITS_PER_PIXEL,
        BITMAPINFOHEADER.size + pixel_bytes,
        IMAGE_OFFSET,
    )
    bitmap_header = BITMAPINFOHEADER.pack(
        BITMAPINFOHEADER.size,
        size,
        size * 2,
        1,
        BITS_PER_PIXEL,
        BI_RGB,
        0, 0, 0, 0, 0,
    )
    return header + entry + bitmap_header + _flip_and_swap(canvas.pixels, size, size)


def read_entries(data: bytes, source: str | Path = "<bytes>") -> list[IcoEntry]:
    """Parse the header and directory of an ICO byte stream."""
    if len(data) < ICONDIR.size:
        raise DecodeFailure(source, "truncated ICO header")
    reserved, kind, count = ICONDIR.unpack_from(data, 0)
    if reserved != 0 or kind != ICON_TYPE:
        raise DecodeFailure(source, "not an ICO file")
    if len(data) < ICONDIR.size + count * ICONDIRENTRY.size:
        raise DecodeFailure(source, f"directory declares {count} entries but data is truncated")

    entries = []
    for i in range(count):
        width, height, colors, _, planes, bits, size, offset = ICONDIRENTRY.unpack_from(
            data, ICONDIR.size + i * ICONDIRENTRY.size
        )
        entries.append(IcoEntry(
            width=width or 256,
            height=height or 256,
            color_count=colors,
            planes=planes,
            bit_count=bits,
            bytes_in_res=size,
            image_offset=offset,
        ))
    return entries


def decode(data: bytes, index: int = 0, source: str | Path = "<bytes>") -> RasterImage:
    """Decode one 32 bpp uncompressed entry back to a top-down RGBA image."""
    entries = read_entries(data, source)
    if not 0 <= index < len(entries):
        raise DecodeFailure(source, f"no entry {index}, file has {len(entries)}")
    entry = entries[index]
    payload = data[entry.image_offset:entry.image_offset + entry.bytes_in_res]
    if len(payload) != entry.bytes_in_res:
        raise DecodeFailure(source, "image data runs past end of file")
    if payload.startswith(PNG_SIGNATURE):
        raise DecodeFailure(source, "PNG-compressed icon entries are not supported")
    if len(payload) < BITMAPINFOHEADER.size:
        raise DecodeFailure(source, "truncated bitmap header")

    header_size, width, height, _, bits, compression = struct.unpack_from("<IiiHHI", payload, 0)
    if bits != BITS_PER_PIXEL or compression != BI_RGB:
        raise DecodeFailure(source, f"unsupported bitmap ({bits} bpp, compression {compression})")
    height //= 2
    stride = width * 4
    rows = payload[header_size:header_size + stride * height]
    if width < 1 or height < 1 or len(rows) != stride * height:
        raise DecodeFailure(source, "bitmap pixel data is truncated")

    return RasterImage(width=width, height=height, pixels=_flip_and_swap(rows, width, height))


def write_icon(data: bytes, destination: str | Path) -> Path:
    """Write icon bytes so that destination is either absent or complete.

    The data goes to a temporary file beside the destination which is then
    renamed over it. Raises EncodeFailure on any OS error, after removing
    the temporary file.
    """
    destination = Path(destination)
    tmp_name: str | None = None
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=destination.parent,
            prefix=f".{destination.stem}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, destination)
    except OSError as e:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
        logger.warning("Could not write icon %s: %s", destination, e)
        raise EncodeFailure(destination, e.strerror or str(e)) from e
    return destination
