#!/usr/bin/env python3
"""
bmp_pixels.py

Per-pixel helpers on top of decoded/encodable pixel buffers.
"""

from __future__ import annotations

import numpy as np

from bmp_codec import Image
from bmp_errors import BmpError, InvalidLengthError, OutOfBoundsError
from bmp_header import (
    DEFAULT_ALPHA_MASK,
    DEFAULT_BLUE_MASK,
    DEFAULT_GREEN_MASK,
    DEFAULT_RED_MASK,
)


def invert(buffer: bytearray, length: int, bytes_per_pixel: int = 4) -> bytearray:
    """
    Complement B, G, R of the first `length` bytes in place; alpha is kept.
    The buffer must be writable (bytearray, writable memoryview or array).
    """
    if memoryview(buffer).readonly:
        raise BmpError(f"Cannot invert a read-only {type(buffer).__name__} buffer in place")
    if length % bytes_per_pixel or length > len(buffer):
        raise InvalidLengthError(
            f"Length {length} is not a whole number of {bytes_per_pixel}-byte pixels "
            f"within a {len(buffer)}-byte buffer"
        )
    if length:
        px = np.frombuffer(buffer, dtype=np.uint8, count=length).reshape((-1, bytes_per_pixel))
        px[:, :3] = 255 - px[:, :3]
    return buffer


def _colour_masks(image: Image) -> tuple[int, int, int, int]:
    rmask, gmask, bmask, amask = image.info_header.masks
    if not (rmask or gmask or bmask):
        return DEFAULT_RED_MASK, DEFAULT_GREEN_MASK, DEFAULT_BLUE_MASK, DEFAULT_ALPHA_MASK
    return rmask, gmask, bmask, amask


def invert_image(image: Image) -> Image:
    """
    Invert the colour channels of a decoded image in place.

    32-bit pixels are flipped through the header's R, G, B masks, so any
    bitfield layout keeps its alpha and channel positions.
    """
    if image.pixels is None:
        raise BmpError("Image pixel buffer has been released")
    if image.bytes_per_pixel == 3:
        invert(image.pixels, len(image.pixels), 3)
        return image

    rmask, gmask, bmask, _ = _colour_masks(image)
    if len(image.pixels):
        words = np.frombuffer(image.pixels, dtype=np.uint8).view("<u4")
        words ^= np.uint32(rmask | gmask | bmask)
    return image


def _pixel_offset(image: Image, x: int, y: int) -> int:
    if image.pixels is None:
        raise BmpError("Image pixel buffer has been released")
    if not (0 <= x < image.width and 0 <= y < image.height):
        raise OutOfBoundsError(x, y, image.width, image.height)
    return (y * image.width + x) * image.bytes_per_pixel


def set_pixel(x: int, y: int, r: int, g: int, b: int, a: int, image: Image) -> None:
    """Write one pixel. y counts buffer rows, i.e. stored row order. a is ignored at 24 bpp."""
    off = _pixel_offset(image, x, y)
    if image.bytes_per_pixel == 4:
        image.pixels[off:off + 4] = bytes((b, g, r, a))
    else:
        image.pixels[off:off + 3] = bytes((b, g, r))


def get_pixel(x: int, y: int, image: Image) -> tuple[int, int, int, int]:
    """(r, g, b, a) at x, y; a is 255 for 24-bit images."""
    off = _pixel_offset(image, x, y)
    px = image.pixels[off:off + image.bytes_per_pixel]
    a = px[3] if image.bytes_per_pixel == 4 else 255
    return px[2], px[1], px[0], a


def to_top_down(image: Image) -> bytes:
    """Pixel buffer with the top row of the picture first."""
    if image.pixels is None:
        raise BmpError("Image pixel buffer has been released")
    rows = np.frombuffer(bytes(image.pixels), dtype=np.uint8).reshape(
        (image.height, image.width * image.bytes_per_pixel)
    )
    if image.info_header.bottom_up:
        rows = rows[::-1]
    return rows.tobytes()


def _channel(words: np.ndarray, mask: int, missing: int) -> np.ndarray:
    if not mask:
        return np.full(words.shape, missing, dtype=np.uint8)
    shift = (mask & -mask).bit_length() - 1
    maxv = mask >> shift
    v = ((words & mask) >> shift).astype(np.uint64)
    if maxv == 255:
        return v.astype(np.uint8)
    return ((v * 255 + maxv // 2) // maxv).astype(np.uint8)


def extract_channels(image: Image) -> np.ndarray:
    """
    Decode pixels into an HxWx4 RGBA uint8 array (stored row order).

    32-bit pixels are read through the header's bit masks, falling back to
    the BGRA layout when none are set. Channels narrower than 8 bits are
    scaled up to 0..255. A missing alpha mask yields opaque pixels.
    """
    if image.pixels is None:
        raise BmpError("Image pixel buffer has been released")
    h0, w0 = image.height, image.width
    raw = np.frombuffer(bytes(image.pixels), dtype=np.uint8)

    if image.bytes_per_pixel == 3:
        bgr = raw.reshape((h0, w0, 3))
        alpha = np.full((h0, w0, 1), 255, dtype=np.uint8)
        return np.concatenate([bgr[:, :, ::-1], alpha], axis=2)

    words = raw.view("<u4").reshape((h0, w0))
    rmask, gmask, bmask, amask = _colour_masks(image)
    return np.stack(
        [
            _channel(words, rmask, 0),
            _channel(words, gmask, 0),
            _channel(words, bmask, 0),
            _channel(words, amask, 255),
        ],
        axis=2,
    )
