#!/usr/bin/env python3
"""
bmp_rows.py

Row stride arithmetic and conversion between unpadded pixel buffers and
4-byte-aligned BMP rows.

Python ints do not overflow, so stride and size stay exact for any width
or height. Values past the u32 header fields are caught by the encoder.
"""

from __future__ import annotations

import numpy as np

from bmp_errors import BufferLengthMismatchError, TruncatedInputError


def row_stride(bits_per_pixel: int, width: int) -> int:
    return ((bits_per_pixel * width + 31) // 32) * 4


def image_byte_size(stride: int, height: int) -> int:
    return stride * abs(height)


def _row_geometry(width: int, height: int, bytes_per_pixel: int):
    row_bytes = width * bytes_per_pixel
    stride = row_stride(bytes_per_pixel * 8, width)
    return abs(height), row_bytes, stride


def pack_rows(pixels: bytes, width: int, height: int, bytes_per_pixel: int) -> bytes:
    """Append zero padding to each row so rows start on 4-byte boundaries."""
    h0, row_bytes, stride = _row_geometry(width, height, bytes_per_pixel)
    if len(pixels) != h0 * row_bytes:
        raise BufferLengthMismatchError(h0 * row_bytes, len(pixels))

    src = np.frombuffer(pixels, dtype=np.uint8).reshape((h0, row_bytes))
    out = np.zeros((h0, stride), dtype=np.uint8)
    out[:, :row_bytes] = src
    return out.tobytes()


def unpack_rows(padded: bytes, width: int, height: int, bytes_per_pixel: int) -> bytes:
    """Strip per-row padding. Trailing bytes past stride*height are ignored."""
    h0, row_bytes, stride = _row_geometry(width, height, bytes_per_pixel)
    need = stride * h0
    if len(padded) < need:
        raise TruncatedInputError(need, len(padded), "pixel data")

    rows = np.frombuffer(padded, dtype=np.uint8, count=need).reshape((h0, stride))
    return rows[:, :row_bytes].tobytes()
