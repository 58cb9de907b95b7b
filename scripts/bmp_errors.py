#!/usr/bin/env python3
"""
bmp_errors.py

Error types raised by the BMP codec helpers.
"""

from __future__ import annotations


class BmpError(Exception):
    """Base class for every codec failure."""


class MalformedHeaderError(BmpError):
    """Bad magic or an impossible combination of header fields."""


class UnsupportedFormatError(BmpError):
    """Bit depth, compression mode or header variant this codec does not handle."""


class InvalidDimensionsError(BmpError):
    """Non-positive width, zero height, or an image too large for the container."""


class BufferLengthMismatchError(BmpError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Pixel buffer is {actual} bytes, expected {expected}")


class TruncatedInputError(BmpError):
    def __init__(self, expected: int, received: int, what: str = "data"):
        self.expected = expected
        self.received = received
        super().__init__(f"Truncated {what}: expected {expected} bytes, got {received}")


class OutOfBoundsError(BmpError):
    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        super().__init__(f"Pixel ({x}, {y}) outside {width}x{height} image")


class InvalidLengthError(BmpError):
    """Buffer length is not a whole number of pixels."""
