#!/usr/bin/env python3
"""
bmp_codec.py

Encode/decode uncompressed and bitfield 24/32-bit BMP images.

Pixel buffers are unpadded (width * bytes_per_pixel per row), B,G,R[,A]
per pixel. The decoder keeps on-disk row order: for a positive stored
height the first row of the returned buffer is the BOTTOM row of the
picture. Use bmp_pixels.to_top_down() when display order is needed.
The encoder writes rows in the order given, so decode(encode(...))
returns the caller's buffer unchanged.
"""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Optional, Tuple

from bmp_errors import (
    BmpError,
    BufferLengthMismatchError,
    InvalidDimensionsError,
    MalformedHeaderError,
    TruncatedInputError,
    UnsupportedFormatError,
)
from bmp_header import (
    BITMAPINFOHEADER,
    BITMAPV5HEADER,
    FILE_HEADER_SIZE,
    SUPPORTED_BIT_DEPTHS,
    SUPPORTED_COMPRESSION,
    SUPPORTED_HEADER_SIZES,
    CompressionMode,
    ExtendedFields,
    FileHeader,
    InfoHeader,
    compression_name,
    default_extended,
)
from bmp_rows import image_byte_size, pack_rows, row_stride

log = logging.getLogger(__name__)

U32_MAX = 0xFFFFFFFF
I32_MAX = 0x7FFFFFFF

PIXEL_OFFSET = FILE_HEADER_SIZE + BITMAPV5HEADER  # 138


# ---------------------------------------------------------------------------
# Image aggregate
# ---------------------------------------------------------------------------

@dataclass
class Image:
    file_header: FileHeader
    info_header: InfoHeader
    pixels: Optional[bytearray]
    stream: Optional[BinaryIO] = None
    _had_stream: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        self._had_stream = self.stream is not None

    @property
    def width(self) -> int:
        return self.info_header.width

    @property
    def height(self) -> int:
        return abs(self.info_header.height)

    @property
    def bits_per_pixel(self) -> int:
        return self.info_header.bits_per_pixel

    @property
    def bytes_per_pixel(self) -> int:
        return self.info_header.bytes_per_pixel

    @property
    def stride(self) -> int:
        return row_stride(self.bits_per_pixel, self.width)

    def release(self) -> bool:
        """
        Drop the pixel buffer and close the backing stream.

        Each resource is checked on its own; a missing one is logged and
        skipped. Returns True if anything was released by this call.
        """
        released = False

        if self.pixels is None:
            log.warning("Pixel buffer already released")
        else:
            self.pixels = None
            released = True

        if self.stream is not None:
            if self.stream.closed:
                log.warning("Stream already closed")
            else:
                self.stream.close()
                released = True
            self._had_stream = True
            self.stream = None
        elif self._had_stream:
            log.warning("Stream already released")

        if not released:
            log.warning("Image %dx%d: nothing to release", self.width, self.height)
        return released

    def __enter__(self) -> "Image":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


# ---------------------------------------------------------------------------
# Encoder
# ---------------------------------------------------------------------------

def _check_format(bits_per_pixel: int, compression: int) -> CompressionMode:
    if bits_per_pixel not in SUPPORTED_BIT_DEPTHS:
        raise UnsupportedFormatError(f"Unsupported bit depth: {bits_per_pixel}")
    try:
        mode = CompressionMode(compression)
    except ValueError:
        raise UnsupportedFormatError(f"Unknown compression method: {compression}") from None
    if mode not in SUPPORTED_COMPRESSION:
        raise UnsupportedFormatError(f"Unsupported compression: {mode.name}")
    if mode == CompressionMode.BITFIELDS and bits_per_pixel == 24:
        raise UnsupportedFormatError("BITFIELDS compression requires 32 bits per pixel")
    return mode


def encode(
    width: int,
    height: int,
    bits_per_pixel: int,
    pixels: bytes,
    compression: int = CompressionMode.RGB,
) -> Tuple[FileHeader, InfoHeader, bytes]:
    """Build headers and the padded payload for an unpadded pixel buffer."""
    mode = _check_format(bits_per_pixel, compression)
    if width <= 0 or height == 0:
        raise InvalidDimensionsError(f"Invalid dimensions {width}x{height}")
    if width > I32_MAX or abs(height) > I32_MAX:
        raise InvalidDimensionsError(f"Dimensions {width}x{height} exceed i32 range")

    stride = row_stride(bits_per_pixel, width)
    image_size = image_byte_size(stride, height)
    file_size = PIXEL_OFFSET + image_size
    if file_size > U32_MAX:
        raise InvalidDimensionsError(f"Image of {file_size} bytes does not fit a BMP file")

    bpp = bits_per_pixel // 8
    expected = width * abs(height) * bpp
    if len(pixels) != expected:
        raise BufferLengthMismatchError(expected, len(pixels))

    file_header = FileHeader(size=file_size, offset=PIXEL_OFFSET)
    info = InfoHeader(
        header_size=BITMAPV5HEADER,
        width=width,
        height=height,
        bits_per_pixel=bits_per_pixel,
        compression=mode,
        image_size=image_size,
        extended=default_extended(bits_per_pixel),
    )

    log.debug("Encoding %dx%d %d-bit %s, stride=%d", width, height, bits_per_pixel, mode.name, stride)
    return file_header, info, pack_rows(pixels, width, height, bpp)


def write_bmp(sink: BinaryIO, file_header: FileHeader, info: InfoHeader, payload: bytes) -> None:
    sink.write(file_header.pack())
    sink.write(info.pack())
    sink.write(payload)


def encode_bytes(
    width: int,
    height: int,
    bits_per_pixel: int,
    pixels: bytes,
    compression: int = CompressionMode.RGB,
) -> bytes:
    file_header, info, payload = encode(width, height, bits_per_pixel, pixels, compression)
    return file_header.pack() + info.pack() + payload


def write_image(sink: BinaryIO, image: Image) -> None:
    """
    Re-encode an image, keeping its stored row order and the opaque header
    fields: resolution, reserved words, masks, colour space, endpoints and
    gammas. The output always carries the 124-byte info header.
    """
    if image.pixels is None:
        raise BmpError("Image pixel buffer has been released")
    src = image.info_header
    file_header, info, payload = encode(
        src.width, src.height, src.bits_per_pixel, bytes(image.pixels), src.compression
    )
    info.h_res, info.v_res = src.h_res, src.v_res
    if src.extended is not None:
        info.extended = replace(src.extended)
    file_header.reserved1 = image.file_header.reserved1
    file_header.reserved2 = image.file_header.reserved2
    write_bmp(sink, file_header, info, payload)


def create_bmp_file(
    path: str,
    width: int,
    height: int,
    pixels: bytes,
    bits_per_pixel: int = 32,
    compression: int = CompressionMode.BITFIELDS,
) -> Image:
    """Write a BMP file and return it with the handle still open at offset 0."""
    file_header, info, payload = encode(width, height, bits_per_pixel, pixels, compression)
    f = open(path, "wb+")
    try:
        write_bmp(f, file_header, info, payload)
        f.flush()
        f.seek(0)
    except Exception:
        f.close()
        raise
    return Image(file_header, info, bytearray(pixels), stream=f)


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

def _read_exact(stream: BinaryIO, n: int, what: str) -> bytes:
    data = stream.read(n)
    if len(data) != n:
        raise TruncatedInputError(n, len(data), what)
    return data


def _validate(info: InfoHeader) -> CompressionMode:
    if info.planes != 1:
        raise MalformedHeaderError(f"Planes must be 1, got {info.planes}")
    mode = _check_format(info.bits_per_pixel, info.compression)
    if info.width <= 0 or info.height == 0:
        raise InvalidDimensionsError(f"Invalid dimensions {info.width}x{info.height}")
    return mode


def read_headers(stream: BinaryIO) -> Tuple[FileHeader, InfoHeader]:
    """
    Read both headers from the current position without judging the pixel
    format. Only the magic and the info header variant are checked.
    """
    file_header = FileHeader.unpack(_read_exact(stream, FILE_HEADER_SIZE, "file header"))

    size_field = _read_exact(stream, 4, "info header")
    (header_size,) = struct.unpack("<I", size_field)
    if header_size not in SUPPORTED_HEADER_SIZES:
        raise UnsupportedFormatError(f"Unsupported info header size: {header_size}")
    info = InfoHeader.unpack(size_field + _read_exact(stream, header_size - 4, "info header"))
    return file_header, info


def decode(stream: BinaryIO) -> Image:
    """Decode a BMP from a seekable binary stream. The stream is left open."""
    file_header, info = read_headers(stream)
    header_size = info.header_size

    mode = _validate(info)
    info.compression = mode

    if mode == CompressionMode.BITFIELDS:
        if header_size == BITMAPINFOHEADER:
            r, g, b = struct.unpack("<III", _read_exact(stream, 12, "bitfield masks"))
            info.extended = ExtendedFields(red_mask=r, green_mask=g, blue_mask=b)
        if not any(info.masks[:3]):
            raise MalformedHeaderError("BITFIELDS compression with empty colour masks")

    width, h0 = info.width, abs(info.height)
    bpp = info.bytes_per_pixel
    stride = row_stride(info.bits_per_pixel, width)
    need = image_byte_size(stride, h0)
    if info.image_size == 0:
        info.image_size = need

    log.debug(
        "Decoding %dx%d %d-bit %s, header=%d offset=%d stride=%d",
        width, info.height, info.bits_per_pixel, compression_name(mode),
        header_size, file_header.offset, stride,
    )

    end = stream.seek(0, io.SEEK_END)
    available = max(end - file_header.offset, 0)
    if available < need:
        raise TruncatedInputError(need, available, "pixel data")

    stream.seek(file_header.offset, io.SEEK_SET)
    row_bytes = width * bpp
    pad = stride - row_bytes
    pixels = bytearray(row_bytes * h0)
    for y in range(h0):
        start = y * row_bytes
        pixels[start:start + row_bytes] = _read_exact(stream, row_bytes, "pixel data")
        if pad:
            stream.seek(pad, io.SEEK_CUR)

    return Image(file_header, info, pixels)


def decode_bytes(blob: bytes) -> Image:
    return decode(io.BytesIO(blob))


def read_bmp(path: str) -> Image:
    with open(path, "rb") as f:
        return decode(f)
