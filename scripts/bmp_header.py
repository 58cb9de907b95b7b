#!/usr/bin/env python3
"""
bmp_header.py

File header and info header descriptors for BMP images.

Layout (little-endian, packed):
  FileHeader   14 bytes   "BM", size, reserved1, reserved2, offset
  InfoHeader   40 bytes   BITMAPINFOHEADER core fields
               52 / 56    + RGB / RGBA masks (V2 / V3)
               108        + colour space, 9 endpoints, 3 gammas (V4)
               124        + intent, profile data, profile size, reserved (V5)

The variants are prefixes of one another, so a single V5 layout is packed
and truncated to header_size rather than keeping one struct per variant.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Tuple

from bmp_errors import MalformedHeaderError, TruncatedInputError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAGIC = b"BM"

FILE_HEADER = struct.Struct("<2sIHHI")
INFO_CORE = struct.Struct("<IiiHHIIiiII")
# masks(4), cstype, endpoints(9), gammas(3), intent, profile data/size, reserved
INFO_EXTENDED = struct.Struct("<IIIII9I3IIIII")

FILE_HEADER_SIZE = FILE_HEADER.size           # 14
BITMAPINFOHEADER = INFO_CORE.size             # 40
BITMAPV2INFOHEADER = 52
BITMAPV3INFOHEADER = 56
BITMAPV4HEADER = 108
BITMAPV5HEADER = BITMAPINFOHEADER + INFO_EXTENDED.size  # 124

SUPPORTED_HEADER_SIZES = (
    BITMAPINFOHEADER,
    BITMAPV2INFOHEADER,
    BITMAPV3INFOHEADER,
    BITMAPV4HEADER,
    BITMAPV5HEADER,
)

# 'sRGB' as a Windows multi-char constant; on disk the bytes read b"BGRs"
LCS_SRGB = 0x73524742

DEFAULT_PPM = 2835  # ~72 DPI

# BGRA byte order on disk == ARGB in a little-endian u32
DEFAULT_RED_MASK = 0x00FF0000
DEFAULT_GREEN_MASK = 0x0000FF00
DEFAULT_BLUE_MASK = 0x000000FF
DEFAULT_ALPHA_MASK = 0xFF000000


class CompressionMode(IntEnum):
    RGB = 0
    RLE8 = 1
    RLE4 = 2
    BITFIELDS = 3
    JPEG = 4
    PNG = 5
    ALPHABITFIELDS = 6
    CMYK = 11
    CMYKRLE8 = 12
    CMYKRLE4 = 13


SUPPORTED_COMPRESSION = (CompressionMode.RGB, CompressionMode.BITFIELDS)
SUPPORTED_BIT_DEPTHS = (24, 32)


def compression_name(value: int) -> str:
    try:
        return CompressionMode(value).name
    except ValueError:
        return f"UNKNOWN({value})"


# ---------------------------------------------------------------------------
# File header
# ---------------------------------------------------------------------------

@dataclass
class FileHeader:
    size: int = 0
    offset: int = 0
    reserved1: int = 0
    reserved2: int = 0
    magic: bytes = MAGIC

    def pack(self) -> bytes:
        return FILE_HEADER.pack(self.magic, self.size, self.reserved1, self.reserved2, self.offset)

    @classmethod
    def unpack(cls, blob: bytes) -> "FileHeader":
        if len(blob) < FILE_HEADER_SIZE:
            raise TruncatedInputError(FILE_HEADER_SIZE, len(blob), "file header")
        magic, size, r1, r2, offset = FILE_HEADER.unpack_from(blob, 0)
        if magic != MAGIC:
            raise MalformedHeaderError(f"Not BMP: magic {magic!r}")
        return cls(size=size, offset=offset, reserved1=r1, reserved2=r2, magic=magic)


# ---------------------------------------------------------------------------
# Info header
# ---------------------------------------------------------------------------

@dataclass
class ExtendedFields:
    """Fields past the 40-byte core. Opaque unless the masks decode pixels."""

    red_mask: int = 0
    green_mask: int = 0
    blue_mask: int = 0
    alpha_mask: int = 0
    color_space: int = 0
    endpoints: Tuple[int, ...] = field(default_factory=lambda: (0,) * 9)
    red_gamma: int = 0
    green_gamma: int = 0
    blue_gamma: int = 0
    intent: int = 0
    profile_data: int = 0
    profile_size: int = 0
    reserved: int = 0

    def pack(self) -> bytes:
        return INFO_EXTENDED.pack(
            self.red_mask, self.green_mask, self.blue_mask, self.alpha_mask,
            self.color_space, *self.endpoints,
            self.red_gamma, self.green_gamma, self.blue_gamma,
            self.intent, self.profile_data, self.profile_size, self.reserved,
        )

    @classmethod
    def unpack(cls, blob: bytes) -> "ExtendedFields":
        v = INFO_EXTENDED.unpack(blob)
        return cls(
            red_mask=v[0], green_mask=v[1], blue_mask=v[2], alpha_mask=v[3],
            color_space=v[4], endpoints=tuple(v[5:14]),
            red_gamma=v[14], green_gamma=v[15], blue_gamma=v[16],
            intent=v[17], profile_data=v[18], profile_size=v[19], reserved=v[20],
        )

    @property
    def masks(self) -> Tuple[int, int, int, int]:
        return self.red_mask, self.green_mask, self.blue_mask, self.alpha_mask


@dataclass
class InfoHeader:
    width: int
    height: int
    bits_per_pixel: int
    compression: int = CompressionMode.RGB
    image_size: int = 0
    header_size: int = BITMAPINFOHEADER
    planes: int = 1
    h_res: int = DEFAULT_PPM
    v_res: int = DEFAULT_PPM
    palette_count: int = 0
    important_colors: int = 0
    extended: Optional[ExtendedFields] = None

    @property
    def is_legacy(self) -> bool:
        return self.extended is None

    @property
    def bytes_per_pixel(self) -> int:
        return self.bits_per_pixel // 8

    @property
    def bottom_up(self) -> bool:
        return self.height > 0

    @property
    def masks(self) -> Tuple[int, int, int, int]:
        if self.extended is None:
            return 0, 0, 0, 0
        return self.extended.masks

    def pack(self) -> bytes:
        """Serialize exactly header_size bytes."""
        core = INFO_CORE.pack(
            self.header_size, self.width, self.height, self.planes,
            self.bits_per_pixel, int(self.compression), self.image_size,
            self.h_res, self.v_res, self.palette_count, self.important_colors,
        )
        ext = (self.extended or ExtendedFields()).pack()
        return (core + ext)[:self.header_size]

    @classmethod
    def unpack(cls, blob: bytes) -> "InfoHeader":
        """Parse a header blob whose first u32 is its own length."""
        if len(blob) < BITMAPINFOHEADER:
            raise TruncatedInputError(BITMAPINFOHEADER, len(blob), "info header")
        v = INFO_CORE.unpack_from(blob, 0)
        header_size = v[0]
        if len(blob) < header_size:
            raise TruncatedInputError(header_size, len(blob), "info header")

        extended = None
        if header_size > BITMAPINFOHEADER:
            tail = bytes(blob[BITMAPINFOHEADER:min(header_size, BITMAPV5HEADER)])
            tail = tail.ljust(INFO_EXTENDED.size, b"\x00")
            extended = ExtendedFields.unpack(tail)

        return cls(
            header_size=header_size, width=v[1], height=v[2], planes=v[3],
            bits_per_pixel=v[4], compression=v[5], image_size=v[6],
            h_res=v[7], v_res=v[8], palette_count=v[9], important_colors=v[10],
            extended=extended,
        )


def default_extended(bits_per_pixel: int) -> ExtendedFields:
    """Extended fields this codec emits: sRGB + BGRA masks at 32 bpp, zeros at 24."""
    if bits_per_pixel == 32:
        return ExtendedFields(
            red_mask=DEFAULT_RED_MASK,
            green_mask=DEFAULT_GREEN_MASK,
            blue_mask=DEFAULT_BLUE_MASK,
            alpha_mask=DEFAULT_ALPHA_MASK,
            color_space=LCS_SRGB,
        )
    return ExtendedFields()


def describe(file_header: FileHeader, info: InfoHeader) -> list[tuple[str, object]]:
    """(label, value) pairs for diagnostic printing."""
    rows: list[tuple[str, object]] = [
        ("Size", file_header.size),
        ("Reserved 1", file_header.reserved1),
        ("Reserved 2", file_header.reserved2),
        ("Pixel array offset", file_header.offset),
        ("Header size", info.header_size),
        ("Width", info.width),
        ("Height", info.height),
        ("Planes", info.planes),
        ("Color depth", info.bits_per_pixel),
        ("Compression", compression_name(info.compression)),
        ("Image size", info.image_size),
        ("Horizontal resolution", info.h_res),
        ("Vertical resolution", info.v_res),
        ("Palette", info.palette_count),
        ("Important colors", info.important_colors),
    ]
    if info.extended is not None:
        ext = info.extended
        cs = ext.color_space.to_bytes(4, "big").decode("latin-1") if ext.color_space else "0"
        rows += [
            ("Red mask", f"0x{ext.red_mask:08X}"),
            ("Green mask", f"0x{ext.green_mask:08X}"),
            ("Blue mask", f"0x{ext.blue_mask:08X}"),
            ("Alpha mask", f"0x{ext.alpha_mask:08X}"),
            ("Color space", cs),
        ]
    return rows
