#!/usr/bin/env python3
"""
bmp_raw_to_bmp.py

CLI: wrap a raw unpadded BGR/BGRA pixel buffer into a BMP file.
Rows are written in the order given (bottom row first for a positive height,
pass a negative --height for top-down input).

Usage:
  bmp_raw_to_bmp.py --in raw.bgra --out out.bmp --width 660 --height 330 --bpp 32
"""

from __future__ import annotations

import argparse
import logging

from bmp_codec import encode_bytes
from bmp_errors import BmpError
from bmp_header import CompressionMode
from bmp_zlib import DEFAULT_LEVEL, zwrite

log = logging.getLogger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Convert raw BGR/BGRA pixels to BMP")
    p.add_argument("--in", dest="infile", required=True, help="Input raw pixel file")
    p.add_argument("--out", required=True, help="Output BMP path (.bmp or .bmp.z)")
    p.add_argument("--width", type=int, required=True)
    p.add_argument("--height", type=int, required=True)
    p.add_argument("--bpp", type=int, choices=[24, 32], default=24, help="Bits per pixel")
    p.add_argument(
        "--compression",
        choices=["RGB", "BITFIELDS"],
        default="RGB",
        help="Compression method (BITFIELDS needs --bpp 32)",
    )
    p.add_argument("--level", type=int, default=DEFAULT_LEVEL, help="zlib level for .z output")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        with open(args.infile, "rb") as f:
            raw = f.read()
        blob = encode_bytes(args.width, args.height, args.bpp, raw, CompressionMode[args.compression])
        zwrite(args.out, blob, level=args.level)
    except (BmpError, OSError) as e:
        log.error("ERROR: %s", e)
        return 1
    log.info("Wrote %s (%d bytes)", args.out, len(blob))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
