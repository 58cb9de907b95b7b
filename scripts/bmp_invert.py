#!/usr/bin/env python3
"""
bmp_invert.py

CLI: invert the colour channels of a 24/32-bit BMP. Alpha, channel masks
and other header fields are preserved.

Usage:
  bmp_invert.py --in in.bmp --out out.bmp
"""

from __future__ import annotations

import argparse
import io
import logging

from bmp_codec import decode, write_image
from bmp_errors import BmpError
from bmp_pixels import invert_image
from bmp_zlib import DEFAULT_LEVEL, zread, zwrite

log = logging.getLogger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Invert BMP colours")
    p.add_argument("--in", dest="infile", required=True, help="Input BMP (.bmp or .bmp.z)")
    p.add_argument("--out", required=True, help="Output BMP (.bmp or .bmp.z)")
    p.add_argument("--level", type=int, default=DEFAULT_LEVEL, help="zlib level for .z output")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def invert_file(infile: str, outfile: str, level: int = DEFAULT_LEVEL) -> None:
    with decode(io.BytesIO(zread(infile))) as image:
        invert_image(image)
        sink = io.BytesIO()
        write_image(sink, image)
        zwrite(outfile, sink.getvalue(), level=level)
        log.info("Inverted %dx%d %d-bit image -> %s", image.width, image.height, image.bits_per_pixel, outfile)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        invert_file(args.infile, args.out, args.level)
    except (BmpError, OSError) as e:
        log.error("ERROR: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
