#!/usr/bin/env python3
"""
bmp_info.py

CLI: print the file header and info header of one or more BMP files.

Usage:
  bmp_info.py image.bmp [more.bmp.z ...]
"""

from __future__ import annotations

import argparse
import io
import logging

from bmp_codec import read_headers
from bmp_errors import BmpError
from bmp_header import describe
from bmp_zlib import zread

log = logging.getLogger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Print BMP header fields")
    p.add_argument("paths", nargs="+", help="BMP files (.bmp or .bmp.z)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def print_info(path: str, out=None) -> None:
    file_header, info = read_headers(io.BytesIO(zread(path)))
    rows = describe(file_header, info)
    width = max(len(label) for label, _ in rows)
    print(f"---- {path} ----", file=out)
    for label, value in rows:
        print(f"{label:<{width}}  {value}", file=out)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    status = 0
    for path in args.paths:
        try:
            print_info(path)
        except (BmpError, OSError) as e:
            log.error("ERROR: %s: %s", path, e)
            status = 1
    return status


if __name__ == "__main__":
    raise SystemExit(main())
