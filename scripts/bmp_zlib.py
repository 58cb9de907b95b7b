#!/usr/bin/env python3
"""
bmp_zlib.py

Read/write BMP blobs that may be wrapped in a zlib ".z" container
(e.g. image.bmp.z).
"""

from __future__ import annotations

import logging
import zlib

from bmp_errors import MalformedHeaderError

log = logging.getLogger(__name__)

DEFAULT_LEVEL = 9


def zread(path: str) -> bytes:
    with open(path, "rb") as f:
        data = f.read()
    if not path.endswith(".z"):
        return data
    try:
        blob = zlib.decompress(data)
    except zlib.error as e:
        raise MalformedHeaderError(f"{path}: bad zlib stream: {e}") from e
    log.debug("Inflated %s: %d -> %d bytes", path, len(data), len(blob))
    return blob


def zwrite(path: str, blob: bytes, level: int = DEFAULT_LEVEL) -> None:
    if path.endswith(".z"):
        blob = zlib.compress(blob, level)
    with open(path, "wb") as f:
        f.write(blob)
