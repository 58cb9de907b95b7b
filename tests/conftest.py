import struct

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(20240607)


@pytest.fixture
def legacy_bmp():
    """Build a BMP with a 40-byte info header around an already padded payload."""

    def build(width, height, bpp, payload, compression=0, masks=None, gap=b"", image_size=0, planes=1):
        mask_bytes = struct.pack("<III", *masks) if masks else b""
        offset = 14 + 40 + len(mask_bytes) + len(gap)
        info = struct.pack(
            "<IiiHHIIiiII",
            40, width, height, planes, bpp, compression, image_size, 2835, 2835, 0, 0,
        )
        fh = struct.pack("<2sIHHI", b"BM", offset + len(payload), 0, 0, offset)
        return fh + info + mask_bytes + gap + payload

    return build
