"""
Global tunables and format constants used across the project.

- Alpha cut-off and quantisation grids (GRID_*)
- Dither levels and Floyd-Steinberg kernel
- BMP header layout constants
- Input limits and CLI presets
"""
from __future__ import annotations

from typing import Tuple

# =========================
# Transparency
# =========================

# Pixels with alpha below this are treated as transparent: never counted, always index 0.
ALPHA_THRESHOLD = 128

# =========================
# Palette grids
# =========================

# 6x7x6 cube for 8-bit. Green gets the extra level since the eye is most sensitive to it.
GRID_8BIT: Tuple[int, int, int] = (6, 7, 6)

# 4x4x4 cube for 4-bit frequency buckets.
GRID_4BIT: Tuple[int, int, int] = (4, 4, 4)

PALETTE_SIZE_8BIT = 256
PALETTE_SIZE_4BIT = 16

# Bit shifts used to pack (rq, gq, bq) into a single bucket key.
KEY_SHIFTS_8BIT: Tuple[int, int, int] = (16, 8, 0)
KEY_SHIFTS_4BIT: Tuple[int, int, int] = (8, 4, 0)

# Chebyshev radius for the neighbour bucket search on a bucket miss.
NEIGHBOUR_RADIUS = 1

# =========================
# Dithering
# =========================

# Evenly spaced output levels per channel: 0, 85, 170, 255.
DITHER_LEVELS = 4
DITHER_STEP = 255 // (DITHER_LEVELS - 1)

# Error diffusion kernel: Floyd-Steinberg (dx, dy, weight), weights sum to 1.
KERNEL_FS: Tuple[Tuple[int, int, float], ...] = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)

# =========================
# BMP layout
# =========================

BMP_SIGNATURE = b"BM"
BMP_MIME_TYPE = "image/bmp"
FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
HEADER_SIZE = FILE_HEADER_SIZE + INFO_HEADER_SIZE  # 54
PALETTE_ENTRY_SIZE = 4  # B, G, R, reserved
PIXELS_PER_METER = 2835  # ~72 DPI
BI_RGB = 0
SUPPORTED_DEPTHS: Tuple[int, ...] = (24, 8, 4)

# =========================
# Limits
# =========================

# Upper bound on width*height accepted by the codec.
MAX_PIXELS = 250_000_000

# Largest input file the CLI will decode.
MAX_FILE_BYTES = 50 * 1024 * 1024

# =========================
# CLI presets
# =========================

ACCEPTED_SUFFIXES: Tuple[str, ...] = (".png", ".jpg", ".jpeg")
ACCEPTED_FORMATS: Tuple[str, ...] = ("PNG", "JPEG")

# Xteink e-reader screen, portrait.
XTEINK_SIZE: Tuple[int, int] = (480, 800)

OUTPUT_SUFFIX = ".bmp"
PREVIEW_SUFFIX = "_preview.png"
