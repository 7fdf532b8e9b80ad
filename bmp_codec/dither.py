from __future__ import annotations

"""
Floyd-Steinberg error diffusion onto a 4-level-per-channel grid.

Used ahead of 4-bit quantisation in "aggressive" mode. A single forward
raster pass (rows top to bottom, pixels left to right) over a private working
copy; each finished pixel pushes its residual to the right, below-left, below
and below-right neighbours. Neighbours receive error only if they are inside
the image and opaque. Working values are stored back as 8-bit channels
(clamped to 0..255, rounded half to even) before the next pixel reads them.
"""

from typing import List

import numpy as np

from .constants import ALPHA_THRESHOLD, DITHER_LEVELS, DITHER_STEP, KERNEL_FS
from .core_types import PixelBuffer, PixelsLike, coerce_pixels


def quantise_channel(value: int) -> int:
    """round(value / 255 * 3) * 85, halves up, clamped to 0..255."""
    span = DITHER_LEVELS - 1
    level = (2 * value * span + 255) // (2 * 255)
    return min(255, max(0, level * DITHER_STEP))


def _store_u8(value: float) -> int:
    if value <= 0.0:
        return 0
    if value >= 255.0:
        return 255
    return int(round(value))


def dither(pixels: PixelBuffer) -> PixelBuffer:
    """Return a dithered copy of pixels. The input buffer is left untouched."""
    width, height = pixels.width, pixels.height
    work: List[int] = pixels.data.reshape(-1).tolist()

    for y in range(height):
        row_base = y * width
        for x in range(width):
            i = (row_base + x) * 4
            if work[i + 3] < ALPHA_THRESHOLD:
                continue

            errs = []
            for c in range(3):
                old = work[i + c]
                new = quantise_channel(old)
                work[i + c] = new
                errs.append(old - new)
            if errs[0] == 0 and errs[1] == 0 and errs[2] == 0:
                continue

            for dx, dy, weight in KERNEL_FS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < width and 0 <= ny < height):
                    continue
                j = (ny * width + nx) * 4
                if work[j + 3] < ALPHA_THRESHOLD:
                    continue
                for c in range(3):
                    work[j + c] = _store_u8(work[j + c] + errs[c] * weight)

    out = np.array(work, dtype=np.uint8).reshape(height, width, 4)
    return PixelBuffer(width, height, out)


def dither_rgba(
    pixels: PixelsLike, width: int | None = None, height: int | None = None
) -> PixelBuffer:
    """dither() for any accepted pixel input (flat bytes need width and height)."""
    return dither(coerce_pixels(pixels, width, height))


__all__ = ["quantise_channel", "dither", "dither_rgba"]
