from __future__ import annotations

"""
Palette builders.

Exports:
  bucket_frequencies(pixels, grid) -> list[(bucket_key, count)]
      opaque pixels only, ranked by count desc, ties by first occurrence
  build_palette_8bit(pixels) -> (Palette[256], ColorMatcher)
      252 fixed 6x7x6 anchors, then frequent non-anchored buckets, then black
  build_palette_4bit(pixels) -> (Palette[16], ColorMatcher)
      16 most frequent 4x4x4 buckets, then a synthesised ramp
  build_palette(pixels, depth) -> dispatch on depth (8 or 4)
"""

from typing import Dict, List, Tuple

import numpy as np

from .constants import ALPHA_THRESHOLD, PALETTE_SIZE_4BIT, PALETTE_SIZE_8BIT
from .core_types import (
    BucketKey,
    Palette,
    PixelBuffer,
    PixelsLike,
    RGBTuple,
    coerce_pixels,
    opaque_mask,
)
from .errors import UnsupportedDepth
from .matcher import GRID_4, GRID_8, ColorMatcher, QuantGrid

BLACK: RGBTuple = (0, 0, 0)


def bucket_frequencies(
    pixels: PixelBuffer, grid: QuantGrid
) -> List[Tuple[BucketKey, int]]:
    """
    Count opaque pixels per grid bucket.

    Returns (key, count) pairs sorted by count descending; equal counts keep
    the order in which their bucket was first seen in a row-major scan.
    """
    mask = opaque_mask(pixels, ALPHA_THRESHOLD)
    if not np.any(mask):
        return []
    keys = grid.keys_of(pixels.rgb[mask])
    uniq, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.lexsort((first_seen, -counts))
    return [(int(uniq[i]), int(counts[i])) for i in order.tolist()]


def build_palette_8bit(pixels: PixelBuffer) -> Tuple[Palette, ColorMatcher]:
    grid = GRID_8
    lr, lg, lb = grid.levels
    entries: List[RGBTuple] = []
    index: Dict[BucketKey, int] = {}

    # Anchors: red outer, green middle, blue inner.
    for rq in range(lr):
        for gq in range(lg):
            for bq in range(lb):
                index[grid.pack(rq, gq, bq)] = len(entries)
                entries.append(grid.level_colour(rq, gq, bq))

    if len(entries) < PALETTE_SIZE_8BIT:
        for key, _count in bucket_frequencies(pixels, grid):
            if len(entries) >= PALETTE_SIZE_8BIT:
                break
            if key in index:
                continue
            index[key] = len(entries)
            entries.append(grid.level_colour(*grid.unpack(key)))

    while len(entries) < PALETTE_SIZE_8BIT:
        entries.append(BLACK)

    palette = Palette(tuple(entries))
    return palette, ColorMatcher(palette, grid, index, neighbour_search=True)


def build_palette_4bit(pixels: PixelBuffer) -> Tuple[Palette, ColorMatcher]:
    grid = GRID_4
    entries: List[RGBTuple] = []
    index: Dict[BucketKey, int] = {}

    for key, _count in bucket_frequencies(pixels, grid)[:PALETTE_SIZE_4BIT]:
        index[key] = len(entries)
        entries.append(grid.level_colour(*grid.unpack(key)))

    # Ramp fill is derived from the slot number, not from the image.
    lr, lg, lb = grid.levels
    while len(entries) < PALETTE_SIZE_4BIT:
        slot = len(entries)
        entries.append(
            grid.level_colour(slot % lr, (slot // lr) % lg, (slot // (lr * lg)) % lb)
        )

    palette = Palette(tuple(entries))
    return palette, ColorMatcher(palette, grid, index, neighbour_search=False)


def build_palette(
    pixels: PixelsLike,
    depth: int,
    width: int | None = None,
    height: int | None = None,
) -> Tuple[Palette, ColorMatcher]:
    """Palette and matcher for an 8-bit or 4-bit target."""
    if depth not in (8, 4):
        raise UnsupportedDepth(f"no palette for {depth}-bit output; expected 8 or 4")
    buf = coerce_pixels(pixels, width, height)
    if depth == 8:
        return build_palette_8bit(buf)
    return build_palette_4bit(buf)


__all__ = [
    "bucket_frequencies",
    "build_palette_8bit",
    "build_palette_4bit",
    "build_palette",
]
