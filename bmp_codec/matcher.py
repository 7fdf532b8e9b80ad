from __future__ import annotations

"""
Quantisation grids and nearest-colour lookup.

QuantGrid
  Coarsens RGB into per-channel levels and packs them into an int bucket key.

ColorMatcher
  Palette + bucket->index map. nearest_index() tries, in order:
    1. exact bucket hit (O(1))
    2. neighbour buckets within Chebyshev distance 1 (8-bit grid only)
    3. exhaustive scan of the palette by squared RGB distance
  Ties always go to the first minimum.
"""

from dataclasses import dataclass, field
from typing import Mapping, Tuple

import numpy as np

from .constants import (
    ALPHA_THRESHOLD,
    GRID_4BIT,
    GRID_8BIT,
    KEY_SHIFTS_4BIT,
    KEY_SHIFTS_8BIT,
    NEIGHBOUR_RADIUS,
)
from .core_types import (
    BucketKey,
    Palette,
    PixelBuffer,
    RGBTuple,
    U8Indices,
    U8Palette,
    opaque_mask,
)


@dataclass(frozen=True)
class QuantGrid:
    """Per-channel level counts and the bit shifts used to pack a bucket key."""

    levels: Tuple[int, int, int]
    shifts: Tuple[int, int, int]

    def quantise(self, r: int, g: int, b: int) -> Tuple[int, int, int]:
        """RGB -> (rq, gq, bq) with q = floor(v * levels / 256)."""
        lr, lg, lb = self.levels
        return (r * lr) // 256, (g * lg) // 256, (b * lb) // 256

    def pack(self, rq: int, gq: int, bq: int) -> BucketKey:
        sr, sg, sb = self.shifts
        return (rq << sr) | (gq << sg) | (bq << sb)

    def unpack(self, key: BucketKey) -> Tuple[int, int, int]:
        sr, sg, sb = self.shifts
        mask = (1 << (sr - sg)) - 1
        return (key >> sr) & mask, (key >> sg) & mask, (key >> sb) & mask

    def key(self, r: int, g: int, b: int) -> BucketKey:
        return self.pack(*self.quantise(r, g, b))

    def level_colour(self, rq: int, gq: int, bq: int) -> RGBTuple:
        """Representative colour of a cell: round(level*255/(n-1)), halves up."""
        return (
            _level_value(rq, self.levels[0]),
            _level_value(gq, self.levels[1]),
            _level_value(bq, self.levels[2]),
        )

    def keys_of(self, rgb: np.ndarray) -> np.ndarray:
        """Vectorised bucket keys for an (N, 3) uint8 array."""
        v = rgb.astype(np.int64, copy=False)
        lr, lg, lb = self.levels
        sr, sg, sb = self.shifts
        rq = (v[:, 0] * lr) // 256
        gq = (v[:, 1] * lg) // 256
        bq = (v[:, 2] * lb) // 256
        return (rq << sr) | (gq << sg) | (bq << sb)


def _level_value(level: int, count: int) -> int:
    # Integer round-half-up of level * 255 / (count - 1).
    span = count - 1
    return (2 * level * 255 + span) // (2 * span)


GRID_8 = QuantGrid(GRID_8BIT, KEY_SHIFTS_8BIT)
GRID_4 = QuantGrid(GRID_4BIT, KEY_SHIFTS_4BIT)


@dataclass(frozen=True, eq=False)
class ColorMatcher:
    """
    Nearest-palette-index lookup for one palette.

    bucket_index maps bucket keys to the palette slot that represents that
    bucket. Slots not registered there (black fill, synthesised ramp) are only
    reachable through the exhaustive scan.
    """

    palette: Palette
    grid: QuantGrid
    bucket_index: Mapping[BucketKey, int]
    neighbour_search: bool = False
    _pal_rgb: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_pal_rgb", self.palette.rgb.astype(np.int32))

    def bucket_key(self, r: int, g: int, b: int) -> BucketKey:
        return self.grid.key(r, g, b)

    def nearest_index(self, r: int, g: int, b: int) -> int:
        rq, gq, bq = self.grid.quantise(r, g, b)
        hit = self.bucket_index.get(self.grid.pack(rq, gq, bq))
        if hit is not None:
            return hit
        if self.neighbour_search:
            local = self.neighbour_index(r, g, b, (rq, gq, bq))
            if local is not None:
                return local
        return self.linear_index(r, g, b)

    def neighbour_index(
        self, r: int, g: int, b: int, levels: Tuple[int, int, int]
    ) -> int | None:
        """Best registered bucket within NEIGHBOUR_RADIUS cells, or None."""
        rq, gq, bq = levels
        lr, lg, lb = self.grid.levels
        rad = NEIGHBOUR_RADIUS
        best_idx: int | None = None
        best_d2 = 0
        for dr in range(-rad, rad + 1):
            nr = min(max(rq + dr, 0), lr - 1)
            for dg in range(-rad, rad + 1):
                ng = min(max(gq + dg, 0), lg - 1)
                for db in range(-rad, rad + 1):
                    nb = min(max(bq + db, 0), lb - 1)
                    idx = self.bucket_index.get(self.grid.pack(nr, ng, nb))
                    if idx is None:
                        continue
                    pr, pg, pb = self.palette[idx]
                    d2 = (r - pr) ** 2 + (g - pg) ** 2 + (b - pb) ** 2
                    if best_idx is None or d2 < best_d2:
                        best_idx, best_d2 = idx, d2
        return best_idx

    def linear_index(self, r: int, g: int, b: int) -> int:
        """Exhaustive scan by squared RGB distance; argmin keeps the first tie."""
        diff = self._pal_rgb - np.array([r, g, b], dtype=np.int32)
        d2 = np.sum(diff * diff, axis=1)
        return int(np.argmin(d2))

    def map_indices(self, pixels: PixelBuffer) -> U8Indices:
        """
        Palette index per pixel, (H, W) uint8.

        Transparent pixels (alpha < ALPHA_THRESHOLD) get index 0. Each distinct
        opaque RGB is resolved once and broadcast back.
        """
        out = np.zeros((pixels.height, pixels.width), dtype=np.uint8)
        mask = opaque_mask(pixels, ALPHA_THRESHOLD)
        if not np.any(mask):
            return out
        rgb = pixels.rgb[mask].astype(np.uint32)
        codes = (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]
        uniq, inverse = np.unique(codes, return_inverse=True)
        lut = np.empty(uniq.shape[0], dtype=np.uint8)
        for i, code in enumerate(uniq.tolist()):
            lut[i] = self.nearest_index(
                (code >> 16) & 0xFF, (code >> 8) & 0xFF, code & 0xFF
            )
        out[mask] = lut[inverse.reshape(-1)]
        return out

    def map_colours(self, pixels: PixelBuffer) -> PixelBuffer:
        """
        Quantised RGBA copy: opaque pixels take their palette colour, transparent
        ones become (0, 0, 0). Alpha is carried over unchanged.
        """
        indices = self.map_indices(pixels)
        pal_rgb: U8Palette = self.palette.rgb
        out = np.empty_like(pixels.data)
        out[..., :3] = pal_rgb[indices]
        out[..., 3] = pixels.alpha
        transparent = ~opaque_mask(pixels, ALPHA_THRESHOLD)
        out[transparent, :3] = 0
        return PixelBuffer(pixels.width, pixels.height, out)


__all__ = [
    "QuantGrid",
    "GRID_8",
    "GRID_4",
    "ColorMatcher",
]
