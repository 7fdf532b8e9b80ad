from __future__ import annotations

"""
On-screen previews: the same palettes and matching as the encoders, emitted
as RGBA buffers of the input size instead of BMP bytes.
"""

from typing import Optional

from .constants import MAX_PIXELS
from .core_types import PixelBuffer, PixelsLike, coerce_pixels
from .dither import dither
from .errors import UnsupportedDepth
from .palette_data import build_palette_4bit, build_palette_8bit


def preview_truecolor(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    max_pixels: int = MAX_PIXELS,
) -> PixelBuffer:
    """24-bit is lossless for RGB; returns an owned copy of the input."""
    return coerce_pixels(pixels, width, height, max_pixels=max_pixels).copy()


def preview_8bit(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    max_pixels: int = MAX_PIXELS,
) -> PixelBuffer:
    buf = coerce_pixels(pixels, width, height, max_pixels=max_pixels)
    _palette, matcher = build_palette_8bit(buf)
    return matcher.map_colours(buf)


def preview_4bit(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    aggressive: bool = False,
    *,
    max_pixels: int = MAX_PIXELS,
) -> PixelBuffer:
    buf = coerce_pixels(pixels, width, height, max_pixels=max_pixels)
    if aggressive:
        buf = dither(buf)
    _palette, matcher = build_palette_4bit(buf)
    return matcher.map_colours(buf)


def preview(
    pixels: PixelsLike,
    depth: int,
    aggressive: bool = False,
    *,
    max_pixels: int = MAX_PIXELS,
) -> PixelBuffer:
    """Dispatch on depth for a PixelBuffer or (H, W, 4) array."""
    if depth == 24:
        return preview_truecolor(pixels, max_pixels=max_pixels)
    if depth == 8:
        return preview_8bit(pixels, max_pixels=max_pixels)
    if depth == 4:
        return preview_4bit(pixels, aggressive=aggressive, max_pixels=max_pixels)
    raise UnsupportedDepth(f"unsupported depth {depth!r}; expected 24, 8 or 4")


__all__ = ["preview_truecolor", "preview_8bit", "preview_4bit", "preview"]
