from __future__ import annotations

"""
BMP encode entry points.

  pixels -> [dither (4-bit aggressive)] -> palette -> per-pixel index -> BMP bytes

`pixels` may be a PixelBuffer, a uint8 (H, W, 4) array, or flat RGBA data with
explicit width and height. Every call validates its input before allocating
any output and is otherwise side-effect free.
"""

from typing import Optional

from .bmp_writer import serialise_indexed, serialise_truecolor
from .constants import BMP_MIME_TYPE, MAX_PIXELS, SUPPORTED_DEPTHS
from .core_types import EncodedImage, PixelsLike, coerce_pixels
from .dither import dither
from .errors import UnsupportedDepth
from .palette_data import build_palette_4bit, build_palette_8bit


def encode_truecolor(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    max_pixels: int = MAX_PIXELS,
) -> bytes:
    """24-bit BGR, alpha dropped."""
    buf = coerce_pixels(pixels, width, height, max_pixels=max_pixels)
    return serialise_truecolor(buf)


def encode_8bit(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    max_pixels: int = MAX_PIXELS,
) -> bytes:
    """8-bit with the 6x7x6 anchor palette topped up from the image."""
    buf = coerce_pixels(pixels, width, height, max_pixels=max_pixels)
    palette, matcher = build_palette_8bit(buf)
    return serialise_indexed(matcher.map_indices(buf), palette, 8)


def encode_4bit(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    aggressive: bool = False,
    *,
    max_pixels: int = MAX_PIXELS,
) -> bytes:
    """
    4-bit with a 16-colour frequency palette.

    aggressive=True runs Floyd-Steinberg dithering first; the palette is then
    built from, and matched against, the dithered pixels.
    """
    buf = coerce_pixels(pixels, width, height, max_pixels=max_pixels)
    if aggressive:
        buf = dither(buf)
    palette, matcher = build_palette_4bit(buf)
    return serialise_indexed(matcher.map_indices(buf), palette, 4)


def encode(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    depth: int = 24,
    *,
    aggressive: bool = False,
    max_pixels: int = MAX_PIXELS,
) -> EncodedImage:
    """Encode at depth 24, 8 or 4. Never falls back to another depth."""
    if depth not in SUPPORTED_DEPTHS:
        raise UnsupportedDepth(
            f"unsupported depth {depth!r}; expected one of {SUPPORTED_DEPTHS}"
        )
    if depth == 24:
        data = encode_truecolor(pixels, width, height, max_pixels=max_pixels)
    elif depth == 8:
        data = encode_8bit(pixels, width, height, max_pixels=max_pixels)
    else:
        data = encode_4bit(
            pixels, width, height, aggressive, max_pixels=max_pixels
        )
    return EncodedImage(data, BMP_MIME_TYPE)


__all__ = ["encode_truecolor", "encode_8bit", "encode_4bit", "encode"]
