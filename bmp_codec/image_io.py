from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .constants import (
    ACCEPTED_FORMATS,
    ACCEPTED_SUFFIXES,
    MAX_FILE_BYTES,
    MAX_PIXELS,
    OUTPUT_SUFFIX,
    XTEINK_SIZE,
)
from .core_types import EncodedImage, PixelBuffer, validate_dimensions
from .errors import ImageFileError

"""
File-side helpers for the CLI: input validation, PNG/JPEG decode to RGBA,
target-size parsing and resize, and writing .bmp / preview .png outputs.
The codec itself never touches the filesystem.
"""


def pillow_resample_from_name(name: str) -> Image.Resampling:
    """Map a string to a Pillow resampling filter enum."""
    if name == "nearest":
        return Image.Resampling.NEAREST
    if name == "bilinear":
        return Image.Resampling.BILINEAR
    if name == "bicubic":
        return Image.Resampling.BICUBIC
    if name == "lanczos":
        return Image.Resampling.LANCZOS
    return Image.Resampling.BILINEAR  # default


def check_image_file(path: Path, max_bytes: int = MAX_FILE_BYTES) -> None:
    """Reject missing files, non PNG/JPEG suffixes and files over max_bytes."""
    if not path.is_file():
        raise ImageFileError(f"not a file: {path}")
    if path.suffix.lower() not in ACCEPTED_SUFFIXES:
        raise ImageFileError(
            f"{path.name}: please use a PNG or JPEG file ({', '.join(ACCEPTED_SUFFIXES)})"
        )
    size = path.stat().st_size
    if size > max_bytes:
        raise ImageFileError(
            f"{path.name}: file is too large ({size:,} bytes, max {max_bytes:,})"
        )


def load_pixels(
    path: Path,
    *,
    max_bytes: int = MAX_FILE_BYTES,
    max_pixels: int = MAX_PIXELS,
) -> PixelBuffer:
    """Validate and decode a PNG/JPEG into an RGBA PixelBuffer."""
    check_image_file(path, max_bytes)
    try:
        with Image.open(path) as im0:
            if im0.format not in ACCEPTED_FORMATS:
                raise ImageFileError(
                    f"{path.name}: decoded as {im0.format}, expected PNG or JPEG"
                )
            validate_dimensions(im0.width, im0.height, max_pixels=max_pixels)
            im = ImageOps.exif_transpose(im0).convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageFileError(f"{path.name}: failed to load image ({exc})") from exc
    arr = np.array(im, dtype=np.uint8)
    return PixelBuffer.from_array(arr, max_pixels=max_pixels)


def parse_target_size(text: str) -> Optional[Tuple[int, int]]:
    """
    'original' -> None, 'xteink' -> (480, 800), 'WxH' -> (W, H).

    Raises ValueError for anything else.
    """
    s = text.strip().lower()
    if s in ("", "original"):
        return None
    if s == "xteink":
        return XTEINK_SIZE
    parts = s.split("x")
    if len(parts) != 2:
        raise ValueError(f"size must be 'original', 'xteink' or WxH, got {text!r}")
    try:
        w, h = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"size must be WxH integers, got {text!r}") from exc
    if w <= 0 or h <= 0:
        raise ValueError(f"size must be positive, got {text!r}")
    return w, h


def resize_pixels(
    pixels: PixelBuffer,
    size: Optional[Tuple[int, int]],
    resample: Image.Resampling = Image.Resampling.BILINEAR,
) -> PixelBuffer:
    """Scale to exactly (w, h), ignoring aspect ratio. None or same size is a no-op."""
    if size is None or size == (pixels.width, pixels.height):
        return pixels
    im = Image.fromarray(np.ascontiguousarray(pixels.data))
    im2 = im.resize(size, resample=resample)
    return PixelBuffer.from_array(np.array(im2, dtype=np.uint8))


def bmp_output_path(src: Path, outdir: Optional[Path] = None) -> Path:
    """<stem>.bmp next to the source, or inside outdir."""
    name = f"{src.stem or 'converted'}{OUTPUT_SUFFIX}"
    return (outdir / name) if outdir else src.with_name(name)


def write_bmp_file(path: Path, image: EncodedImage) -> Path:
    if path.suffix.lower() != OUTPUT_SUFFIX:
        path = path.with_suffix(OUTPUT_SUFFIX)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(image.data)
    return path


def save_preview_png(path: Path, pixels: PixelBuffer) -> Path:
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.ascontiguousarray(pixels.data)).save(path)
    return path


__all__ = [
    "pillow_resample_from_name",
    "check_image_file",
    "load_pixels",
    "parse_target_size",
    "resize_pixels",
    "bmp_output_path",
    "write_bmp_file",
    "save_preview_png",
]
