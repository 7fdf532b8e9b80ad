from __future__ import annotations

"""
Uncompressed Windows BMP serialisation (BITMAPINFOHEADER, BI_RGB).

Layout written:
  14-byte file header   'BM', file size, 2x reserved 0, pixel data offset
  40-byte info header   negative height (top-down rows), planes 1, bpp,
                        image size, 2835 px/m both axes, colour counts
  palette table         BGR0 per entry (8-bit and 4-bit only)
  pixel rows            top to bottom, each zero-padded to a multiple of 4 bytes

All multi-byte fields are little-endian.
"""

import struct
from typing import NamedTuple, Optional

import numpy as np

from .constants import (
    BI_RGB,
    BMP_SIGNATURE,
    FILE_HEADER_SIZE,
    HEADER_SIZE,
    INFO_HEADER_SIZE,
    PALETTE_ENTRY_SIZE,
    PIXELS_PER_METER,
    SUPPORTED_DEPTHS,
)
from .core_types import Palette, PixelBuffer, U8Indices
from .errors import UnsupportedDepth

_FILE_HEADER = struct.Struct("<2sIHHI")
_INFO_HEADER = struct.Struct("<IiiHHIIiiII")


class BmpHeader(NamedTuple):
    """Parsed file + info header fields."""

    signature: bytes
    file_size: int
    reserved1: int
    reserved2: int
    pixel_offset: int
    header_size: int
    width: int
    height: int
    planes: int
    bits_per_pixel: int
    compression: int
    image_size: int
    x_pixels_per_meter: int
    y_pixels_per_meter: int
    colours_used: int
    colours_important: int


def row_size(bpp: int, width: int) -> int:
    """Bytes per stored row: floor((bpp*width + 31) / 32) * 4."""
    return ((bpp * width + 31) // 32) * 4


def palette_table(palette: Palette) -> bytes:
    """BGR0 entries in palette order."""
    table = np.zeros((len(palette), PALETTE_ENTRY_SIZE), dtype=np.uint8)
    table[:, :3] = palette.rgb[:, ::-1]
    return table.tobytes()


def truecolor_rows(pixels: PixelBuffer) -> np.ndarray:
    """(H, row_size) uint8 rows of B, G, R triples; alpha is dropped."""
    width, height = pixels.width, pixels.height
    rows = np.zeros((height, row_size(24, width)), dtype=np.uint8)
    bgr = pixels.data[..., 2::-1]
    rows[:, : 3 * width] = bgr.reshape(height, 3 * width)
    return rows


def indexed_rows(indices: U8Indices, bpp: int) -> np.ndarray:
    """
    (H, row_size) uint8 rows from an (H, W) index array.

    8 bpp: one byte per pixel.
    4 bpp: two pixels per byte, even x in the high nibble; an odd final
           column leaves the low nibble 0.
    """
    height, width = indices.shape
    rows = np.zeros((height, row_size(bpp, width)), dtype=np.uint8)
    if bpp == 8:
        rows[:, :width] = indices
        return rows
    if bpp == 4:
        if width % 2:
            indices = np.concatenate(
                [indices, np.zeros((height, 1), dtype=np.uint8)], axis=1
            )
        packed = ((indices[:, 0::2] & 0x0F) << 4) | (indices[:, 1::2] & 0x0F)
        rows[:, : packed.shape[1]] = packed
        return rows
    raise UnsupportedDepth(f"indexed rows need 8 or 4 bpp, got {bpp}")


def write_bmp(
    width: int,
    height: int,
    bpp: int,
    rows: np.ndarray,
    palette: Optional[Palette] = None,
) -> bytes:
    """Assemble headers, optional palette table and pre-padded rows."""
    if bpp not in SUPPORTED_DEPTHS:
        raise UnsupportedDepth(f"unsupported depth {bpp}; expected one of {SUPPORTED_DEPTHS}")
    stride = row_size(bpp, width)
    if rows.shape != (height, stride):
        raise ValueError(f"rows shape {rows.shape} != {(height, stride)}")

    table = palette_table(palette) if palette is not None else b""
    colours = len(palette) if palette is not None else 0
    image_size = stride * height
    pixel_offset = HEADER_SIZE + len(table)
    file_size = pixel_offset + image_size

    file_header = _FILE_HEADER.pack(BMP_SIGNATURE, file_size, 0, 0, pixel_offset)
    info_header = _INFO_HEADER.pack(
        INFO_HEADER_SIZE,
        width,
        -height,
        1,
        bpp,
        BI_RGB,
        image_size,
        PIXELS_PER_METER,
        PIXELS_PER_METER,
        colours,
        colours,
    )
    return b"".join(
        [file_header, info_header, table, np.ascontiguousarray(rows).tobytes()]
    )


def serialise_truecolor(pixels: PixelBuffer) -> bytes:
    return write_bmp(pixels.width, pixels.height, 24, truecolor_rows(pixels))


def serialise_indexed(indices: U8Indices, palette: Palette, bpp: int) -> bytes:
    height, width = indices.shape
    return write_bmp(width, height, bpp, indexed_rows(indices, bpp), palette)


def read_bmp_header(data: bytes) -> BmpHeader:
    """Parse the 54 header bytes written by write_bmp()."""
    if len(data) < HEADER_SIZE:
        raise ValueError(f"need at least {HEADER_SIZE} bytes, got {len(data)}")
    head = _FILE_HEADER.unpack_from(data, 0)
    info = _INFO_HEADER.unpack_from(data, FILE_HEADER_SIZE)
    return BmpHeader(*head, *info)


__all__ = [
    "BmpHeader",
    "row_size",
    "palette_table",
    "truecolor_rows",
    "indexed_rows",
    "write_bmp",
    "serialise_truecolor",
    "serialise_indexed",
    "read_bmp_header",
]
