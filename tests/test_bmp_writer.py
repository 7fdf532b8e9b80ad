"""Tests for BMP header layout, palette tables and row padding."""

import struct

import numpy as np
import pytest

from bmp_codec.bmp_writer import (
    indexed_rows,
    palette_table,
    read_bmp_header,
    row_size,
    serialise_indexed,
    serialise_truecolor,
    truecolor_rows,
    write_bmp,
)
from bmp_codec.core_types import Palette
from bmp_codec.errors import UnsupportedDepth

from conftest import make_pixels


@pytest.mark.parametrize(
    "bpp, width, expected",
    [
        (24, 1, 4),
        (24, 2, 8),
        (24, 3, 12),
        (24, 4, 12),
        (8, 1, 4),
        (8, 5, 8),
        (4, 1, 4),
        (4, 8, 4),
        (4, 9, 8),
    ],
)
def test_row_size(bpp, width, expected):
    assert row_size(bpp, width) == expected


class TestHeaders:
    def test_truecolor_header_fields(self):
        pixels = make_pixels([[(1, 2, 3, 255)] * 3] * 2)
        data = serialise_truecolor(pixels)
        h = read_bmp_header(data)
        assert h.signature == b"BM"
        assert h.file_size == len(data) == 54 + 12 * 2
        assert (h.reserved1, h.reserved2) == (0, 0)
        assert h.pixel_offset == 54
        assert h.header_size == 40
        assert (h.width, h.height) == (3, -2)
        assert h.planes == 1
        assert h.bits_per_pixel == 24
        assert h.compression == 0
        assert h.image_size == 24
        assert (h.x_pixels_per_meter, h.y_pixels_per_meter) == (2835, 2835)
        assert (h.colours_used, h.colours_important) == (0, 0)

    def test_raw_header_bytes(self):
        data = write_bmp(1, 1, 24, np.zeros((1, 4), dtype=np.uint8))
        assert data[:2] == b"BM"
        assert struct.unpack_from("<I", data, 2)[0] == 58
        assert struct.unpack_from("<I", data, 10)[0] == 54
        assert struct.unpack_from("<i", data, 22)[0] == -1
        assert data[22:26] == b"\xff\xff\xff\xff"

    def test_indexed_header_fields(self):
        palette = Palette(tuple((i, i, i) for i in range(16)))
        indices = np.zeros((3, 5), dtype=np.uint8)
        data = serialise_indexed(indices, palette, 4)
        h = read_bmp_header(data)
        assert h.pixel_offset == 54 + 64
        assert h.bits_per_pixel == 4
        assert h.image_size == 4 * 3
        assert (h.colours_used, h.colours_important) == (16, 16)
        assert len(data) == 54 + 64 + 12

    def test_rejects_unknown_depth(self):
        with pytest.raises(UnsupportedDepth):
            write_bmp(1, 1, 16, np.zeros((1, 4), dtype=np.uint8))

    def test_rejects_wrong_row_shape(self):
        with pytest.raises(ValueError):
            write_bmp(2, 1, 24, np.zeros((1, 6), dtype=np.uint8))

    def test_read_header_too_short(self):
        with pytest.raises(ValueError):
            read_bmp_header(b"BM")


class TestPaletteTable:
    def test_bgr0_order(self):
        table = palette_table(Palette(((1, 2, 3), (250, 128, 0))))
        assert table == bytes([3, 2, 1, 0, 0, 128, 250, 0])


class TestRows:
    def test_truecolor_bgr_and_padding(self):
        pixels = make_pixels([[(10, 20, 30, 0), (40, 50, 60, 255), (70, 80, 90, 7)]])
        rows = truecolor_rows(pixels)
        assert rows.tolist() == [[30, 20, 10, 60, 50, 40, 90, 80, 70, 0, 0, 0]]

    def test_8bit_padding(self):
        rows = indexed_rows(np.array([[1, 2, 3, 4, 5]], dtype=np.uint8), 8)
        assert rows.tolist() == [[1, 2, 3, 4, 5, 0, 0, 0]]

    def test_4bit_packs_high_nibble_first(self):
        rows = indexed_rows(np.array([[1, 2, 3, 15]], dtype=np.uint8), 4)
        assert rows.tolist() == [[0x12, 0x3F, 0, 0]]

    def test_4bit_odd_width_low_nibble_zero(self):
        rows = indexed_rows(np.array([[1, 2, 3], [4, 5, 6]], dtype=np.uint8), 4)
        assert rows.tolist() == [[0x12, 0x30, 0, 0], [0x45, 0x60, 0, 0]]

    def test_4bit_nine_wide_spills_into_second_word(self):
        idx = np.arange(9, dtype=np.uint8).reshape(1, 9)
        rows = indexed_rows(idx, 4)
        assert rows.tolist() == [[0x01, 0x23, 0x45, 0x67, 0x80, 0, 0, 0]]

    def test_rejects_truecolor(self):
        with pytest.raises(UnsupportedDepth):
            indexed_rows(np.zeros((1, 1), dtype=np.uint8), 24)

    def test_rows_are_top_down(self):
        pixels = make_pixels([[(255, 0, 0, 255)], [(0, 0, 255, 255)]])
        data = serialise_truecolor(pixels)
        assert data[54:58] == bytes([0, 0, 255, 0])
        assert data[58:62] == bytes([255, 0, 0, 0])
