"""Tests for bucket keys and the exact -> neighbour -> linear colour search."""

import numpy as np

from bmp_codec.core_types import Palette, PixelBuffer
from bmp_codec.matcher import GRID_4, GRID_8, ColorMatcher
from bmp_codec.palette_data import build_palette_8bit

from conftest import make_pixels


def _sparse_8bit_matcher():
    # Only two buckets registered; slot 0 is reachable through the linear scan only.
    palette = Palette(((0, 0, 0), (255, 255, 255), (51, 0, 0)))
    index = {GRID_8.pack(1, 0, 0): 2, GRID_8.pack(5, 6, 5): 1}
    return ColorMatcher(palette, GRID_8, index, neighbour_search=True)


class TestQuantGrid:
    def test_8bit_levels(self):
        assert GRID_8.quantise(0, 0, 0) == (0, 0, 0)
        assert GRID_8.quantise(255, 255, 255) == (5, 6, 5)
        assert GRID_8.quantise(42, 36, 43) == (0, 0, 1)
        assert GRID_8.quantise(43, 37, 42) == (1, 1, 0)

    def test_4bit_levels(self):
        assert GRID_4.quantise(63, 64, 255) == (0, 1, 3)

    def test_key_packing(self):
        assert GRID_8.key(255, 255, 255) == (5 << 16) | (6 << 8) | 5
        assert GRID_4.key(255, 0, 255) == (3 << 8) | 3
        assert GRID_8.unpack(GRID_8.pack(4, 6, 2)) == (4, 6, 2)
        assert GRID_4.unpack(GRID_4.pack(1, 2, 3)) == (1, 2, 3)

    def test_vectorised_keys_match_scalar(self):
        rng = np.random.default_rng(3)
        rgb = rng.integers(0, 256, size=(50, 3), dtype=np.uint8)
        for grid in (GRID_8, GRID_4):
            keys = grid.keys_of(rgb).tolist()
            assert keys == [grid.key(*row) for row in rgb.tolist()]

    def test_level_colour(self):
        assert GRID_8.level_colour(1, 1, 1) == (51, 43, 51)
        assert GRID_8.level_colour(5, 3, 0) == (255, 128, 0)
        assert GRID_8.level_colour(0, 5, 0) == (0, 213, 0)
        assert GRID_4.level_colour(1, 2, 3) == (85, 170, 255)


class TestNearestIndex:
    def test_exact_bucket_hit(self):
        _, matcher = build_palette_8bit(make_pixels([[(0, 0, 0, 255)]]))
        # (50, 0, 0) falls in red level 1 even though level 0 is closer.
        assert matcher.nearest_index(50, 0, 0) == 42
        assert matcher.bucket_key(50, 0, 0) == GRID_8.pack(1, 0, 0)

    def test_neighbour_search_before_linear_scan(self):
        matcher = _sparse_8bit_matcher()
        # Slot 0 is an exact colour match, but the neighbouring bucket wins.
        assert matcher.nearest_index(0, 0, 0) == 2
        assert matcher.nearest_index(200, 200, 200) == 1

    def test_linear_fallback_when_no_neighbour(self):
        matcher = _sparse_8bit_matcher()
        assert matcher.neighbour_index(20, 120, 120, GRID_8.quantise(20, 120, 120)) is None
        assert matcher.nearest_index(20, 120, 120) == 0

    def test_neighbour_search_clamps_at_grid_edges(self):
        palette = Palette(((0, 0, 0), (255, 255, 255)))
        index = {GRID_8.pack(5, 6, 4): 1}
        matcher = ColorMatcher(palette, GRID_8, index, neighbour_search=True)
        assert matcher.nearest_index(255, 255, 255) == 1

    def test_neighbour_ties_keep_first(self):
        palette = Palette(((0, 0, 0), (60, 0, 0), (0, 0, 60)))
        index = {GRID_8.pack(1, 0, 0): 1, GRID_8.pack(0, 0, 1): 2}
        matcher = ColorMatcher(palette, GRID_8, index, neighbour_search=True)
        # Equal distances; dr is the outer loop so (0, 0, 1) is visited first.
        assert matcher.nearest_index(10, 10, 10) == 2

    def test_4bit_miss_goes_straight_to_linear(self):
        entries = [(0, 0, 0), (85, 85, 85)] + [(255, 255, 255)] * 14
        palette = Palette(tuple(entries))
        matcher = ColorMatcher(palette, GRID_4, {GRID_4.pack(0, 0, 0): 0})
        assert matcher.nearest_index(90, 90, 90) == 1

    def test_linear_ties_keep_first(self):
        palette = Palette(((0, 0, 0), (2, 0, 0), (0, 0, 0)))
        matcher = ColorMatcher(palette, GRID_4, {})
        assert matcher.linear_index(1, 0, 0) == 0
        assert matcher.linear_index(0, 0, 0) == 0


class TestMapIndices:
    def test_transparent_forced_to_zero(self):
        pixels = make_pixels([[(255, 255, 255, 127), (255, 255, 255, 128)]])
        _, matcher = build_palette_8bit(pixels)
        assert matcher.map_indices(pixels).tolist() == [[0, 251]]

    def test_matches_per_pixel_lookup(self, noisy):
        _, matcher = build_palette_8bit(noisy)
        indices = matcher.map_indices(noisy)
        assert indices.shape == (noisy.height, noisy.width)
        for y in range(noisy.height):
            for x in range(noisy.width):
                r, g, b, a = noisy.pixel(x, y)
                expected = 0 if a < 128 else matcher.nearest_index(r, g, b)
                assert indices[y, x] == expected

    def test_all_transparent(self, transparent):
        _, matcher = build_palette_8bit(transparent)
        assert not matcher.map_indices(transparent).any()

    def test_map_colours(self):
        pixels = make_pixels([[(250, 5, 5, 255), (200, 10, 10, 100)]])
        _, matcher = build_palette_8bit(pixels)
        out = matcher.map_colours(pixels)
        assert isinstance(out, PixelBuffer)
        assert out.pixel(0, 0) == (255, 0, 0, 255)
        assert out.pixel(1, 0) == (0, 0, 0, 100)
