"""Shared fixtures for bmp_codec tests."""

import numpy as np
import pytest

from bmp_codec.core_types import PixelBuffer

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
WHITE = (255, 255, 255, 255)


def make_pixels(rows):
    """Build a PixelBuffer from a list of rows of (r, g, b, a) tuples."""
    arr = np.array(rows, dtype=np.uint8)
    return PixelBuffer.from_array(arr)


def flat_rgba(rows):
    """Flat RGBA bytes for a list of rows of (r, g, b, a) tuples."""
    return bytes(np.array(rows, dtype=np.uint8).reshape(-1).tolist())


@pytest.fixture
def rgbw_rows():
    return [[RED, GREEN], [BLUE, WHITE]]


@pytest.fixture
def rgbw_bytes(rgbw_rows):
    return flat_rgba(rgbw_rows)


@pytest.fixture
def rgbw(rgbw_rows):
    return make_pixels(rgbw_rows)


@pytest.fixture
def noisy():
    """7x5 random RGBA image with a few transparent pixels."""
    rng = np.random.default_rng(1234)
    arr = rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8)
    arr[..., 3] = 255
    arr[0, 0, 3] = 0
    arr[2, 3, 3] = 127
    arr[4, 6, 3] = 10
    return PixelBuffer.from_array(arr)


@pytest.fixture
def transparent():
    arr = np.zeros((3, 5, 4), dtype=np.uint8)
    arr[..., :3] = 200
    return PixelBuffer.from_array(arr)
