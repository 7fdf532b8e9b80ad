from __future__ import annotations

"""
Core type aliases, small value objects, and input validation helpers.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .constants import BMP_MIME_TYPE, MAX_PIXELS
from .errors import BufferLengthMismatch, InvalidDimensions, InvalidPixelData

# Basic aliases

RGBTuple = Tuple[int, int, int]
BucketKey = int

U8Image = NDArray[np.uint8]  # (H, W, 4) RGBA
U8Indices = NDArray[np.uint8]  # (H, W) palette indices
U8Palette = NDArray[np.uint8]  # (P, 3) RGB rows

BytesLike = Union[bytes, bytearray, memoryview]

# Value objects


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    RGBA pixels, row-major, one uint8 per channel.

    data has shape (height, width, 4). Construction rejects any other shape
    or dtype. The codec only ever reads it; anything that needs to modify
    pixels works on its own copy.
    """

    width: int
    height: int
    data: U8Image

    def __post_init__(self) -> None:
        data = self.data
        if not isinstance(data, np.ndarray) or data.dtype != np.uint8:
            kind = getattr(data, "dtype", type(data).__name__)
            raise InvalidPixelData(f"pixel data must be a uint8 array, got {kind}")
        if data.shape != (self.height, self.width, 4):
            raise BufferLengthMismatch(
                f"pixel data has shape {data.shape}, expected "
                f"({self.height}, {self.width}, 4) for {self.width}x{self.height} RGBA"
            )

    @classmethod
    def from_bytes(
        cls,
        width: int,
        height: int,
        data: BytesLike,
        *,
        max_pixels: int = MAX_PIXELS,
    ) -> "PixelBuffer":
        """Wrap flat RGBA bytes (len == width*height*4) without copying."""
        validate_dimensions(width, height, max_pixels=max_pixels)
        expected = int(width) * int(height) * 4
        flat = np.frombuffer(data, dtype=np.uint8)
        if flat.size != expected:
            raise BufferLengthMismatch(
                f"pixel data has {flat.size} bytes, expected {expected} "
                f"for {width}x{height} RGBA"
            )
        return cls(int(width), int(height), flat.reshape(int(height), int(width), 4))

    @classmethod
    def from_array(
        cls, array: np.ndarray, *, max_pixels: int = MAX_PIXELS
    ) -> "PixelBuffer":
        """Wrap a uint8 (H, W, 4) array without copying."""
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[-1] != 4:
            raise BufferLengthMismatch(f"expected (H, W, 4) array, got {arr.shape}")
        if arr.dtype != np.uint8:
            raise InvalidPixelData(f"expected uint8 RGBA data, got {arr.dtype}")
        height, width = int(arr.shape[0]), int(arr.shape[1])
        validate_dimensions(width, height, max_pixels=max_pixels)
        return cls(width, height, arr)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def rgb(self) -> U8Image:
        return self.data[..., :3]

    @property
    def alpha(self) -> NDArray[np.uint8]:
        return self.data[..., 3]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy())

    def to_bytes(self) -> bytes:
        """Flat RGBA bytes, row-major."""
        return np.ascontiguousarray(self.data).tobytes()

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = self.data[y, x].tolist()
        return (r, g, b, a)


@dataclass(frozen=True)
class Palette:
    """Ordered, fixed-length colour table. Index order is the on-disk order."""

    entries: Tuple[RGBTuple, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> RGBTuple:
        return self.entries[index]

    def __iter__(self) -> Iterator[RGBTuple]:
        return iter(self.entries)

    @property
    def rgb(self) -> U8Palette:
        """(P, 3) uint8 array view of the entries."""
        return np.array(self.entries, dtype=np.uint8).reshape(-1, 3)


@dataclass(frozen=True)
class EncodedImage:
    """Finished file bytes plus their MIME type."""

    data: bytes
    mime_type: str = BMP_MIME_TYPE

    def __len__(self) -> int:
        return len(self.data)


PixelsLike = Union[PixelBuffer, np.ndarray, BytesLike, Sequence[int]]

# Validation helpers


def _is_int(value: object) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def validate_dimensions(
    width: object, height: object, *, max_pixels: int = MAX_PIXELS
) -> Tuple[int, int]:
    """Return (width, height) as ints or raise InvalidDimensions."""
    if not _is_int(width) or not _is_int(height):
        raise InvalidDimensions(f"width and height must be ints, got {width!r}x{height!r}")
    w, h = int(width), int(height)  # type: ignore[call-overload]
    if w <= 0 or h <= 0:
        raise InvalidDimensions(f"width and height must be positive, got {w}x{h}")
    if w * h > max_pixels:
        raise InvalidDimensions(
            f"{w}x{h} = {w * h:,} pixels exceeds the limit of {max_pixels:,}"
        )
    return w, h


def coerce_pixels(
    pixels: PixelsLike,
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    max_pixels: int = MAX_PIXELS,
) -> PixelBuffer:
    """
    Normalise any accepted pixel input into a PixelBuffer.

    Accepts a PixelBuffer, a uint8 (H, W, 4) array, or flat RGBA data
    (bytes-like, 1-D array, or int sequence) together with width and height.
    Shape problems raise BufferLengthMismatch; non-integer or out-of-range
    channel values raise InvalidPixelData.
    Explicit width/height must agree with a PixelBuffer or 3-D array.
    """
    if isinstance(pixels, PixelBuffer):
        buf = pixels
        validate_dimensions(buf.width, buf.height, max_pixels=max_pixels)
    elif isinstance(pixels, np.ndarray) and pixels.ndim == 3:
        buf = PixelBuffer.from_array(pixels, max_pixels=max_pixels)
    else:
        if width is None or height is None:
            raise InvalidDimensions("width and height are required for flat pixel data")
        w, h = validate_dimensions(width, height, max_pixels=max_pixels)
        if isinstance(pixels, (bytes, bytearray, memoryview)):
            return PixelBuffer.from_bytes(w, h, pixels, max_pixels=max_pixels)
        try:
            flat = np.asarray(pixels).reshape(-1)
        except (TypeError, ValueError) as exc:
            raise InvalidPixelData(f"unreadable pixel sequence ({exc})") from exc
        if flat.size != w * h * 4:
            raise BufferLengthMismatch(
                f"pixel data has {flat.size} values, expected {w * h * 4} "
                f"for {w}x{h} RGBA"
            )
        if flat.dtype != np.uint8:
            if not np.issubdtype(flat.dtype, np.integer):
                raise InvalidPixelData(
                    f"channel values must be integers, got {flat.dtype}"
                )
            if flat.min() < 0 or flat.max() > 255:
                raise InvalidPixelData("channel values must be within 0..255")
            flat = flat.astype(np.uint8)
        return PixelBuffer(w, h, flat.reshape(h, w, 4))

    if (width is not None and width != buf.width) or (
        height is not None and height != buf.height
    ):
        raise BufferLengthMismatch(
            f"buffer is {buf.width}x{buf.height}, caller declared {width}x{height}"
        )
    return buf


def opaque_mask(buf: PixelBuffer, threshold: int) -> NDArray[np.bool_]:
    """Boolean (H, W) mask of pixels with alpha >= threshold."""
    return buf.alpha >= np.uint8(threshold)


__all__ = [
    # aliases
    "RGBTuple",
    "BucketKey",
    "U8Image",
    "U8Indices",
    "U8Palette",
    "BytesLike",
    "PixelsLike",
    # value objects
    "PixelBuffer",
    "Palette",
    "EncodedImage",
    # helpers
    "validate_dimensions",
    "coerce_pixels",
    "opaque_mask",
]
