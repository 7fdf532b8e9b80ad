"""
Error types raised by the codec.

All of them derive from CodecError, itself a ValueError, so callers can catch
the whole family at once.
"""


class CodecError(ValueError):
    """Base class for codec failures."""


class InvalidDimensions(CodecError):
    """Width or height is not a positive int, or the pixel count is over the limit."""


class BufferLengthMismatch(CodecError):
    """Pixel data does not hold exactly width*height RGBA samples."""


class InvalidPixelData(CodecError):
    """Channel values are not uint8-compatible integers in 0..255."""


class UnsupportedDepth(CodecError):
    """Requested bits-per-pixel is not one of 24, 8 or 4."""


class ImageFileError(CodecError):
    """Input file rejected before decoding (type, size, or unreadable)."""


__all__ = [
    "CodecError",
    "InvalidDimensions",
    "BufferLengthMismatch",
    "InvalidPixelData",
    "UnsupportedDepth",
    "ImageFileError",
]
