"""
bmp_codec package.

Purpose:
  In-memory RGBA -> Windows BMP encoder at 24-bit, 8-bit and 4-bit depths,
  with matching quantised previews. See bmp_convert.py for the CLI.

Public API:
  encode_truecolor : 24-bit BGR bytes.
  encode_8bit      : 256-colour palettised bytes (6x7x6 anchors + image colours).
  encode_4bit      : 16-colour palettised bytes, optional Floyd-Steinberg dither.
  encode           : depth dispatch returning an EncodedImage.
  preview_*        : quantised RGBA PixelBuffer using the same palettes.
  build_palette    : (Palette, ColorMatcher) for depth 8 or 4.
  dither           : 4-level error diffusion on a copy of the input.
  core_types       : PixelBuffer, Palette, EncodedImage and aliases.
  errors           : CodecError, InvalidDimensions, BufferLengthMismatch,
                     InvalidPixelData, UnsupportedDepth.

Quick start:
  from bmp_codec import PixelBuffer, encode_4bit
  data = encode_4bit(rgba_bytes, width, height, aggressive=True)
"""

__version__ = "0.1.0"

from . import constants
from . import core_types
from . import errors
from . import matcher
from . import palette_data
from . import bmp_writer

from .core_types import EncodedImage, Palette, PixelBuffer  # noqa: E402,F401
from .errors import (  # noqa: E402,F401
    BufferLengthMismatch,
    CodecError,
    ImageFileError,
    InvalidDimensions,
    InvalidPixelData,
    UnsupportedDepth,
)
from .matcher import ColorMatcher  # noqa: E402,F401
from .palette_data import build_palette  # noqa: E402,F401
from .dither import dither  # noqa: E402,F401
from .encoder import encode, encode_4bit, encode_8bit, encode_truecolor  # noqa: E402,F401
from .preview import (  # noqa: E402,F401
    preview,
    preview_4bit,
    preview_8bit,
    preview_truecolor,
)

__all__ = [
    "__version__",
    "constants",
    "core_types",
    "errors",
    "matcher",
    "palette_data",
    "bmp_writer",
    "EncodedImage",
    "Palette",
    "PixelBuffer",
    "CodecError",
    "InvalidDimensions",
    "BufferLengthMismatch",
    "InvalidPixelData",
    "UnsupportedDepth",
    "ImageFileError",
    "ColorMatcher",
    "build_palette",
    "dither",
    "encode",
    "encode_truecolor",
    "encode_8bit",
    "encode_4bit",
    "preview",
    "preview_truecolor",
    "preview_8bit",
    "preview_4bit",
]
