#!/usr/bin/env python3
"""
bmp_convert.py
Convert PNG/JPEG images to uncompressed Windows BMP at 24, 8 or 4 bits per pixel.

Usage:
  python bmp_convert.py INPUT --depth [24|8|4] --aggressive --size [original|xteink|WxH]
                        --resample [nearest|bilinear|bicubic|lanczos] --preview --debug

Depths:
  24 : truecolor BGR, alpha dropped.
  8  : 256 colours, fixed 6x7x6 cube plus the image's most frequent extra colours.
  4  : 16 most frequent colours. --aggressive adds Floyd-Steinberg dithering first.

Input:
  PNG or JPEG (max 50 MB), single file or a folder of them.
  Pixels with alpha < 128 become palette index 0 at 8 and 4 bits; 24-bit
  keeps their RGB and drops alpha.

Output:
  <stem>.bmp next to INPUT (or in --outdir). --preview also writes <stem>_preview.png
  showing the quantised result.
"""

from __future__ import annotations

import argparse
import io
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import redirect_stdout
from pathlib import Path
from typing import List, Optional, Tuple

from bmp_codec.bmp_writer import read_bmp_header
from bmp_codec.constants import (
    ACCEPTED_SUFFIXES,
    ALPHA_THRESHOLD,
    MAX_FILE_BYTES,
    MAX_PIXELS,
    PREVIEW_SUFFIX,
    SUPPORTED_DEPTHS,
)
from bmp_codec.core_types import PixelBuffer
from bmp_codec.dither import dither
from bmp_codec.encoder import encode
from bmp_codec.errors import CodecError
from bmp_codec.image_io import (
    bmp_output_path,
    load_pixels,
    parse_target_size,
    pillow_resample_from_name,
    resize_pixels,
    save_preview_png,
    write_bmp_file,
)
from bmp_codec.palette_data import build_palette
from bmp_codec.preview import preview
from bmp_codec.utils import (
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_bytes_compact,
    format_seconds_compact,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    palette_usage_report,
    print_banner,
    print_config_line,
    warn,
)

# CLI args


def _size_arg(text: str) -> Optional[Tuple[int, int]]:
    try:
        return parse_target_size(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        src: Path to image or folder
        outdir: optional Path for outputs
        depth: 24 | 8 | 4
        aggressive: bool, dither before 4-bit quantisation
        size: None (original) or (w, h)
        resample: resize filter name
        preview: bool, also write a quantised PNG
        max_pixels: int pixel-count ceiling
        jobs: parallel file workers
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="bmp_convert",
        description="Convert PNG/JPEG image(s) to uncompressed BMP.",
    )
    parser.add_argument("src", type=Path, help="Input image or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "--depth",
        type=int,
        choices=list(SUPPORTED_DEPTHS),
        default=24,
        help="Bits per pixel.",
    )
    parser.add_argument(
        "--aggressive",
        action="store_true",
        help="Floyd-Steinberg dithering before 4-bit quantisation.",
    )
    parser.add_argument(
        "--size",
        type=_size_arg,
        default=None,
        help='Target size: "original" (default), "xteink" (480x800) or WxH.',
    )
    parser.add_argument(
        "--resample",
        choices=["nearest", "bilinear", "bicubic", "lanczos"],
        default="bilinear",
        help="Scaling filter used with --size.",
    )
    parser.add_argument(
        "--preview", action="store_true", help="Also write <stem>_preview.png"
    )
    parser.add_argument(
        "--max-pixels",
        type=int,
        default=MAX_PIXELS,
        help="Reject images whose width*height exceeds this.",
    )
    parser.add_argument(
        "--jobs", type=int, default=1, help="Files processed in parallel"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    args = parser.parse_args(argv)
    if args.aggressive and args.depth != 4:
        parser.error("--aggressive only applies to --depth 4")
    return args


# Per-file processing


def _debug_palette_stats(pixels: PixelBuffer, depth: int, aggressive: bool) -> None:
    """Print the most used palette slots for palettised depths."""
    if depth == 24:
        return
    source = dither(pixels) if aggressive else pixels
    palette, matcher = build_palette(source, depth)
    indices = matcher.map_indices(source)
    report = palette_usage_report(indices, palette, source)
    debug_log(
        key_value_pairs_to_string(
            [("Palette", len(palette)), ("Slots used", len(report))]
        )
    )
    for idx, hex_code, count in report[:10]:
        debug_log(f"  -> [{idx:3d}] {hex_code}: pixels={count:,}")


def _process_single_image(src_path: Path, args: argparse.Namespace) -> Path:
    """Load -> optional resize -> encode -> save -> report."""
    t_start = time.perf_counter()
    print_banner(src_path.name)

    pixels = load_pixels(src_path, max_bytes=MAX_FILE_BYTES, max_pixels=args.max_pixels)
    width0, height0 = pixels.width, pixels.height
    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{width0}x{height0}"),
                    ("Transparent", int((pixels.alpha < ALPHA_THRESHOLD).sum())),
                ]
            )
        )

    t_resize0 = time.perf_counter()
    pixels = resize_pixels(
        pixels, args.size, pillow_resample_from_name(args.resample)
    )
    t_resize1 = time.perf_counter()
    if args.debug and (pixels.width, pixels.height) != (width0, height0):
        debug_log(f"Resized {width0}x{height0} -> {pixels.width}x{pixels.height}")

    image = encode(
        pixels,
        depth=args.depth,
        aggressive=args.aggressive,
        max_pixels=args.max_pixels,
    )
    t_encoded = time.perf_counter()

    out_path = write_bmp_file(bmp_output_path(src_path, args.outdir), image)
    if args.preview:
        shown = preview(pixels, args.depth, args.aggressive, max_pixels=args.max_pixels)
        preview_path = out_path.with_name(f"{src_path.stem}{PREVIEW_SUFFIX}")
        save_preview_png(preview_path, shown)
        log(f"Preview {preview_path.name}")
    t_saved = time.perf_counter()

    header = read_bmp_header(image.data)
    log(
        f"Wrote {out_path.name} | size={header.width}x{-header.height} "
        f"| depth={header.bits_per_pixel} | palette_size={header.colours_used} "
        f"| {format_bytes_compact(len(image))}"
    )

    if args.debug:
        _debug_palette_stats(pixels, args.depth, args.aggressive)
        debug_log(
            f"Total {format_total_duration_compact(t_saved - t_start)}  "
            f"(load={format_seconds_compact(t_resize0 - t_start)}, "
            f"resize={format_seconds_compact(t_resize1 - t_resize0)}, "
            f"encode={format_seconds_compact(t_encoded - t_resize1)}, "
            f"save={format_seconds_compact(t_saved - t_encoded)})"
        )
    else:
        log(f"Total time {format_total_duration_compact(t_saved - t_start)}")
    return out_path


def _process_one_live(path: Path, args: argparse.Namespace) -> bool:
    """Process one file, streaming logs. Returns False on a reported failure."""
    try:
        _process_single_image(path, args)
    except CodecError as exc:
        error(str(exc))
        return False
    return True


def _process_one_captured(path: Path, args: argparse.Namespace) -> Tuple[str, bool]:
    """
    Process a single file with stdout capture.

    Useful for concurrent execution where output should be printed in order.
    """
    buf = io.StringIO()
    with redirect_stdout(buf):
        ok = _process_one_live(path, args)
    return buf.getvalue(), ok


def _collect_inputs(folder: Path) -> List[Path]:
    files = [
        p
        for p in folder.iterdir()
        if p.is_file()
        and p.suffix.lower() in ACCEPTED_SUFFIXES
        and not p.stem.endswith(PREVIEW_SUFFIX[: -len(".png")])
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Entry point


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Handles single file or folder. In folder mode supports --jobs parallelism
    while preserving readable output ordering. Returns the process exit code.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    size_text = "original" if args.size is None else f"{args.size[0]}x{args.size[1]}"
    print_config_line(
        "run",
        [
            ("Depth", args.depth),
            ("Aggressive", args.aggressive),
            ("Size", size_text),
            ("Jobs", args.jobs),
        ],
        debug=False,
    )

    src = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2

    if not src.is_dir():
        return 0 if _process_one_live(src, args) else 1

    files = _collect_inputs(src)
    if not files:
        warn(f"no PNG or JPEG files in {src}")
        return 0
    if args.debug:
        debug_log(key_value_pairs_to_string([("Images", len(files)), ("Jobs", args.jobs)]))

    if args.jobs <= 1:
        results = [_process_one_live(p, args) for p in files]
    else:
        # Overlapping redirect_stdout calls can restore a worker buffer.
        stdout = sys.stdout
        try:
            with ThreadPoolExecutor(max_workers=args.jobs) as ex:
                futures = [ex.submit(_process_one_captured, p, args) for p in files]
                blocks = [f.result() for f in futures]
        finally:
            sys.stdout = stdout
        print("".join(text for text, _ok in blocks), end="", flush=True)
        results = [ok for _text, ok in blocks]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
