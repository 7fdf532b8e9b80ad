"""Tests for the bmp_convert command line."""

import numpy as np
import pytest
from PIL import Image

import bmp_convert


def _png(path, size=(6, 4), colour=(200, 30, 30, 255)):
    Image.new("RGBA", size, colour).save(path)
    return path


def _bmp_info(path):
    with Image.open(path) as im:
        return im.format, im.size, np.array(im.convert("RGB"))


def test_single_file_with_preview(tmp_path, capsys):
    src = _png(tmp_path / "cat.png")
    assert bmp_convert.main([str(src), "--depth", "4", "--preview"]) == 0

    fmt, size, rgb = _bmp_info(tmp_path / "cat.bmp")
    assert fmt == "BMP"
    assert size == (6, 4)
    assert tuple(rgb[0, 0]) == (255, 0, 0)

    with Image.open(tmp_path / "cat_preview.png") as im:
        assert np.array(im)[0, 0].tolist() == [255, 0, 0, 255]

    out = capsys.readouterr().out
    assert "[run] Depth: 4" in out
    assert "Wrote cat.bmp | size=6x4 | depth=4 | palette_size=16" in out


def test_outdir_and_size_preset(tmp_path):
    src = _png(tmp_path / "page.png", size=(3, 3))
    outdir = tmp_path / "out"
    assert bmp_convert.main([str(src), "--outdir", str(outdir), "--size", "xteink"]) == 0
    fmt, size, _ = _bmp_info(outdir / "page.bmp")
    assert (fmt, size) == ("BMP", (480, 800))


def test_folder_mode_reports_failures(tmp_path, capsys):
    _png(tmp_path / "a.png")
    _png(tmp_path / "b_preview.png")
    (tmp_path / "broken.png").write_bytes(b"definitely not a png")
    (tmp_path / "notes.txt").write_text("ignored")

    assert bmp_convert.main([str(tmp_path), "--depth", "8"]) == 1
    assert (tmp_path / "a.bmp").is_file()
    assert not (tmp_path / "b_preview.bmp").exists()
    assert not (tmp_path / "broken.bmp").exists()
    assert "[error] broken.png" in capsys.readouterr().err


def test_folder_mode_parallel(tmp_path, capsys):
    for name in ("one.png", "two.png", "three.png"):
        _png(tmp_path / name)
    assert bmp_convert.main([str(tmp_path), "--jobs", "3"]) == 0
    capsys.readouterr()
    for stem in ("one", "two", "three"):
        assert (tmp_path / f"{stem}.bmp").is_file()


def test_empty_folder_warns(tmp_path, capsys):
    (tmp_path / "notes.txt").write_text("ignored")
    assert bmp_convert.main([str(tmp_path)]) == 0
    assert "[warn] no PNG or JPEG files" in capsys.readouterr().out


def test_missing_source(tmp_path, capsys):
    assert bmp_convert.main([str(tmp_path / "nope.png")]) == 2
    assert "not found" in capsys.readouterr().err


def test_pixel_limit_is_reported(tmp_path):
    src = _png(tmp_path / "big.png", size=(10, 10))
    assert bmp_convert.main([str(src), "--max-pixels", "99"]) == 1
    assert not (tmp_path / "big.bmp").exists()


@pytest.mark.parametrize(
    "argv",
    [
        ["x.png", "--aggressive"],
        ["x.png", "--aggressive", "--depth", "8"],
        ["x.png", "--depth", "16"],
        ["x.png", "--size", "huge"],
    ],
)
def test_bad_arguments_exit(argv):
    with pytest.raises(SystemExit) as info:
        bmp_convert.parse_cli_args(argv)
    assert info.value.code == 2


def test_parse_defaults():
    args = bmp_convert.parse_cli_args(["x.png"])
    assert args.depth == 24
    assert args.size is None
    assert args.resample == "bilinear"
    assert not args.aggressive and not args.preview
