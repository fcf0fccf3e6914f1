"""Tests for the meshcanvas-render command line entry point."""

import logging

from PIL import Image

from meshcanvas.cli import build_parser, main
from meshcanvas.serialization import save_points
from meshcanvas.types import Point


def _write_points(tmp_path, *points):
    path = tmp_path / "points.json"
    save_points(list(points), path)
    return path


def test_parser_defaults():
    args = build_parser().parse_args(["in.json", "out.png"])
    assert (args.width, args.height) == (1200, 800)
    assert args.background == "#333333"
    assert args.image == []
    assert not args.no_grid


def test_render_to_png(tmp_path):
    points = _write_points(tmp_path, Point(id="point-1", x=32.0, y=24.0, radius=20.0, color="#ffffff"))
    out = tmp_path / "out.png"
    code = main([str(points), str(out), "--width", "64", "--height", "48",
                 "--background", "#000000", "--no-grid", "--no-crosshair"])
    assert code == 0
    img = Image.open(out)
    assert img.size == (64, 48)
    assert img.getpixel((32, 24)) == (255, 255, 255)
    assert img.getpixel((0, 0)) == (0, 0, 0)


def test_image_reference(tmp_path):
    texture = tmp_path / "tex.png"
    Image.new("RGB", (4, 4), (0, 0, 255)).save(texture)
    points = _write_points(tmp_path, Point(id="point-1", x=32.0, y=24.0, radius=20.0, image="tex"))
    out = tmp_path / "out.png"
    code = main([str(points), str(out), "--width", "64", "--height", "48",
                 "--no-grid", "--no-crosshair", "--image", f"tex={texture}"])
    assert code == 0
    assert Image.open(out).getpixel((32, 24)) == (0, 0, 255)


def test_missing_image_warns(tmp_path, caplog):
    points = _write_points(tmp_path, Point(id="point-1", x=10.0, y=10.0, image="ghost"))
    with caplog.at_level(logging.WARNING, logger="meshcanvas.cli"):
        code = main([str(points), str(tmp_path / "out.png"), "--width", "32", "--height", "32"])
    assert code == 0
    assert "unavailable" in caplog.text


def test_missing_points_file(tmp_path):
    assert main([str(tmp_path / "nope.json"), str(tmp_path / "out.png")]) == 1
    assert not (tmp_path / "out.png").exists()


def test_corrupt_points_file(tmp_path):
    path = tmp_path / "points.json"
    path.write_text("{broken", encoding="utf-8")
    assert main([str(path), str(tmp_path / "out.png")]) == 1


def test_bad_image_argument(tmp_path):
    points = _write_points(tmp_path)
    assert main([str(points), str(tmp_path / "out.png"), "--image", "no-equals-sign"]) == 1
