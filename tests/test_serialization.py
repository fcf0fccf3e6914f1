"""Tests for point list serialization (save/load)."""

import json
import tempfile
from pathlib import Path

import pytest

from meshcanvas.serialization import (
    SCHEMA_VERSION,
    PointsLoadError,
    load_points,
    next_point_number,
    point_to_dict,
    points_from_json,
    points_to_json,
    save_points,
)
from meshcanvas.types import GradientStop, Point


def test_roundtrip_empty_list():
    """Test save/load with no points."""
    with tempfile.TemporaryDirectory() as tmpdir:
        filepath = Path(tmpdir) / "points.json"
        save_points([], filepath)

        assert filepath.exists()
        assert load_points(filepath) == []


def test_roundtrip_full_point():
    """Every attribute survives save/load."""
    point = Point(
        id="point-7",
        x=12.5,
        y=-40.0,
        name="Glow",
        color="#ff8800",
        opacity=0.6,
        radius=90.0,
        edge_type="hard",
        shape="rectangle",
        focus_x=15.0,
        focus_y=-5.0,
        gradient_type="radial",
        gradient_stops=[
            GradientStop(id="stop-1", color="#000000", position=0.0, alpha=25.0),
            GradientStop(id="stop-3", color="#ffffff", position=60.0),
            GradientStop(id="stop-2", color="#00ff00", position=100.0),
        ],
        image="logo",
        image_scale=1.5,
        border_thickness=4.0,
        border_blur=2.0,
        width=200.0,
        height=80.0,
    )

    with tempfile.TemporaryDirectory() as tmpdir:
        filepath = Path(tmpdir) / "points.json"
        save_points([point], filepath)
        loaded = load_points(filepath)

    assert loaded == [point]
    # Stop list keeps insertion order
    assert [s.id for s in loaded[0].gradient_stops] == ["stop-1", "stop-3", "stop-2"]


def test_record_uses_editor_field_names():
    record = point_to_dict(Point(id="point-1", x=0.0, y=0.0))
    for key in ("edgeType", "focusX", "focusY", "gradientType", "gradientStops",
                "imageScale", "borderThickness", "borderBlur"):
        assert key in record
    assert record["gradientStops"][0] == {"id": "stop-1", "color": "#3b82f6", "position": 0.0, "alpha": 100.0}


def test_document_has_schema_version():
    document = json.loads(points_to_json([Point(id="point-1", x=1.0, y=2.0)]))
    assert document["schema_version"] == SCHEMA_VERSION
    assert len(document["points"]) == 1


def test_bare_list_accepted():
    points = points_from_json('[{"id": "a", "x": 1, "y": 2}]')
    assert points[0].id == "a"
    assert (points[0].x, points[0].y) == (1.0, 2.0)
    assert points[0].radius == 150.0


def test_missing_fields_take_defaults():
    point = points_from_json('[{"id": "a", "x": 0, "y": 0, "color": "#ABCDEF"}]')[0]
    assert point.color == "#abcdef"
    assert point.gradient_type == "solid"
    assert len(point.gradient_stops) == 2


def test_values_clamped_on_load():
    text = json.dumps([{
        "id": "a", "x": 0, "y": 0,
        "radius": 3, "opacity": 4, "edgeType": "fuzzy", "color": "red",
    }])
    point = points_from_json(text)[0]
    assert point.radius == 20.0
    assert point.opacity == 1.0
    assert point.edge_type == "soft"
    assert point.color == "#3b82f6"


def test_malformed_stops_keep_defaults():
    text = json.dumps([{"id": "a", "x": 0, "y": 0, "gradientStops": [{"color": "#000000"}]}])
    point = points_from_json(text)[0]
    assert [s.id for s in point.gradient_stops] == ["stop-1", "stop-2"]


def test_single_stop_keeps_defaults():
    text = json.dumps([{
        "id": "a", "x": 0, "y": 0,
        "gradientStops": [{"id": "stop-1", "color": "#000000", "position": 0}],
    }])
    assert len(points_from_json(text)[0].gradient_stops) == 2


@pytest.mark.parametrize("text", [
    "not json",
    '{"schema_version": "9.9", "points": []}',
    '{"points": {"id": "a"}}',
    '[{"x": 1, "y": 2}]',
    '[{"id": "a", "x": "left", "y": 2}]',
    '[{"id": "a", "x": 1, "y": 2}, {"id": "a", "x": 3, "y": 4}]',
])
def test_invalid_documents(text):
    with pytest.raises(PointsLoadError):
        points_from_json(text)


def test_load_missing_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(FileNotFoundError):
            load_points(Path(tmpdir) / "nope.json")


def test_next_point_number():
    points = [Point(id="point-3", x=0, y=0), Point(id="custom", x=0, y=0), Point(id="point-11", x=0, y=0)]
    assert next_point_number(points) == 12
    assert next_point_number([]) == 1
