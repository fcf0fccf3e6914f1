"""Point list serialization - JSON records using the editor's field names."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from meshcanvas import defaults
from meshcanvas.app import actions
from meshcanvas.errors import CanvasError
from meshcanvas.types import GradientStop, Point

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

# Python attribute -> record key
_FIELD_KEYS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "x": "x",
    "y": "y",
    "color": "color",
    "opacity": "opacity",
    "radius": "radius",
    "edge_type": "edgeType",
    "shape": "shape",
    "focus_x": "focusX",
    "focus_y": "focusY",
    "gradient_type": "gradientType",
    "gradient_stops": "gradientStops",
    "image": "image",
    "image_scale": "imageScale",
    "border_thickness": "borderThickness",
    "border_blur": "borderBlur",
    "width": "width",
    "height": "height",
}

_POINT_ID_RE = re.compile(r"^point-(\d+)$")


class PointsLoadError(CanvasError):
    """Error loading a point list."""
    pass


# ============================================================================
# Conversion helpers
# ============================================================================

def stop_to_dict(stop: GradientStop) -> dict[str, Any]:
    return {
        "id": stop.id,
        "color": stop.color,
        "position": stop.position,
        "alpha": stop.alpha,
    }


def dict_to_stop(data: dict[str, Any]) -> GradientStop:
    return GradientStop(
        id=str(data["id"]),
        color=data["color"],
        position=float(data["position"]),
        alpha=float(data.get("alpha", defaults.DEFAULT_STOP_ALPHA)),
    )


def point_to_dict(point: Point) -> dict[str, Any]:
    """Convert a Point to a JSON-serializable record."""
    record: dict[str, Any] = {}
    for attr, key in _FIELD_KEYS.items():
        value = getattr(point, attr)
        if attr == "gradient_stops":
            value = [stop_to_dict(s) for s in value]
        record[key] = value
    return record


def dict_to_point(data: dict[str, Any]) -> Point:
    """Reconstruct a Point from a record.

    Missing keys take their defaults; values go through the same clamping and
    validation as interactive edits.

    Raises:
        PointsLoadError: if ``id``, ``x`` or ``y`` is missing or malformed.
    """
    try:
        point = Point(id=str(data["id"]), x=float(data["x"]), y=float(data["y"]))
    except (KeyError, TypeError, ValueError) as e:
        raise PointsLoadError(f"Invalid point record {data!r}: {e}") from e

    updates: dict[str, Any] = {}
    for attr, key in _FIELD_KEYS.items():
        if attr in ("id", "x", "y") or key not in data:
            continue
        value = data[key]
        if attr == "gradient_stops":
            try:
                value = [dict_to_stop(s) for s in value]
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Point %s: ignoring malformed stops (%s)", point.id, e)
                continue
        updates[attr] = value

    for attr, value in actions.sanitize_updates(point, updates).items():
        setattr(point, attr, value)
    return point


def next_point_number(points: list[Point]) -> int:
    """Counter value that cannot collide with any loaded ``point-N`` id."""
    highest = 0
    for point in points:
        match = _POINT_ID_RE.match(point.id)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


# ============================================================================
# Documents
# ============================================================================

def points_to_json(points: list[Point], indent: int | None = 2) -> str:
    document = {
        "schema_version": SCHEMA_VERSION,
        "points": [point_to_dict(p) for p in points],
    }
    return json.dumps(document, indent=indent)


def points_from_json(text: str) -> list[Point]:
    """Parse a document (or a bare list of records) into points.

    Raises:
        PointsLoadError: on malformed JSON, duplicate ids or bad records.
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise PointsLoadError(f"Corrupt point list: {e}") from e

    if isinstance(document, dict):
        schema_version = document.get("schema_version", SCHEMA_VERSION)
        if schema_version != SCHEMA_VERSION:
            raise PointsLoadError(
                f"Schema version {schema_version} not supported. Expected {SCHEMA_VERSION}."
            )
        records = document.get("points", [])
    else:
        records = document
    if not isinstance(records, list):
        raise PointsLoadError("Point list must be a JSON array")

    points = [dict_to_point(record) for record in records]
    seen: set[str] = set()
    for point in points:
        if point.id in seen:
            raise PointsLoadError(f"Duplicate point id {point.id!r}")
        seen.add(point.id)
    return points


def save_points(points: list[Point], filepath: str | Path) -> None:
    Path(filepath).write_text(points_to_json(points), encoding="utf-8")


def load_points(filepath: str | Path) -> list[Point]:
    """Load a point list from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        PointsLoadError: If the content is invalid
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Point list not found: {filepath}")
    return points_from_json(filepath.read_text(encoding="utf-8"))
