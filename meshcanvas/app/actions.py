"""High-level mutations on AppState reused by the store, controller and CLI.

Every function validates its input the same way: out-of-range numbers are
clamped, invalid colors and enum values keep the previous value, unknown
point or stop ids are no-ops. Only unknown attribute names raise.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Optional

from meshcanvas import defaults
from meshcanvas import gradient_stops as stops_model
from meshcanvas.app.core import AppState
from meshcanvas.colorspace import is_valid_hex, normalize_hex
from meshcanvas.errors import DegenerateGradient, OutOfRangeValue
from meshcanvas.types import POINT_FIELDS, GradientStop, Point, clone_point, display_name

logger = logging.getLogger(__name__)

_ENUM_FIELDS: dict[str, tuple[str, ...]] = {
    "edge_type": defaults.EDGE_TYPES,
    "shape": defaults.SHAPES,
    "gradient_type": defaults.GRADIENT_TYPES,
}

# field -> (min, max); None means unbounded on that side
_NUMERIC_FIELDS: dict[str, tuple[Optional[float], Optional[float]]] = {
    "x": (None, None),
    "y": (None, None),
    "focus_x": (None, None),
    "focus_y": (None, None),
    "opacity": (0.0, 1.0),
    "radius": (defaults.MIN_POINT_RADIUS, None),
    "image_scale": (defaults.MIN_IMAGE_SCALE, None),
    "border_thickness": (0.0, None),
    "border_blur": (0.0, None),
}

_OPTIONAL_SIZE_FIELDS = ("width", "height")


def _finite(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise OutOfRangeValue(f"{name}={value!r} is not a number") from e
    if not math.isfinite(number):
        raise OutOfRangeValue(f"{name}={value!r} is not finite")
    return number


def clamp(value: float, lo: Optional[float], hi: Optional[float]) -> float:
    if lo is not None:
        value = max(lo, value)
    if hi is not None:
        value = min(hi, value)
    return value


def _sanitize_stops(value: Any) -> list[GradientStop]:
    """Validate a full stop list. Raises DegenerateGradient/ValueError when unusable."""
    stops = list(value)
    if len(stops) < defaults.MIN_GRADIENT_STOPS:
        raise DegenerateGradient(f"gradient needs at least {defaults.MIN_GRADIENT_STOPS} stops")
    cleaned = []
    for stop in stops:
        if not is_valid_hex(stop.color):
            raise ValueError(f"invalid stop color {stop.color!r}")
        cleaned.append(replace(
            stop,
            color=normalize_hex(stop.color),
            position=stops_model.clamp_position(_finite(stop.position, "position")),
            alpha=stops_model.clamp_alpha(_finite(stop.alpha, "alpha")),
        ))
    return cleaned


def sanitize_updates(point: Point, updates: dict[str, Any]) -> dict[str, Any]:
    """Clamp/validate a partial attribute dict against a point.

    Invalid entries are dropped (the previous value is retained).

    Raises:
        ValueError: for unknown attribute names or an attempt to change ``id``.
    """
    clean: dict[str, Any] = {}
    for name, value in updates.items():
        if name == "id":
            raise ValueError("Point id cannot be changed")
        if name not in POINT_FIELDS:
            raise ValueError(f"Unknown point attribute {name!r}")

        try:
            if name in _NUMERIC_FIELDS:
                lo, hi = _NUMERIC_FIELDS[name]
                clean[name] = clamp(_finite(value, name), lo, hi)
            elif name in _OPTIONAL_SIZE_FIELDS:
                clean[name] = None if value is None else max(_finite(value, name), 1.0)
            elif name == "color":
                if not is_valid_hex(value):
                    logger.debug("Ignoring invalid color %r for %s", value, point.id)
                    continue
                clean[name] = normalize_hex(value)
            elif name in _ENUM_FIELDS:
                if value not in _ENUM_FIELDS[name]:
                    logger.debug("Ignoring invalid %s %r for %s", name, value, point.id)
                    continue
                clean[name] = value
            elif name == "gradient_stops":
                clean[name] = _sanitize_stops(value)
            else:
                # name, image: optional strings
                clean[name] = None if value is None else str(value)
        except (OutOfRangeValue, DegenerateGradient, ValueError, AttributeError) as e:
            logger.warning("Rejected %s update for %s: %s", name, point.id, e)
    return clean


# ---------------------------------------------------------------------------
# Point lifecycle
# ---------------------------------------------------------------------------

def add_point(state: AppState, x: float, y: float, **attrs: Any) -> Point:
    """Create a point with default attributes at canvas coordinates and select it."""
    point = Point(id=state.allocate_point_id(), x=float(x), y=float(y))
    if attrs:
        for name, value in sanitize_updates(point, attrs).items():
            setattr(point, name, value)
    state.points.append(point)
    state.selected_id = point.id
    state.render_dirty = True
    return point


def update_point(state: AppState, point_id: str, **updates: Any) -> bool:
    """Shallow-merge validated attributes into a point. Returns True if anything changed."""
    point = state.find_point(point_id)
    if point is None:
        logger.debug("update_point: no point %s", point_id)
        return False

    changed = False
    for name, value in sanitize_updates(point, updates).items():
        if getattr(point, name) != value:
            setattr(point, name, value)
            changed = True
    if changed:
        state.render_dirty = True
    return changed


def duplicate_point(state: AppState, point_id: str) -> Optional[Point]:
    """Clone a point with a new id, a name suffix and a +20,+20 offset; select the clone."""
    idx = state.index_of(point_id)
    if idx < 0:
        logger.debug("duplicate_point: no point %s", point_id)
        return None
    source = state.points[idx]
    clone = clone_point(source, new_id=state.allocate_point_id())
    clone.name = f"{display_name(source, idx)} copy"
    clone.x += defaults.DUPLICATE_OFFSET
    clone.y += defaults.DUPLICATE_OFFSET
    state.points.append(clone)
    state.selected_id = clone.id
    state.render_dirty = True
    return clone


def remove_point(state: AppState, point_id: str) -> bool:
    """Remove a point; clears the selection if it was selected."""
    idx = state.index_of(point_id)
    if idx < 0:
        logger.debug("remove_point: no point %s", point_id)
        return False
    del state.points[idx]
    if state.selected_id == point_id:
        state.clear_selection()
    state.render_dirty = True
    return True


def move_point(state: AppState, point_id: str, x: float, y: float) -> bool:
    """Set a point's center."""
    return update_point(state, point_id, x=x, y=y)


def set_radius(state: AppState, point_id: str, radius: float) -> bool:
    """Set radius (clamped to the minimum). Square points with an image keep width/height at 2r."""
    point = state.find_point(point_id)
    if point is None:
        return False
    updates: dict[str, Any] = {"radius": radius}
    if point.image is not None and point.shape == "square":
        side = 2.0 * max(float(radius), defaults.MIN_POINT_RADIUS)
        updates["width"] = side
        updates["height"] = side
    return update_point(state, point_id, **updates)


def replace_points(state: AppState, points: list[Point]) -> None:
    """Swap in a whole point list (undo/redo). Drops a selection that no longer exists."""
    state.points = points
    if state.find_point(state.selected_id) is None:
        state.clear_selection()
    state.render_dirty = True


# ---------------------------------------------------------------------------
# Gradient stops on a point
# ---------------------------------------------------------------------------

def _set_stops(state: AppState, point_id: str, new_stops: list[GradientStop]) -> bool:
    point = state.find_point(point_id)
    if point is None:
        return False
    if new_stops == point.gradient_stops:
        return False
    point.gradient_stops = new_stops
    state.render_dirty = True
    return True


def insert_point_stop(state: AppState, point_id: str, position: float) -> Optional[GradientStop]:
    """Insert a ramp-sampled stop at ``position`` on a point's gradient."""
    point = state.find_point(point_id)
    if point is None:
        logger.debug("insert_point_stop: no point %s", point_id)
        return None
    new_stops, stop = stops_model.insert_at(point.gradient_stops, position)
    _set_stops(state, point_id, new_stops)
    return stop


def add_point_stop(state: AppState, point_id: str) -> Optional[GradientStop]:
    """Append a stop with the fixed default color and position."""
    point = state.find_point(point_id)
    if point is None:
        logger.debug("add_point_stop: no point %s", point_id)
        return None
    new_stops, stop = stops_model.add_stop(point.gradient_stops)
    _set_stops(state, point_id, new_stops)
    return stop


def move_point_stop(state: AppState, point_id: str, stop_id: str, position: float) -> bool:
    point = state.find_point(point_id)
    if point is None:
        return False
    return _set_stops(state, point_id, stops_model.move_stop(point.gradient_stops, stop_id, position))


def remove_point_stop(state: AppState, point_id: str, stop_id: str) -> bool:
    """Remove a stop; refused when the point would drop below two stops."""
    point = state.find_point(point_id)
    if point is None:
        return False
    try:
        new_stops = stops_model.remove_stop(point.gradient_stops, stop_id)
    except DegenerateGradient as e:
        logger.info("Stop removal refused: %s", e)
        return False
    return _set_stops(state, point_id, new_stops)


def set_point_stop_color(state: AppState, point_id: str, stop_id: str, color: str) -> bool:
    point = state.find_point(point_id)
    if point is None:
        return False
    return _set_stops(state, point_id, stops_model.set_stop_color(point.gradient_stops, stop_id, color))


def set_point_stop_alpha(state: AppState, point_id: str, stop_id: str, alpha: float) -> bool:
    point = state.find_point(point_id)
    if point is None:
        return False
    try:
        alpha = _finite(alpha, "alpha")
    except OutOfRangeValue as e:
        logger.warning("Rejected stop alpha: %s", e)
        return False
    return _set_stops(state, point_id, stops_model.set_stop_alpha(point.gradient_stops, stop_id, alpha))


# ---------------------------------------------------------------------------
# View
# ---------------------------------------------------------------------------

def set_pan(state: AppState, pan_x: float, pan_y: float) -> None:
    if (state.view.pan_x, state.view.pan_y) != (pan_x, pan_y):
        state.view.pan_x = float(pan_x)
        state.view.pan_y = float(pan_y)
        state.render_dirty = True


def pan_by(state: AppState, dx: float, dy: float) -> None:
    set_pan(state, state.view.pan_x + dx, state.view.pan_y + dy)


def set_zoom(state: AppState, zoom: float) -> None:
    """Update zoom, clamped to [MIN_ZOOM, MAX_ZOOM]."""
    zoom = float(zoom)
    if not math.isfinite(zoom):
        return
    zoom = round(clamp(zoom, defaults.MIN_ZOOM, defaults.MAX_ZOOM), 4)
    if not math.isclose(state.view.zoom, zoom):
        state.view.zoom = zoom
        state.render_dirty = True


def zoom_in(state: AppState) -> None:
    set_zoom(state, state.view.zoom + defaults.ZOOM_STEP)


def zoom_out(state: AppState) -> None:
    set_zoom(state, state.view.zoom - defaults.ZOOM_STEP)


# ---------------------------------------------------------------------------
# Display and labels
# ---------------------------------------------------------------------------

def set_show_grid(state: AppState, enabled: bool) -> None:
    if state.display.show_grid != enabled:
        state.display.show_grid = bool(enabled)
        state.render_dirty = True


def set_show_overlays(state: AppState, enabled: bool) -> None:
    if state.display.show_overlays != enabled:
        state.display.show_overlays = bool(enabled)
        state.render_dirty = True


def set_grid_spacing(state: AppState, spacing: float) -> None:
    spacing = max(float(spacing), defaults.MIN_GRID_SPACING)
    if not math.isclose(state.display.grid_spacing, spacing):
        state.display.grid_spacing = spacing
        state.render_dirty = True


def set_grid_opacity(state: AppState, opacity: float) -> None:
    opacity = clamp(float(opacity), 0.0, 1.0)
    if not math.isclose(state.display.grid_opacity, opacity):
        state.display.grid_opacity = opacity
        state.render_dirty = True


def set_background_color(state: AppState, color: str) -> bool:
    """Change background color. Invalid hex keeps the previous color."""
    if not is_valid_hex(color):
        logger.debug("Ignoring invalid background color %r", color)
        return False
    color = normalize_hex(color)
    if state.display.background_color != color:
        state.display.background_color = color
        state.render_dirty = True
    return True


def set_canvas_size(state: AppState, width: int, height: int) -> None:
    """Resize the drawing surface."""
    size = (max(int(width), 1), max(int(height), 1))
    if state.display.canvas_size != size:
        state.display.canvas_size = size
        state.render_dirty = True


def set_label(state: AppState, side: str, text: str) -> bool:
    """Set one of the four label texts ("top", "right", "bottom", "left")."""
    if side not in ("top", "right", "bottom", "left"):
        logger.debug("Ignoring unknown label side %r", side)
        return False
    if getattr(state.labels, side) != text:
        setattr(state.labels, side, text)
        state.render_dirty = True
    return True


def set_label_style(
    state: AppState,
    font_family: Optional[str] = None,
    font_size: Optional[int] = None,
    color: Optional[str] = None,
) -> None:
    """Update label font and color; invalid colors keep the previous value."""
    labels = state.labels
    if font_family is not None and font_family != labels.font_family:
        labels.font_family = font_family
        state.render_dirty = True
    if font_size is not None:
        size = max(int(font_size), 1)
        if size != labels.font_size:
            labels.font_size = size
            state.render_dirty = True
    if color is not None:
        if is_valid_hex(color):
            color = normalize_hex(color)
            if color != labels.color:
                labels.color = color
                state.render_dirty = True
        else:
            logger.debug("Ignoring invalid label color %r", color)
