"""Core data types for meshcanvas - framework-agnostic."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Optional

from meshcanvas import defaults


@dataclass
class GradientStop:
    """One sample of a 1-D color ramp.

    Attributes:
        id: Identifier unique within its stop list
        color: Hex color
        position: Ramp position 0..100 (not required to be unique)
        alpha: Stop alpha 0..100
    """
    id: str
    color: str
    position: float
    alpha: float = defaults.DEFAULT_STOP_ALPHA


def default_stops() -> list[GradientStop]:
    """Two-stop ramp every new point starts with."""
    return [
        GradientStop(id=f"stop-{i + 1}", color=color, position=position)
        for i, (color, position) in enumerate(defaults.DEFAULT_STOPS)
    ]


@dataclass
class Point:
    """A freeform gradient node.

    Attributes:
        id: Unique stable identifier, never reused
        x, y: Center in canvas space (independent of pan/zoom)
        name: Optional display label (None = positional "Point N")
        color: Primary hex color, used when gradient_type is "solid"
        opacity: Overall alpha multiplier 0..1
        radius: Influence radius in canvas units (>= MIN_POINT_RADIUS)
        edge_type: "soft" or "hard" falloff
        shape: "blob", "circle", "square" or "rectangle"
        focus_x, focus_y: Focus handle offset relative to the center
        gradient_type: "solid", "linear" or "radial"
        gradient_stops: Ramp used when gradient_type is not "solid"
        image: Opaque image reference, resolved through the image cache
        image_scale: Image zoom relative to a cover fit of the footprint
        border_thickness: Gradient border ring width around an image
        border_blur: Blur sigma applied to the border ring only
        width, height: Explicit box for square/rectangle (None = from radius)
    """
    id: str
    x: float
    y: float
    name: Optional[str] = None
    color: str = defaults.DEFAULT_POINT_COLOR
    opacity: float = defaults.DEFAULT_POINT_OPACITY
    radius: float = defaults.DEFAULT_POINT_RADIUS
    edge_type: str = defaults.DEFAULT_EDGE_TYPE
    shape: str = defaults.DEFAULT_SHAPE
    focus_x: float = 0.0
    focus_y: float = 0.0
    gradient_type: str = defaults.DEFAULT_GRADIENT_TYPE
    gradient_stops: list[GradientStop] = field(default_factory=default_stops)
    image: Optional[str] = None
    image_scale: float = defaults.DEFAULT_IMAGE_SCALE
    border_thickness: float = defaults.DEFAULT_BORDER_THICKNESS
    border_blur: float = defaults.DEFAULT_BORDER_BLUR
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def center(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def focus(self) -> tuple[float, float]:
        """Focus handle position in canvas space."""
        return (self.x + self.focus_x, self.y + self.focus_y)

    @property
    def radius_handle(self) -> tuple[float, float]:
        """Radius handle position: on the +X axis of the influence circle."""
        return (self.x + self.radius, self.y)


POINT_FIELDS: frozenset[str] = frozenset(f.name for f in fields(Point))


def clone_point(point: Point, new_id: Optional[str] = None) -> Point:
    """Deep-copy a point.

    Args:
        point: Point to copy
        new_id: If given, the copy gets this id instead of the original's
    """
    clone = copy.deepcopy(point)
    if new_id is not None:
        clone.id = new_id
    return clone


def clone_points(points: list[Point]) -> list[Point]:
    """Deep-copy a point list (snapshot for history and observers)."""
    return copy.deepcopy(points)


def display_name(point: Point, index: int) -> str:
    """Label shown for a point: its name, or "Point N" by position."""
    return point.name if point.name else f"Point {index + 1}"
