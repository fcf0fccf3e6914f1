"""Hit detection for points and their handles.

All distances are in canvas units, so callers convert pointer positions with
``ViewSettings.screen_to_canvas`` first.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional

from meshcanvas import defaults
from meshcanvas.shapes import shape_for
from meshcanvas.types import Point

logger = logging.getLogger(__name__)


class HitKind(enum.Enum):
    FOCUS_HANDLE = "focus_handle"
    RADIUS_HANDLE = "radius_handle"
    BODY = "body"
    EMPTY = "empty"


@dataclass(frozen=True)
class HitResult:
    kind: HitKind
    point_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.kind is HitKind.EMPTY


EMPTY_HIT = HitResult(HitKind.EMPTY)


def _near(x: float, y: float, target: tuple[float, float], radius: float) -> bool:
    return math.hypot(x - target[0], y - target[1]) <= radius


def point_body_hit(point: Point, x: float, y: float) -> bool:
    """Center within CENTER_HIT_RADIUS, or boundary within BOUNDARY_HIT_TOLERANCE."""
    dx = x - point.x
    dy = y - point.y
    if math.hypot(dx, dy) <= defaults.CENTER_HIT_RADIUS:
        return True
    shape = shape_for(point)
    return float(shape.boundary_distance(dx, dy)) <= defaults.BOUNDARY_HIT_TOLERANCE


def find_hit(points: list[Point], selected_id: Optional[str], x: float, y: float) -> HitResult:
    """Classify a canvas position.

    Priority: focus handle of the selected point, then its radius handle,
    then any point body (topmost, i.e. last in store order, first), then
    empty canvas. Never raises; malformed points are skipped.
    """
    if not (math.isfinite(x) and math.isfinite(y)):
        return EMPTY_HIT

    selected = None
    if selected_id is not None:
        for point in points:
            if point.id == selected_id:
                selected = point
                break

    if selected is not None:
        if _near(x, y, selected.focus, defaults.FOCUS_HANDLE_HIT_RADIUS):
            return HitResult(HitKind.FOCUS_HANDLE, selected.id)
        if _near(x, y, selected.radius_handle, defaults.RADIUS_HANDLE_HIT_RADIUS):
            return HitResult(HitKind.RADIUS_HANDLE, selected.id)

    for point in reversed(points):
        try:
            if point_body_hit(point, x, y):
                return HitResult(HitKind.BODY, point.id)
        except (TypeError, ValueError):
            logger.debug("Skipping malformed point %r during hit test", point, exc_info=True)
    return EMPTY_HIT
