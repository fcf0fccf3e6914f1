"""Point shape geometry shared by hit testing and rendering.

Every shape is centered on the point and described by a signed distance
function in canvas units (negative inside, zero on the outline). Hit testing
uses its magnitude as the boundary distance; rendering turns it into an
anti-aliased footprint coverage.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from meshcanvas import defaults
from meshcanvas.types import Point

logger = logging.getLogger(__name__)


class CircleShape:
    """Circle of the influence radius (``blob`` and ``circle``)."""

    def __init__(self, radius: float):
        self.radius = max(float(radius), 0.0)

    def half_extents(self) -> tuple[float, float]:
        return (self.radius, self.radius)

    def extent(self) -> float:
        """Characteristic extent used as gradient length."""
        return self.radius

    def signed_distance(self, dx, dy):
        return np.hypot(dx, dy) - self.radius

    def boundary_distance(self, dx, dy):
        """Unsigned distance to the outline."""
        return np.abs(self.signed_distance(dx, dy))

    def footprint(self, dx, dy):
        return self.signed_distance(dx, dy) <= 0

    def inset(self, amount: float) -> "CircleShape":
        return CircleShape(self.radius - amount)

    def outline(self, segments: int = defaults.OUTLINE_SEGMENTS) -> np.ndarray:
        """Closed polyline of (dx, dy) offsets, shape (segments + 1, 2)."""
        theta = np.linspace(0.0, 2.0 * math.pi, segments + 1)
        return np.column_stack([self.radius * np.cos(theta), self.radius * np.sin(theta)])

    def __repr__(self) -> str:
        return f"CircleShape(radius={self.radius})"


class BoxShape:
    """Axis-aligned box (``square`` and ``rectangle``)."""

    def __init__(self, width: float, height: float):
        self.half_w = max(float(width), 0.0) / 2.0
        self.half_h = max(float(height), 0.0) / 2.0

    def half_extents(self) -> tuple[float, float]:
        return (self.half_w, self.half_h)

    def extent(self) -> float:
        """Half of the larger side."""
        return max(self.half_w, self.half_h)

    def signed_distance(self, dx, dy):
        qx = np.abs(dx) - self.half_w
        qy = np.abs(dy) - self.half_h
        outside = np.hypot(np.maximum(qx, 0.0), np.maximum(qy, 0.0))
        inside = np.minimum(np.maximum(qx, qy), 0.0)
        return outside + inside

    def boundary_distance(self, dx, dy):
        return np.abs(self.signed_distance(dx, dy))

    def footprint(self, dx, dy):
        """Boolean mask of offsets inside the box."""
        return (np.abs(dx) <= self.half_w) & (np.abs(dy) <= self.half_h)

    def inset(self, amount: float) -> "BoxShape":
        return BoxShape(2.0 * (self.half_w - amount), 2.0 * (self.half_h - amount))

    def outline(self, segments: int = defaults.OUTLINE_SEGMENTS) -> np.ndarray:
        hw, hh = self.half_w, self.half_h
        corners = np.array([(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh), (-hw, -hh)])
        per_edge = max(segments // 4, 1)
        pieces = [
            np.linspace(corners[i], corners[i + 1], per_edge, endpoint=False)
            for i in range(4)
        ]
        pieces.append(corners[-1:])
        return np.concatenate(pieces)

    def __repr__(self) -> str:
        return f"BoxShape(width={2 * self.half_w}, height={2 * self.half_h})"


def shape_dimensions(point: Point) -> tuple[float, float]:
    """Full (width, height) of a point's footprint in canvas units."""
    r = point.radius
    if point.shape == "square":
        return (point.width or 2.0 * r, point.height or 2.0 * r)
    if point.shape == "rectangle":
        return (
            point.width or defaults.RECTANGLE_WIDTH_FACTOR * r,
            point.height or defaults.RECTANGLE_HEIGHT_FACTOR * r,
        )
    return (2.0 * r, 2.0 * r)


def shape_for(point: Point):
    """Geometry object for a point's shape."""
    if point.shape in ("square", "rectangle"):
        return BoxShape(*shape_dimensions(point))
    if point.shape not in ("blob", "circle"):
        logger.debug("Unknown shape %r on %s, using circle", point.shape, point.id)
    return CircleShape(point.radius)


def coverage(shape, dx, dy, aa_width: float = 0.0) -> np.ndarray:
    """Footprint coverage in [0, 1].

    Args:
        shape: Shape geometry
        dx, dy: Offsets from the point center in canvas units (arrays)
        aa_width: Anti-aliasing band in canvas units (0 = hard edge)
    """
    sd = shape.signed_distance(dx, dy)
    if aa_width <= 0:
        return (sd <= 0).astype(np.float32)
    return np.clip(0.5 - sd / aa_width, 0.0, 1.0).astype(np.float32)
