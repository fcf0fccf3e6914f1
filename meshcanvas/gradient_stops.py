"""Gradient stop model: ordered 1-D color ramps.

Stop lists keep insertion order. Position, not list order, defines the ramp,
so every consumer goes through ``sorted_stops`` before interpolating.
All functions return new lists and never mutate their input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Optional

import numpy as np

from meshcanvas import defaults
from meshcanvas.colorspace import hex_to_unit_rgb, is_valid_hex, lerp_alpha, lerp_color, normalize_hex
from meshcanvas.errors import DegenerateGradient, InvalidColorFormat
from meshcanvas.types import GradientStop

logger = logging.getLogger(__name__)

_STOP_ID_RE = re.compile(r"^stop-(\d+)$")


def clamp_position(position: float) -> float:
    return float(min(max(position, 0.0), 100.0))


def clamp_alpha(alpha: float) -> float:
    return float(min(max(alpha, 0.0), 100.0))


def sorted_stops(stops: list[GradientStop]) -> list[GradientStop]:
    """Stops in ramp order (stable for equal positions)."""
    return sorted(stops, key=lambda s: s.position)


def find_stop(stops: list[GradientStop], stop_id: str) -> Optional[GradientStop]:
    for stop in stops:
        if stop.id == stop_id:
            return stop
    return None


def next_stop_id(stops: list[GradientStop]) -> str:
    """Fresh ``stop-N`` id, unique within this list."""
    highest = 0
    for stop in stops:
        match = _STOP_ID_RE.match(stop.id)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"stop-{highest + 1}"


def sample(stops: list[GradientStop], position: float) -> tuple[str, float]:
    """Color and alpha of the ramp at ``position`` (0..100).

    Positions at or before the first stop return the first stop; at or after
    the last stop return the last. In between, color and alpha are linearly
    interpolated across the bracketing pair.
    """
    ordered = sorted_stops(stops)
    if not ordered:
        return defaults.DEFAULT_POINT_COLOR, defaults.DEFAULT_STOP_ALPHA

    first, last = ordered[0], ordered[-1]
    if position <= first.position:
        return first.color, first.alpha
    if position >= last.position:
        return last.color, last.alpha

    for before, after in zip(ordered, ordered[1:]):
        if before.position <= position <= after.position:
            if position == before.position:
                return before.color, before.alpha
            span = after.position - before.position
            t = (position - before.position) / span
            return lerp_color(before.color, after.color, t), lerp_alpha(before.alpha, after.alpha, t)

    return last.color, last.alpha


def insert_at(stops: list[GradientStop], position: float) -> tuple[list[GradientStop], GradientStop]:
    """Insert a stop sampled from the ramp at ``position``.

    The new stop is appended; the list stays in insertion order.

    Returns:
        (new_stops, inserted_stop)
    """
    position = float(round(clamp_position(position)))
    color, alpha = sample(stops, position)
    new_stop = GradientStop(id=next_stop_id(stops), color=color, position=position, alpha=alpha)
    return [*stops, new_stop], new_stop


def add_stop(stops: list[GradientStop]) -> tuple[list[GradientStop], GradientStop]:
    """Explicit "add stop": fixed default color and position."""
    new_stop = GradientStop(
        id=next_stop_id(stops),
        color=defaults.DEFAULT_ADDED_STOP_COLOR,
        position=defaults.DEFAULT_ADDED_STOP_POSITION,
    )
    return [*stops, new_stop], new_stop


def move_stop(stops: list[GradientStop], stop_id: str, position: float) -> list[GradientStop]:
    """Reposition a stop, clamped to [0, 100]. Unknown ids are a no-op."""
    position = clamp_position(position)
    return [replace(s, position=position) if s.id == stop_id else s for s in stops]


def remove_stop(
    stops: list[GradientStop],
    stop_id: str,
    min_stops: int = defaults.MIN_GRADIENT_STOPS,
) -> list[GradientStop]:
    """Remove a stop.

    Raises:
        DegenerateGradient: if removal would leave fewer than ``min_stops``.
    """
    if find_stop(stops, stop_id) is None:
        return list(stops)
    if len(stops) - 1 < min_stops:
        raise DegenerateGradient(
            f"Cannot remove {stop_id}: gradient needs at least {min_stops} stops"
        )
    return [s for s in stops if s.id != stop_id]


def set_stop_color(stops: list[GradientStop], stop_id: str, color: str) -> list[GradientStop]:
    """Recolor a stop. Invalid hex keeps the previous color."""
    if not is_valid_hex(color):
        logger.debug("Ignoring invalid stop color %r for %s", color, stop_id)
        return list(stops)
    color = normalize_hex(color)
    return [replace(s, color=color) if s.id == stop_id else s for s in stops]


def set_stop_alpha(stops: list[GradientStop], stop_id: str, alpha: float) -> list[GradientStop]:
    """Set a stop's alpha, clamped to [0, 100]."""
    alpha = clamp_alpha(alpha)
    return [replace(s, alpha=alpha) if s.id == stop_id else s for s in stops]


def edge_falloff(fraction, edge_type: Optional[str]):
    """Alpha multiplier across the influence radius.

    Args:
        fraction: Distance along the ramp, 0 at the center and 1 at the radius
            (scalar or array)
        edge_type: "soft" fades continuously 1 -> 0; "hard" stays at 1 until
            HARD_EDGE_PLATEAU then fades linearly to 0; None disables falloff.
    """
    f = np.clip(np.asarray(fraction, dtype=np.float32), 0.0, 1.0)
    if edge_type is None:
        out = np.ones_like(f)
    elif edge_type == "hard":
        plateau = defaults.HARD_EDGE_PLATEAU
        out = np.where(f <= plateau, 1.0, (1.0 - f) / (1.0 - plateau)).astype(np.float32)
    else:
        out = (1.0 - f).astype(np.float32)
    return out if out.ndim else float(out)


def build_ramp_lut(
    stops: list[GradientStop],
    opacity: float = 1.0,
    edge_type: Optional[str] = None,
    size: int = defaults.RAMP_LUT_SIZE,
) -> np.ndarray:
    """Sample the ramp into an RGBA lookup table.

    Color and stop alpha are interpolated linearly between sorted stops and
    clamped past the ends. Alpha is ``opacity * stop_alpha / 100 *
    edge_falloff(t)``, which equals the per-stop rule at each stop position.

    Returns:
        (size, 4) float32 array, straight (non-premultiplied) RGBA in [0, 1]
    """
    ordered = sorted_stops(stops)
    xs = np.linspace(0.0, 1.0, size, dtype=np.float32)
    lut = np.zeros((size, 4), dtype=np.float32)
    if not ordered:
        return lut

    positions = np.array([s.position for s in ordered], dtype=np.float32) / 100.0
    colors = []
    for s in ordered:
        try:
            colors.append(hex_to_unit_rgb(s.color))
        except InvalidColorFormat:
            logger.warning("Stop %s has invalid color %r, rendering black", s.id, s.color)
            colors.append(np.zeros(3, dtype=np.float32))
    colors = np.stack(colors)
    alphas = np.array([s.alpha for s in ordered], dtype=np.float32) / 100.0

    for c in range(3):
        lut[:, c] = np.interp(xs, positions, colors[:, c])
    lut[:, 3] = np.interp(xs, positions, alphas) * float(opacity) * edge_falloff(xs, edge_type)
    return np.clip(lut, 0.0, 1.0)


def lookup(lut: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Index a ramp LUT with parameters in [0, 1] (clamped). Returns (..., 4)."""
    size = lut.shape[0]
    idx = np.clip(np.rint(np.asarray(t) * (size - 1)), 0, size - 1).astype(np.intp)
    return lut[idx]

