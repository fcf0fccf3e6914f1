"""Gradient stop slider model for the selected point.

Mirrors a horizontal ramp widget: clicking the track inserts a stop sampled
from the ramp, dragging a stop handle repositions it, Delete/Backspace
removes the selected stop. Positions come in as track fractions (0..1).
"""

from __future__ import annotations

import logging
from typing import Optional

from meshcanvas import gradient_stops as stops_model
from meshcanvas.app.history import HistoryManager
from meshcanvas.app.point_store import PointStore
from meshcanvas.types import GradientStop, Point

logger = logging.getLogger(__name__)

_DELETE_KEYS = frozenset({"delete", "backspace"})


def _fraction_to_position(fraction: float) -> float:
    return float(round(stops_model.clamp_position(float(fraction) * 100.0)))


class StopEditor:
    """Edits the stop list of one point through the store, committing history per edit."""

    def __init__(self, store: PointStore, history: HistoryManager, point_id: Optional[str] = None):
        self.store = store
        self.history = history
        self.point_id: Optional[str] = point_id
        self.selected_stop_id: Optional[str] = None
        self.dragging_stop_id: Optional[str] = None
        self._drag_start_position: Optional[float] = None

    def bind(self, point_id: Optional[str]) -> None:
        """Edit another point's ramp. Clears stop selection and any drag."""
        if point_id != self.point_id:
            self.point_id = point_id
            self.selected_stop_id = None
            self.dragging_stop_id = None
            self._drag_start_position = None

    def _point(self) -> Optional[Point]:
        return self.store.find(self.point_id)

    @property
    def stops(self) -> list[GradientStop]:
        point = self._point()
        return list(point.gradient_stops) if point is not None else []

    def select_stop(self, stop_id: Optional[str]) -> None:
        if stop_id is None or stops_model.find_stop(self.stops, stop_id) is not None:
            self.selected_stop_id = stop_id

    def _commit(self) -> None:
        self.history.commit(self.store.snapshot())

    # Track gestures

    def click(self, fraction: float) -> Optional[GradientStop]:
        """Insert a stop sampled from the ramp at the clicked track fraction."""
        if self.dragging_stop_id is not None or self._point() is None:
            return None
        stop = self.store.insert_stop(self.point_id, _fraction_to_position(fraction))
        if stop is not None:
            self.selected_stop_id = stop.id
            self._commit()
        return stop

    def press_stop(self, stop_id: str) -> None:
        stop = stops_model.find_stop(self.stops, stop_id)
        if stop is None:
            logger.debug("press_stop: no stop %s on %s", stop_id, self.point_id)
            return
        self.selected_stop_id = stop_id
        self.dragging_stop_id = stop_id
        self._drag_start_position = stop.position

    def drag(self, fraction: float) -> None:
        if self.dragging_stop_id is None:
            return
        self.store.move_stop(self.point_id, self.dragging_stop_id, _fraction_to_position(fraction))

    def release(self) -> None:
        if self.dragging_stop_id is None:
            return
        stop = stops_model.find_stop(self.stops, self.dragging_stop_id)
        if stop is not None and stop.position != self._drag_start_position:
            self._commit()
        self.dragging_stop_id = None
        self._drag_start_position = None

    def key(self, name: str) -> bool:
        """Delete/Backspace removes the selected stop. Returns True if handled."""
        if name.lower() not in _DELETE_KEYS or self.selected_stop_id is None:
            return False
        self.remove(self.selected_stop_id)
        return True

    # Explicit edits

    def add(self) -> Optional[GradientStop]:
        """Append the fixed default stop."""
        stop = self.store.add_stop(self.point_id)
        if stop is not None:
            self.selected_stop_id = stop.id
            self._commit()
        return stop

    def remove(self, stop_id: str) -> bool:
        """Remove a stop; refused below the minimum. Selection moves to a neighbor."""
        ordered = stops_model.sorted_stops(self.stops)
        ids = [s.id for s in ordered]
        if stop_id not in ids:
            return False
        if not self.store.remove_stop(self.point_id, stop_id):
            return False

        if self.selected_stop_id == stop_id:
            idx = ids.index(stop_id)
            remaining = ids[:idx] + ids[idx + 1:]
            self.selected_stop_id = remaining[min(idx, len(remaining) - 1)] if remaining else None
        if self.dragging_stop_id == stop_id:
            self.dragging_stop_id = None
        self._commit()
        return True

    def set_color(self, stop_id: str, color: str) -> bool:
        """Recolor a stop. Invalid hex leaves the stop unchanged and commits nothing."""
        if self.store.set_stop_color(self.point_id, stop_id, color):
            self._commit()
            return True
        return False

    def set_alpha(self, stop_id: str, alpha: float) -> bool:
        if self.store.set_stop_alpha(self.point_id, stop_id, alpha):
            self._commit()
            return True
        return False

    def set_position(self, stop_id: str, position: float) -> bool:
        """Numeric position entry, clamped to [0, 100]."""
        if self.store.move_stop(self.point_id, stop_id, position):
            self._commit()
            return True
        return False
