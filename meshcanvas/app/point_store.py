"""Observable point store.

PointStore is the single mutation path for points and selection. Every
mutation goes through ``meshcanvas.app.actions`` and is followed by one
notification carrying a deep-copied snapshot of the ordered point list.
Subscribers never see live objects.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from meshcanvas.app import actions
from meshcanvas.app.core import AppState
from meshcanvas.errors import MissingTarget
from meshcanvas.types import GradientStop, Point, clone_points

logger = logging.getLogger(__name__)

Subscriber = Callable[[list[Point]], None]


class PointStore:
    """Owns the live point list and fans out snapshots to subscribers."""

    def __init__(self, state: Optional[AppState] = None, lock: Optional[threading.RLock] = None) -> None:
        self.state = state if state is not None else AppState()
        self._lock = lock if lock is not None else threading.RLock()
        self._subscribers: list[Subscriber] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def points(self) -> list[Point]:
        """Live point list (read-only by convention)."""
        return self.state.points

    @property
    def selected_id(self) -> Optional[str]:
        return self.state.selected_id

    def get(self, point_id: str) -> Point:
        """Live point by id.

        Raises:
            MissingTarget: if no point has this id.
        """
        point = self.state.find_point(point_id)
        if point is None:
            raise MissingTarget(point_id)
        return point

    def find(self, point_id: Optional[str]) -> Optional[Point]:
        return self.state.find_point(point_id)

    def selected(self) -> Optional[Point]:
        return self.state.get_selected()

    def snapshot(self) -> list[Point]:
        """Deep copy of the ordered point list."""
        with self._lock:
            return clone_points(self.state.points)

    def __len__(self) -> int:
        return len(self.state.points)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, x: float, y: float, **attrs: Any) -> Point:
        """Create a default point at canvas (x, y) and select it."""
        with self._lock:
            point = actions.add_point(self.state, x, y, **attrs)
        self._notify()
        return point

    def update(self, point_id: str, **attrs: Any) -> bool:
        """Shallow-merge attributes into a point. Does not commit history.

        Raises:
            ValueError: for unknown attribute names.
        """
        with self._lock:
            changed = actions.update_point(self.state, point_id, **attrs)
        if changed:
            self._notify()
        return changed

    def set_radius(self, point_id: str, radius: float) -> bool:
        with self._lock:
            changed = actions.set_radius(self.state, point_id, radius)
        if changed:
            self._notify()
        return changed

    def duplicate(self, point_id: str) -> Optional[Point]:
        with self._lock:
            clone = actions.duplicate_point(self.state, point_id)
        if clone is not None:
            self._notify()
        return clone

    def delete(self, point_id: str) -> bool:
        with self._lock:
            removed = actions.remove_point(self.state, point_id)
        if removed:
            self._notify()
        return removed

    def select(self, point_id: Optional[str]) -> None:
        """Select a point, or clear with None. Unknown ids clear the selection."""
        with self._lock:
            before = self.state.selected_id
            self.state.set_selected(point_id)
            changed = before != self.state.selected_id
            if changed:
                self.state.render_dirty = True
        if changed:
            self._notify()

    def replace_points(self, points: list[Point]) -> None:
        """Replace the whole list (undo/redo). The store keeps its own copy."""
        with self._lock:
            actions.replace_points(self.state, clone_points(points))
        self._notify()

    # Stop edits on a point

    def insert_stop(self, point_id: str, position: float) -> Optional[GradientStop]:
        with self._lock:
            stop = actions.insert_point_stop(self.state, point_id, position)
        if stop is not None:
            self._notify()
        return stop

    def add_stop(self, point_id: str) -> Optional[GradientStop]:
        with self._lock:
            stop = actions.add_point_stop(self.state, point_id)
        if stop is not None:
            self._notify()
        return stop

    def move_stop(self, point_id: str, stop_id: str, position: float) -> bool:
        return self._stop_edit(actions.move_point_stop, point_id, stop_id, position)

    def remove_stop(self, point_id: str, stop_id: str) -> bool:
        with self._lock:
            changed = actions.remove_point_stop(self.state, point_id, stop_id)
        if changed:
            self._notify()
        return changed

    def set_stop_color(self, point_id: str, stop_id: str, color: str) -> bool:
        return self._stop_edit(actions.set_point_stop_color, point_id, stop_id, color)

    def set_stop_alpha(self, point_id: str, stop_id: str, alpha: float) -> bool:
        return self._stop_edit(actions.set_point_stop_alpha, point_id, stop_id, alpha)

    def _stop_edit(self, action: Callable[..., bool], point_id: str, stop_id: str, value: Any) -> bool:
        with self._lock:
            changed = action(self.state, point_id, stop_id, value)
        if changed:
            self._notify()
        return changed

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> None:
        """Register *callback*; it receives a point-list snapshot after every mutation."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def _notify(self) -> None:
        """Call all subscribers, isolating exceptions."""
        if not self._subscribers:
            return
        # Subscribers share one snapshot and must not mutate it
        snapshot = self.snapshot()
        for cb in list(self._subscribers):
            try:
                cb(snapshot)
            except Exception:
                logger.warning("Point store subscriber %r raised", cb, exc_info=True)
