"""Canvas interaction controller - pointer gestures, hit dispatch, shortcuts.

The controller is toolkit-neutral: the host forwards pointer positions in
surface pixels and key names, the controller converts to canvas space,
drives the point store and commits history at the end of each gesture.
"""

from __future__ import annotations

import enum
import logging
import math
from typing import TYPE_CHECKING, Optional, Tuple

from meshcanvas import defaults
from meshcanvas.app import actions
from meshcanvas.app.history import HistoryManager
from meshcanvas.app.hit_test import HitKind, find_hit
from meshcanvas.app.point_store import PointStore

if TYPE_CHECKING:
    from meshcanvas.app.stop_editor import StopEditor

logger = logging.getLogger(__name__)


class DragMode(enum.Enum):
    IDLE = "idle"
    PANNING = "panning"
    MOVING_POINT = "moving_point"
    RESIZING_RADIUS = "resizing_radius"
    REDIRECTING_FOCUS = "redirecting_focus"


_HIT_TO_MODE = {
    HitKind.BODY: DragMode.MOVING_POINT,
    HitKind.RADIUS_HANDLE: DragMode.RESIZING_RADIUS,
    HitKind.FOCUS_HANDLE: DragMode.REDIRECTING_FOCUS,
}

_DELETE_KEYS = frozenset({"delete", "backspace"})


class CanvasController:
    """Handles pointer drags, click-to-create and keyboard shortcuts."""

    def __init__(
        self,
        store: PointStore,
        history: HistoryManager,
        stop_editor: Optional["StopEditor"] = None,
    ):
        self.store = store
        self.history = history
        self.stop_editor = stop_editor

        self.surface_active: bool = True

        # Drag state
        self.mode: DragMode = DragMode.IDLE
        self.drag_point_id: Optional[str] = None
        self.drag_start_screen: Tuple[float, float] = (0.0, 0.0)
        self.drag_last_screen: Tuple[float, float] = (0.0, 0.0)
        self.grab_offset: Tuple[float, float] = (0.0, 0.0)
        self.drag_changed: bool = False

        # Click synthesis
        self.pointer_down_active: bool = False
        self.press_on_empty: bool = False
        self.travel: float = 0.0
        self.suppress_click: bool = False

    @property
    def state(self):
        return self.store.state

    @property
    def is_dragging(self) -> bool:
        return self.mode is not DragMode.IDLE

    def attach_surface(self) -> None:
        self.surface_active = True

    def detach_surface(self) -> None:
        """Drop the drawing surface; an in-flight gesture ends without a commit."""
        self.surface_active = False
        self._reset_gesture()

    def to_canvas(self, sx: float, sy: float) -> Tuple[float, float]:
        return self.state.view.screen_to_canvas(sx, sy)

    # ------------------------------------------------------------------
    # Pointer
    # ------------------------------------------------------------------

    def pointer_down(self, sx: float, sy: float, pan_modifier: bool = False) -> None:
        # One gesture at a time; a second press while dragging is ignored
        if not self.surface_active or self.pointer_down_active:
            return

        self.suppress_click = False
        self.pointer_down_active = True
        self.press_on_empty = False
        self.travel = 0.0
        self.drag_start_screen = (sx, sy)
        self.drag_last_screen = (sx, sy)
        self.drag_changed = False

        if pan_modifier:
            self.mode = DragMode.PANNING
            return

        x, y = self.to_canvas(sx, sy)
        hit = find_hit(self.store.points, self.store.selected_id, x, y)
        if hit.is_empty:
            self.press_on_empty = True
            return

        point = self.store.find(hit.point_id)
        if point is None:
            return
        self.mode = _HIT_TO_MODE[hit.kind]
        self.drag_point_id = point.id
        self.state.render_dirty = True
        if self.mode is DragMode.MOVING_POINT:
            self.grab_offset = (x - point.x, y - point.y)
            self.store.select(point.id)
        logger.debug("Drag start %s on %s", self.mode.value, point.id)

    def pointer_move(self, sx: float, sy: float) -> None:
        if not self.surface_active or not self.pointer_down_active:
            return

        self.travel = max(
            self.travel,
            math.hypot(sx - self.drag_start_screen[0], sy - self.drag_start_screen[1]),
        )

        if self.mode is DragMode.PANNING:
            dx = sx - self.drag_last_screen[0]
            dy = sy - self.drag_last_screen[1]
            actions.pan_by(self.state, dx, dy)
            self.drag_last_screen = (sx, sy)
            return

        self.drag_last_screen = (sx, sy)
        if self.drag_point_id is None:
            return
        point = self.store.find(self.drag_point_id)
        if point is None:
            return

        x, y = self.to_canvas(sx, sy)
        changed = False
        if self.mode is DragMode.MOVING_POINT:
            changed = self.store.update(
                point.id, x=x - self.grab_offset[0], y=y - self.grab_offset[1]
            )
        elif self.mode is DragMode.RESIZING_RADIUS:
            changed = self.store.set_radius(point.id, math.hypot(x - point.x, y - point.y))
        elif self.mode is DragMode.REDIRECTING_FOCUS:
            changed = self.store.update(point.id, focus_x=x - point.x, focus_y=y - point.y)
        self.drag_changed = self.drag_changed or changed

    def pointer_up(self, sx: float, sy: float) -> None:
        if not self.surface_active or not self.pointer_down_active:
            return

        mode = self.mode
        if mode is DragMode.PANNING:
            self.suppress_click = True
        elif mode is not DragMode.IDLE:
            if self.drag_changed:
                self.history.commit(self.store.snapshot())
                logger.debug("Drag end %s on %s committed", mode.value, self.drag_point_id)
        elif self.press_on_empty and self._is_click(sx, sy):
            x, y = self.to_canvas(sx, sy)
            self.store.create(x, y)
            self.history.commit(self.store.snapshot())

        self._reset_gesture()

    def pointer_leave(self) -> None:
        """Pointer left the surface: finish the gesture at its last position."""
        if self.pointer_down_active:
            self.pointer_up(*self.drag_last_screen)

    def _is_click(self, sx: float, sy: float) -> bool:
        if self.suppress_click:
            return False
        travel = max(
            self.travel,
            math.hypot(sx - self.drag_start_screen[0], sy - self.drag_start_screen[1]),
        )
        return travel <= defaults.CLICK_SLOP

    def _reset_gesture(self) -> None:
        if self.mode is not DragMode.IDLE:
            self.state.render_dirty = True
        self.mode = DragMode.IDLE
        self.drag_point_id = None
        self.drag_changed = False
        self.pointer_down_active = False
        self.press_on_empty = False
        self.travel = 0.0

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def key_down(self, key: str, ctrl: bool = False, meta: bool = False, shift: bool = False) -> bool:
        """Process a key press. Returns True if the key was handled."""
        name = key.lower()
        command = ctrl or meta

        if command and name == "z":
            if self.is_dragging:
                return True
            if shift:
                self.redo()
            else:
                self.undo()
            return True
        if ctrl and name == "y":
            if not self.is_dragging:
                self.redo()
            return True

        if name in _DELETE_KEYS and self.stop_editor is not None:
            if self.stop_editor.selected_stop_id is not None:
                return self.stop_editor.key(key)
        return False

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.store.replace_points(snapshot)
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.store.replace_points(snapshot)
        return True
