"""One editing session: store, history, controller, stop editor, images and renderer.

Panel-style commands (duplicate, delete, numeric edits) commit history
here; pointer gestures commit through the controller.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

from meshcanvas import serialization
from meshcanvas.app import actions
from meshcanvas.app.canvas_controller import CanvasController
from meshcanvas.app.core import AppState
from meshcanvas.app.history import HistoryManager
from meshcanvas.app.point_store import PointStore
from meshcanvas.app.stop_editor import StopEditor
from meshcanvas.canvas_renderer import CanvasRenderer
from meshcanvas.export import export_png
from meshcanvas.images import ImageCache, ImageSource
from meshcanvas.render import RenderResult
from meshcanvas.types import Point

logger = logging.getLogger(__name__)


class CanvasSession:
    """Wires the editing components together around one AppState."""

    def __init__(self, state: Optional[AppState] = None, images: Optional[ImageCache] = None):
        self.state = state if state is not None else AppState()
        self.store = PointStore(self.state)
        self.history = HistoryManager()
        self.stop_editor = StopEditor(self.store, self.history)
        self.controller = CanvasController(self.store, self.history, self.stop_editor)
        self.images = images if images is not None else ImageCache()
        self.renderer = CanvasRenderer(self.store, self.images, self.controller)

        self.store.subscribe(self._follow_selection)
        # Baseline so the first edit can be undone
        self.history.commit(self.store.snapshot())

    def _follow_selection(self, snapshot: list[Point]) -> None:
        self.stop_editor.bind(self.store.selected_id)

    # ------------------------------------------------------------------
    # Point commands
    # ------------------------------------------------------------------

    def create_point(self, x: float, y: float, **attrs: Any) -> Point:
        """Create a point at canvas coordinates and commit."""
        point = self.store.create(x, y, **attrs)
        self.commit()
        return point

    def update_point(self, point_id: str, commit: bool = False, **attrs: Any) -> bool:
        """Edit attributes; pass ``commit=True`` when the edit completes a user action."""
        changed = self.store.update(point_id, **attrs)
        if changed and commit:
            self.commit()
        return changed

    def duplicate_point(self, point_id: str) -> Optional[Point]:
        clone = self.store.duplicate(point_id)
        if clone is not None:
            self.commit()
        return clone

    def delete_point(self, point_id: str) -> bool:
        removed = self.store.delete(point_id)
        if removed:
            self.commit()
        return removed

    def select(self, point_id: Optional[str]) -> None:
        self.store.select(point_id)

    def commit(self) -> None:
        self.history.commit(self.store.snapshot())

    def undo(self) -> bool:
        return self.controller.undo()

    def redo(self) -> bool:
        return self.controller.redo()

    def load_points(self, points: list[Point]) -> None:
        """Replace the whole document and restart history from it."""
        self.store.replace_points(points)
        self.state.next_point_id = max(self.state.next_point_id, serialization.next_point_number(points))
        self.history.clear()
        self.commit()

    def to_json(self) -> str:
        return serialization.points_to_json(self.store.points)

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    def zoom_in(self) -> None:
        actions.zoom_in(self.state)

    def zoom_out(self) -> None:
        actions.zoom_out(self.state)

    def set_zoom(self, zoom: float) -> None:
        actions.set_zoom(self.state, zoom)

    def set_pan(self, pan_x: float, pan_y: float) -> None:
        actions.set_pan(self.state, pan_x, pan_y)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def set_image(self, point_id: str, ref: str, source: Optional[ImageSource] = None) -> bool:
        """Attach an image reference to a point, starting a decode if a source is given."""
        if source is not None:
            self.images.request(ref, source)
        changed = self.store.update(point_id, image=ref)
        if changed:
            self.commit()
        return changed

    def clear_image(self, point_id: str) -> bool:
        changed = self.store.update(point_id, image=None)
        if changed:
            self.commit()
        return changed

    def poll_images(self) -> list[str]:
        """Collect finished decodes (call once per frame from the event loop)."""
        return self.images.poll()

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def render(self) -> RenderResult:
        return self.renderer.render()

    def export_png(self, path: Optional[Union[str, Path]] = None) -> bytes:
        """Flattened PNG of the current canvas without overlays."""
        result = self.renderer.render_for_export()
        return export_png(result, self.state.display.background_color, path)

    def close(self) -> None:
        self.renderer.close()
        self.images.shutdown(wait=False)
