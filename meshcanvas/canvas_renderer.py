"""Canvas renderer - lazily re-renders frames when the store or view changes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from meshcanvas.app.canvas_controller import DragMode
from meshcanvas.images import ImageCache
from meshcanvas.render import RenderResult, render_frame

if TYPE_CHECKING:
    from meshcanvas.app.canvas_controller import CanvasController
    from meshcanvas.app.point_store import PointStore

logger = logging.getLogger(__name__)


class CanvasRenderer:
    """Caches the last frame and rebuilds it only when marked dirty."""

    def __init__(
        self,
        store: "PointStore",
        images: Optional[ImageCache] = None,
        controller: Optional["CanvasController"] = None,
    ):
        """Initialize renderer and subscribe to store changes.

        Args:
            store: Point store to read from
            images: Decoded image lookup for image fills
            controller: Interaction controller, used to emphasize the dragged handle
        """
        self.store = store
        self.images = images
        self.controller = controller
        self.canvas_dirty: bool = True
        self.render_count: int = 0
        self._last: Optional[RenderResult] = None

        store.subscribe(self._on_points_changed)
        if images is not None:
            images.add_listener(self._on_image_loaded)

    def mark_dirty(self) -> None:
        """Mark canvas as needing redraw."""
        self.canvas_dirty = True

    def _on_points_changed(self, snapshot) -> None:
        self.mark_dirty()

    def _on_image_loaded(self, ref: str) -> None:
        if any(p.image == ref for p in self.store.points):
            logger.debug("Image %s loaded, re-rendering", ref)
            self.mark_dirty()

    @property
    def needs_render(self) -> bool:
        return self.canvas_dirty or self.store.state.render_dirty or self._last is None

    def _active_handle(self) -> Optional[str]:
        if self.controller is None:
            return None
        if self.controller.mode is DragMode.REDIRECTING_FOCUS:
            return "focus"
        if self.controller.mode is DragMode.RESIZING_RADIUS:
            return "radius"
        return None

    def render(self) -> RenderResult:
        """Current frame; re-rendered only if something changed since the last call."""
        if not self.needs_render:
            return self._last

        self._last = render_frame(
            self.store.state,
            images=self.images,
            active_handle=self._active_handle(),
        )
        self.canvas_dirty = False
        self.store.state.render_dirty = False
        self.render_count += 1
        return self._last

    def render_for_export(self) -> RenderResult:
        """Fresh frame without overlays. Does not touch the cached frame."""
        return render_frame(self.store.state, images=self.images, show_overlays=False)

    def close(self) -> None:
        self.store.unsubscribe(self._on_points_changed)
