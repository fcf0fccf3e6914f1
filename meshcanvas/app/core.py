"""Toolkit-neutral application state and helpers for meshcanvas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from meshcanvas import defaults
from meshcanvas.types import Point


@dataclass
class ViewSettings:
    """View-only transform. Never touches stored point coordinates."""

    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = defaults.DEFAULT_ZOOM

    def screen_to_canvas(self, sx: float, sy: float) -> tuple[float, float]:
        """Screen pixel -> canvas space (subtract pan, undo zoom)."""
        zoom = self.zoom if self.zoom > 0 else 1.0
        return (sx - self.pan_x) / zoom, (sy - self.pan_y) / zoom

    def canvas_to_screen(self, cx: float, cy: float) -> tuple[float, float]:
        """Canvas space -> screen pixel."""
        return cx * self.zoom + self.pan_x, cy * self.zoom + self.pan_y


@dataclass
class DisplaySettings:
    """Background, grid and overlay parameters."""

    canvas_size: tuple[int, int] = defaults.DEFAULT_CANVAS_SIZE
    background_color: str = defaults.DEFAULT_BACKGROUND_COLOR
    show_grid: bool = defaults.DEFAULT_SHOW_GRID
    grid_spacing: float = defaults.DEFAULT_GRID_SPACING
    grid_color: str = defaults.DEFAULT_GRID_COLOR
    grid_opacity: float = defaults.DEFAULT_GRID_OPACITY
    show_crosshair: bool = True
    show_overlays: bool = True


@dataclass
class LabelSettings:
    """Four fixed text labels drawn on the label layer."""

    top: str = ""
    right: str = ""
    bottom: str = ""
    left: str = ""
    font_family: str = defaults.DEFAULT_LABEL_FONT
    font_size: int = defaults.DEFAULT_LABEL_SIZE
    color: str = defaults.DEFAULT_LABEL_COLOR

    def texts(self) -> dict[str, str]:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}


@dataclass
class AppState:
    """Central editing state for one canvas instance."""

    points: list[Point] = field(default_factory=list)
    view: ViewSettings = field(default_factory=ViewSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    labels: LabelSettings = field(default_factory=LabelSettings)

    # Interaction state
    selected_id: Optional[str] = None
    next_point_id: int = 1  # Monotonic; ids are never reused, even after undo

    # Dirty flag - the renderer decides how to respond.
    render_dirty: bool = True

    def find_point(self, point_id: Optional[str]) -> Optional[Point]:
        """Point with this id, or None."""
        if point_id is None:
            return None
        for point in self.points:
            if point.id == point_id:
                return point
        return None

    def index_of(self, point_id: str) -> int:
        """Store index of a point, or -1."""
        for idx, point in enumerate(self.points):
            if point.id == point_id:
                return idx
        return -1

    def set_selected(self, point_id: Optional[str]) -> None:
        """Replace selection with a single point, or clear if the id is unknown."""
        self.selected_id = point_id if self.find_point(point_id) is not None else None

    def clear_selection(self) -> None:
        self.selected_id = None

    def get_selected(self) -> Optional[Point]:
        return self.find_point(self.selected_id)

    def allocate_point_id(self) -> str:
        point_id = f"point-{self.next_point_id}"
        self.next_point_id += 1
        return point_id
