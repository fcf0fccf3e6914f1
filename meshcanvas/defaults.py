"""Central place for meshcanvas default settings."""

# Canvas / surface
DEFAULT_CANVAS_SIZE: tuple[int, int] = (1200, 800)  # (width, height) in pixels
DEFAULT_BACKGROUND_COLOR: str = "#333333"

# Grid
DEFAULT_SHOW_GRID: bool = True
DEFAULT_GRID_SPACING: float = 20.0  # canvas units
DEFAULT_GRID_COLOR: str = "#404040"
DEFAULT_GRID_OPACITY: float = 0.5
MIN_GRID_SPACING: float = 4.0

# Center crosshair (quadrant reference for labels)
CROSSHAIR_COLOR: tuple[int, int, int, int] = (255, 255, 255, 40)
CROSSHAIR_DASH: tuple[int, int] = (6, 6)

# View
DEFAULT_ZOOM: float = 1.0
MIN_ZOOM: float = 0.5
MAX_ZOOM: float = 2.0
ZOOM_STEP: float = 0.1

# Point defaults
DEFAULT_POINT_COLOR: str = "#3b82f6"
DEFAULT_POINT_OPACITY: float = 1.0
DEFAULT_POINT_RADIUS: float = 150.0
MIN_POINT_RADIUS: float = 20.0
DEFAULT_EDGE_TYPE: str = "soft"
DEFAULT_SHAPE: str = "blob"
DEFAULT_GRADIENT_TYPE: str = "solid"
DEFAULT_STOPS: tuple[tuple[str, float], ...] = (
    ("#3b82f6", 0.0),
    ("#8b5cf6", 100.0),
)
DEFAULT_STOP_ALPHA: float = 100.0
DEFAULT_ADDED_STOP_COLOR: str = "#3b82f6"
DEFAULT_ADDED_STOP_POSITION: float = 50.0
MIN_GRADIENT_STOPS: int = 2
DUPLICATE_OFFSET: float = 20.0

EDGE_TYPES: tuple[str, ...] = ("soft", "hard")
SHAPES: tuple[str, ...] = ("blob", "circle", "square", "rectangle")
GRADIENT_TYPES: tuple[str, ...] = ("solid", "linear", "radial")

# Hard edge plateau: full alpha until this fraction of the radius
HARD_EDGE_PLATEAU: float = 0.8

# Rectangle proportions relative to radius
RECTANGLE_WIDTH_FACTOR: float = 3.0
RECTANGLE_HEIGHT_FACTOR: float = 1.5

# Image fill
DEFAULT_IMAGE_SCALE: float = 1.0
MIN_IMAGE_SCALE: float = 0.05
DEFAULT_BORDER_THICKNESS: float = 8.0
DEFAULT_BORDER_BLUR: float = 0.0

# Hit testing (canvas units, zoom independent)
FOCUS_HANDLE_HIT_RADIUS: float = 12.0
RADIUS_HANDLE_HIT_RADIUS: float = 8.0
CENTER_HIT_RADIUS: float = 14.0
BOUNDARY_HIT_TOLERANCE: float = 10.0

# Pointer travel (screen pixels) below which a press/release is a click
CLICK_SLOP: float = 3.0

# Overlay drawing (screen pixels)
MARKER_RADIUS: float = 8.0
RADIUS_HANDLE_RADIUS: float = 6.0
FOCUS_HANDLE_RADIUS: float = 7.0
FOCUS_HANDLE_ACTIVE_RADIUS: float = 9.0
SELECTED_STROKE: tuple[int, int, int, int] = (59, 130, 246, 255)
UNSELECTED_STROKE: tuple[int, int, int, int] = (255, 255, 255, 255)
OUTLINE_COLOR: tuple[int, int, int, int] = (59, 130, 246, 77)
OUTLINE_DASH: tuple[int, int] = (5, 5)
FOCUS_LINE_COLOR: tuple[int, int, int, int] = (255, 255, 255, 160)
OUTLINE_SEGMENTS: int = 180

# Labels
DEFAULT_LABEL_FONT: str = "DejaVuSans.ttf"
DEFAULT_LABEL_SIZE: int = 24
DEFAULT_LABEL_COLOR: str = "#ffffff"
LABEL_MARGIN: int = 16

# Ramp lookup resolution
RAMP_LUT_SIZE: int = 256
