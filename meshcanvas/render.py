"""Frame rendering for the point canvas.

All passes work in screen pixels on float32 arrays in [0, 1]. The gradient
layer is opaque RGB; the label layer is straight-alpha RGBA kept separate so
text never goes through gradient blending or blur.

Pass order: background/grid/crosshair, per-point gradient fill (screen
blend), image fills (normal alpha), overlays, labels.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageFont
from scipy.ndimage import gaussian_filter, map_coordinates

from meshcanvas import defaults
from meshcanvas import gradient_stops as stops_model
from meshcanvas.app.core import AppState, DisplaySettings, LabelSettings, ViewSettings
from meshcanvas.colorspace import hex_to_rgba, hex_to_unit_rgb
from meshcanvas.errors import InvalidColorFormat
from meshcanvas.images import ImageCache
from meshcanvas.shapes import coverage, shape_for
from meshcanvas.types import Point

logger = logging.getLogger(__name__)

BBox = tuple[int, int, int, int]  # x0, y0, x1, y1 (half-open, screen pixels)


@dataclass
class RenderResult:
    """Output of one frame."""
    gradient_layer: np.ndarray  # (H, W, 3) float32
    label_layer: np.ndarray     # (H, W, 4) float32, straight alpha

    @property
    def size(self) -> tuple[int, int]:
        h, w = self.gradient_layer.shape[:2]
        return (w, h)


# ---------------------------------------------------------------------------
# Compositing helpers
# ---------------------------------------------------------------------------

def screen_blend(base: np.ndarray, rgb: np.ndarray, alpha: np.ndarray) -> None:
    """In place: ``base + a * c * (1 - base)``. Never darkens the base."""
    base += alpha[..., None] * rgb * (1.0 - base)


def composite_over(base: np.ndarray, rgb: np.ndarray, alpha: np.ndarray) -> None:
    """In place normal (source-over) blend of straight-alpha color."""
    a = alpha[..., None]
    base *= 1.0 - a
    base += rgb * a


# ---------------------------------------------------------------------------
# Pass 1: background, grid, crosshair
# ---------------------------------------------------------------------------

def draw_background(layer: np.ndarray, display: DisplaySettings) -> None:
    try:
        layer[...] = hex_to_unit_rgb(display.background_color)
    except InvalidColorFormat:
        logger.warning("Invalid background color %r, using default", display.background_color)
        layer[...] = hex_to_unit_rgb(defaults.DEFAULT_BACKGROUND_COLOR)


def grid_line_positions(length: int, spacing: float, pan: float) -> np.ndarray:
    """Pixel indices of grid lines along one axis, anchored to canvas space."""
    if spacing <= 0 or length <= 0:
        return np.zeros(0, dtype=np.intp)
    offset = pan % spacing
    positions = np.rint(np.arange(offset, length, spacing)).astype(np.intp)
    return np.unique(positions[(positions >= 0) & (positions < length)])


def draw_grid(layer: np.ndarray, view: ViewSettings, display: DisplaySettings) -> None:
    """Grid lines every ``grid_spacing * zoom`` pixels, offset by pan modulo spacing."""
    spacing = max(display.grid_spacing, defaults.MIN_GRID_SPACING) * view.zoom
    opacity = float(np.clip(display.grid_opacity, 0.0, 1.0))
    if opacity <= 0:
        return
    try:
        color = hex_to_unit_rgb(display.grid_color)
    except InvalidColorFormat:
        logger.warning("Invalid grid color %r, skipping grid", display.grid_color)
        return

    h, w = layer.shape[:2]
    cols = grid_line_positions(w, spacing, view.pan_x)
    rows = grid_line_positions(h, spacing, view.pan_y)
    layer[:, cols] = layer[:, cols] * (1.0 - opacity) + color * opacity
    layer[rows, :] = layer[rows, :] * (1.0 - opacity) + color * opacity


def draw_crosshair(layer: np.ndarray) -> None:
    """Dashed horizontal and vertical lines through the surface midpoint."""
    h, w = layer.shape[:2]
    r, g, b, a = defaults.CROSSHAIR_COLOR
    color = np.array([r, g, b], dtype=np.float32) / 255.0
    alpha = a / 255.0
    dash, gap = defaults.CROSSHAIR_DASH
    period = dash + gap

    cx, cy = w // 2, h // 2
    on_y = (np.arange(h) % period) < dash
    on_x = (np.arange(w) % period) < dash
    layer[on_y, cx] = layer[on_y, cx] * (1.0 - alpha) + color * alpha
    layer[cy, on_x] = layer[cy, on_x] * (1.0 - alpha) + color * alpha


# ---------------------------------------------------------------------------
# Pass 2: per-point gradient fill
# ---------------------------------------------------------------------------

def screen_bbox(point: Point, view: ViewSettings, size: tuple[int, int], pad: float = 0.0) -> Optional[BBox]:
    """Screen-pixel bounding box of a point's footprint, clipped to the surface."""
    hw, hh = shape_for(point).half_extents()
    sx, sy = view.canvas_to_screen(point.x, point.y)
    zoom = view.zoom
    w, h = size
    x0 = max(int(math.floor(sx - hw * zoom - pad)) - 1, 0)
    y0 = max(int(math.floor(sy - hh * zoom - pad)) - 1, 0)
    x1 = min(int(math.ceil(sx + hw * zoom + pad)) + 2, w)
    y1 = min(int(math.ceil(sy + hh * zoom + pad)) + 2, h)
    if x0 >= x1 or y0 >= y1:
        return None
    return (x0, y0, x1, y1)


def canvas_offsets(bbox: BBox, point: Point, view: ViewSettings) -> tuple[np.ndarray, np.ndarray]:
    """Canvas-space offsets (dx, dy) from the point center for every pixel in bbox."""
    x0, y0, x1, y1 = bbox
    xs = (np.arange(x0, x1, dtype=np.float32) - view.pan_x) / view.zoom - point.x
    ys = (np.arange(y0, y1, dtype=np.float32) - view.pan_y) / view.zoom - point.y
    dx, dy = np.meshgrid(xs, ys)
    return dx, dy


def linear_parameter(point: Point, dx: np.ndarray, dy: np.ndarray, extent: float) -> np.ndarray:
    """Ramp parameter along the axis at ``atan2(focus_y, focus_x)`` spanning +/- extent."""
    angle = math.atan2(point.focus_y, point.focus_x)
    proj = dx * math.cos(angle) + dy * math.sin(angle)
    return np.clip((proj + extent) / (2.0 * extent), 0.0, 1.0)


def radial_parameter(
    point: Point, dx: np.ndarray, dy: np.ndarray, extent: float
) -> tuple[np.ndarray, np.ndarray]:
    """Two-circle conical gradient: radius 0 at the focus, ``extent`` at the center.

    Solves |p - f(1 - t)| = t * extent for the largest t >= 0.

    Returns:
        (t clamped to [0, 1], valid mask). Pixels with no solution are invalid.
    """
    fx, fy = float(point.focus_x), float(point.focus_y)
    qx = dx - fx
    qy = dy - fy
    a = fx * fx + fy * fy - extent * extent
    b = 2.0 * (qx * fx + qy * fy)
    c = qx * qx + qy * qy

    if abs(a) < 1e-9:
        with np.errstate(divide="ignore", invalid="ignore"):
            t = np.where(b != 0, -c / b, -1.0)
        valid = t >= 0
    else:
        disc = b * b - 4.0 * a * c
        root = np.sqrt(np.maximum(disc, 0.0))
        t = np.maximum((-b + root) / (2.0 * a), (-b - root) / (2.0 * a))
        valid = (disc >= 0) & (t >= 0)

    return np.clip(np.where(valid, t, 0.0), 0.0, 1.0), valid


def point_fill(
    point: Point, dx: np.ndarray, dy: np.ndarray, aa_width: float = 0.0
) -> Optional[tuple[np.ndarray, np.ndarray]]:
    """Color and alpha of a point's gradient over the given offsets, clipped to its footprint.

    Returns:
        (rgb (h, w, 3), alpha (h, w)) or None if the point cannot be drawn.
    """
    shape = shape_for(point)
    cover = coverage(shape, dx, dy, aa_width)
    stops = point.gradient_stops

    if point.gradient_type == "solid" or len(stops) < defaults.MIN_GRADIENT_STOPS:
        try:
            color = hex_to_unit_rgb(point.color)
        except InvalidColorFormat:
            logger.warning("Point %s has invalid color %r, skipping", point.id, point.color)
            return None
        fraction = np.hypot(dx, dy) / max(point.radius, 1e-6)
        alpha = point.opacity * stops_model.edge_falloff(fraction, point.edge_type)
        rgb = np.broadcast_to(color, dx.shape + (3,))
    else:
        extent = max(shape.extent(), 1e-6)
        lut = stops_model.build_ramp_lut(stops, point.opacity, point.edge_type)
        if point.gradient_type == "radial":
            t, valid = radial_parameter(point, dx, dy, extent)
        else:
            t = linear_parameter(point, dx, dy, extent)
            valid = None
        sampled = stops_model.lookup(lut, t)
        rgb = sampled[..., :3]
        alpha = sampled[..., 3]
        if valid is not None:
            alpha = np.where(valid, alpha, 0.0)

    return rgb, (alpha * cover).astype(np.float32)


def draw_point(layer: np.ndarray, point: Point, view: ViewSettings) -> None:
    """Screen-blend one point's gradient into the layer, restricted to its bbox."""
    if not (math.isfinite(point.x) and math.isfinite(point.y)):
        logger.warning("Point %s has non-finite position, skipping", point.id)
        return
    h, w = layer.shape[:2]
    bbox = screen_bbox(point, view, (w, h))
    if bbox is None:
        return
    dx, dy = canvas_offsets(bbox, point, view)
    fill = point_fill(point, dx, dy, aa_width=1.0 / max(view.zoom, 1e-6))
    if fill is None:
        return
    rgb, alpha = fill
    x0, y0, x1, y1 = bbox
    screen_blend(layer[y0:y1, x0:x1], rgb, alpha)


# ---------------------------------------------------------------------------
# Pass 3: image fill with gradient border ring
# ---------------------------------------------------------------------------

def conic_parameter(dx: np.ndarray, dy: np.ndarray) -> np.ndarray:
    """Angle around the center as a ramp parameter, 0 at 12 o'clock, clockwise."""
    return np.mod((np.arctan2(dy, dx) + math.pi / 2.0) / (2.0 * math.pi), 1.0)


def _border_ring(point: Point, dx: np.ndarray, dy: np.ndarray, aa_width: float, blur_sigma: float):
    shape = shape_for(point)
    inner = shape.inset(point.border_thickness)
    ring = np.clip(coverage(shape, dx, dy, aa_width) - coverage(inner, dx, dy, aa_width), 0.0, 1.0)

    lut = stops_model.build_ramp_lut(point.gradient_stops, 1.0, None)
    sampled = stops_model.lookup(lut, conic_parameter(dx, dy))
    rgb = sampled[..., :3]
    alpha = sampled[..., 3] * ring * point.opacity

    if blur_sigma > 0:
        premult = gaussian_filter(rgb * alpha[..., None], sigma=(blur_sigma, blur_sigma, 0))
        alpha = gaussian_filter(alpha, sigma=blur_sigma)
        with np.errstate(divide="ignore", invalid="ignore"):
            rgb = np.where(alpha[..., None] > 1e-6, premult / alpha[..., None], 0.0)
    return np.clip(rgb, 0.0, 1.0), np.clip(alpha, 0.0, 1.0).astype(np.float32)


def sample_image_cover(
    image: np.ndarray,
    dx: np.ndarray,
    dy: np.ndarray,
    half_extents: tuple[float, float],
    image_scale: float,
) -> np.ndarray:
    """Bilinear samples of an RGBA image scaled to cover a centered box.

    Returns:
        (h, w, 4) float32; transparent outside the image.
    """
    img_h, img_w = image.shape[:2]
    hw, hh = half_extents
    # canvas units per image pixel
    scale = max(2.0 * hw / img_w, 2.0 * hh / img_h) * max(image_scale, defaults.MIN_IMAGE_SCALE)
    if scale <= 0:
        return np.zeros(dx.shape + (4,), dtype=np.float32)
    u = dx / scale + img_w / 2.0 - 0.5
    v = dy / scale + img_h / 2.0 - 0.5
    coords = np.stack([v.ravel(), u.ravel()])
    channels = [
        map_coordinates(image[..., c], coords, order=1, mode="nearest").reshape(dx.shape)
        for c in range(4)
    ]
    out = np.clip(np.stack(channels, axis=-1), 0.0, 1.0).astype(np.float32)
    inside = (u >= -0.5) & (u <= img_w - 0.5) & (v >= -0.5) & (v <= img_h - 0.5)
    out[..., 3] *= inside
    return out


def draw_image_fill(layer: np.ndarray, point: Point, image: np.ndarray, view: ViewSettings) -> None:
    """Border ring (optional blur) then the image in the inset footprint, normal alpha."""
    h, w = layer.shape[:2]
    zoom = max(view.zoom, 1e-6)
    blur_sigma = max(point.border_blur, 0.0) * zoom
    bbox = screen_bbox(point, view, (w, h), pad=3.0 * blur_sigma)
    if bbox is None:
        return
    dx, dy = canvas_offsets(bbox, point, view)
    aa = 1.0 / zoom
    x0, y0, x1, y1 = bbox
    target = layer[y0:y1, x0:x1]

    shape = shape_for(point)
    inner = shape
    if point.border_thickness > 0:
        rgb, alpha = _border_ring(point, dx, dy, aa, blur_sigma)
        composite_over(target, rgb, alpha)
        inner = shape.inset(point.border_thickness)

    sampled = sample_image_cover(image, dx, dy, inner.half_extents(), point.image_scale)
    alpha = sampled[..., 3] * coverage(inner, dx, dy, aa) * point.opacity
    composite_over(target, sampled[..., :3], alpha)


# ---------------------------------------------------------------------------
# Pass 4: overlays
# ---------------------------------------------------------------------------

def _resample_polyline(points: np.ndarray, step: float = 1.0) -> np.ndarray:
    """Points roughly ``step`` pixels apart along a polyline."""
    seg = np.hypot(*np.diff(points, axis=0).T)
    total = float(seg.sum())
    if total <= 0:
        return points[:1]
    cumulative = np.concatenate([[0.0], np.cumsum(seg)])
    samples = np.arange(0.0, total + step, step)
    xs = np.interp(samples, cumulative, points[:, 0])
    ys = np.interp(samples, cumulative, points[:, 1])
    return np.column_stack([xs, ys])


def draw_dashed_polyline(
    draw: ImageDraw.ImageDraw,
    points: np.ndarray,
    dash_length: int,
    gap_length: int,
    fill: tuple[int, int, int, int],
    width: int = 1,
) -> None:
    """Draw a polyline as dashes of ``dash_length`` pixels separated by ``gap_length``."""
    contour = _resample_polyline(points)
    if len(contour) < 2:
        return
    # Points are 1 pixel apart, so point count is dash length
    period = dash_length + gap_length
    for i in range(0, len(contour), period):
        segment = contour[i:i + dash_length + 1]
        if len(segment) >= 2:
            draw.line([tuple(p) for p in segment], fill=fill, width=width)


def _circle(draw: ImageDraw.ImageDraw, center, radius: float, **kwargs) -> None:
    x, y = center
    draw.ellipse((x - radius, y - radius, x + radius, y + radius), **kwargs)


def draw_overlays(
    layer: np.ndarray,
    points: list[Point],
    selected_id: Optional[str],
    view: ViewSettings,
    active_handle: Optional[str] = None,
) -> None:
    """Center markers for every point plus outline and handles for the selected one.

    Args:
        active_handle: "focus" while the focus handle is being dragged
    """
    h, w = layer.shape[:2]
    overlay = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    for point in points:
        center = view.canvas_to_screen(point.x, point.y)
        selected = point.id == selected_id
        try:
            marker_fill = hex_to_rgba(point.color)
        except InvalidColorFormat:
            marker_fill = defaults.UNSELECTED_STROKE
        _circle(
            draw, center, defaults.MARKER_RADIUS,
            fill=marker_fill,
            outline=defaults.SELECTED_STROKE if selected else defaults.UNSELECTED_STROKE,
            width=3 if selected else 2,
        )

    selected = next((p for p in points if p.id == selected_id), None)
    if selected is not None:
        center = view.canvas_to_screen(selected.x, selected.y)
        outline = shape_for(selected).outline() * view.zoom + np.array(center)
        draw_dashed_polyline(draw, outline, *defaults.OUTLINE_DASH, fill=defaults.OUTLINE_COLOR, width=1)

        handle = view.canvas_to_screen(*selected.radius_handle)
        _circle(draw, handle, defaults.RADIUS_HANDLE_RADIUS, fill=defaults.SELECTED_STROKE)

        focus = view.canvas_to_screen(*selected.focus)
        draw.line([center, focus], fill=defaults.FOCUS_LINE_COLOR, width=1)
        active = active_handle == "focus"
        _circle(
            draw, focus,
            defaults.FOCUS_HANDLE_ACTIVE_RADIUS if active else defaults.FOCUS_HANDLE_RADIUS,
            fill=defaults.SELECTED_STROKE if active else defaults.UNSELECTED_STROKE,
            outline=defaults.SELECTED_STROKE,
            width=2,
        )

    arr = np.asarray(overlay, dtype=np.float32) / 255.0
    composite_over(layer, arr[..., :3], arr[..., 3])


# ---------------------------------------------------------------------------
# Pass 5: labels
# ---------------------------------------------------------------------------

def load_font(family: str, size: int):
    try:
        return ImageFont.truetype(family, size)
    except OSError:
        logger.debug("Font %r not found, using Pillow default", family)
        return ImageFont.load_default(size=size)


def _text_mask(text: str, font) -> Image.Image:
    left, top, right, bottom = font.getbbox(text)
    mask = Image.new("L", (max(right - left, 1), max(bottom - top, 1)), 0)
    ImageDraw.Draw(mask).text((-left, -top), text, fill=255, font=font)
    return mask


def render_labels(labels: LabelSettings, size: tuple[int, int]) -> np.ndarray:
    """Four edge labels on a transparent layer. Right reads top-down, left bottom-up."""
    w, h = size
    layer = np.zeros((h, w, 4), dtype=np.float32)
    texts = {side: text for side, text in labels.texts().items() if text}
    if not texts:
        return layer

    try:
        color = hex_to_unit_rgb(labels.color)
    except InvalidColorFormat:
        logger.warning("Invalid label color %r, using default", labels.color)
        color = hex_to_unit_rgb(defaults.DEFAULT_LABEL_COLOR)

    font = load_font(labels.font_family, labels.font_size)
    margin = defaults.LABEL_MARGIN
    alpha = Image.new("L", (w, h), 0)

    for side, text in texts.items():
        mask = _text_mask(text, font)
        if side == "right":
            mask = mask.rotate(-90, expand=True)
        elif side == "left":
            mask = mask.rotate(90, expand=True)
        mw, mh = mask.size

        if side == "top":
            pos = ((w - mw) // 2, margin)
        elif side == "bottom":
            pos = ((w - mw) // 2, h - margin - mh)
        elif side == "right":
            pos = (w - margin - mw, (h - mh) // 2)
        else:
            pos = (margin, (h - mh) // 2)
        placed = Image.new("L", (w, h), 0)
        placed.paste(mask, pos)
        alpha = ImageChops.lighter(alpha, placed)

    a = np.asarray(alpha, dtype=np.float32) / 255.0
    layer[..., :3] = color
    layer[..., 3] = a
    return layer


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------

def render_frame(
    state: AppState,
    images: Optional[ImageCache] = None,
    show_overlays: Optional[bool] = None,
    active_handle: Optional[str] = None,
) -> RenderResult:
    """Render every pass for the current state.

    Args:
        state: Points, view, display and label settings
        images: Decoded image lookup; missing or pending images are skipped
        show_overlays: Override ``state.display.show_overlays`` (export passes False)
        active_handle: Handle currently being dragged, for emphasis
    """
    display = state.display
    view = state.view
    w, h = display.canvas_size
    layer = np.zeros((h, w, 3), dtype=np.float32)

    draw_background(layer, display)
    if display.show_grid:
        draw_grid(layer, view, display)
    if display.show_crosshair:
        draw_crosshair(layer)

    for point in state.points:
        draw_point(layer, point, view)

    if images is not None:
        for point in state.points:
            image = images.get(point.image)
            if image is not None:
                draw_image_fill(layer, point, image, view)

    overlays = display.show_overlays if show_overlays is None else show_overlays
    if overlays:
        draw_overlays(layer, state.points, state.selected_id, view, active_handle)

    np.clip(layer, 0.0, 1.0, out=layer)
    return RenderResult(gradient_layer=layer, label_layer=render_labels(state.labels, (w, h)))
