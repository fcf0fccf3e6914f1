"""Flatten render layers and encode them as PNG."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from meshcanvas import defaults
from meshcanvas.colorspace import hex_to_unit_rgb
from meshcanvas.errors import InvalidColorFormat
from meshcanvas.render import RenderResult, composite_over

logger = logging.getLogger(__name__)


def flatten_layers(result: RenderResult, background: str = defaults.DEFAULT_BACKGROUND_COLOR) -> np.ndarray:
    """Background fill, then the gradient layer, then the label layer.

    Returns:
        (H, W, 3) uint8 array
    """
    h, w = result.gradient_layer.shape[:2]
    try:
        base_color = hex_to_unit_rgb(background)
    except InvalidColorFormat:
        logger.warning("Invalid export background %r, using default", background)
        base_color = hex_to_unit_rgb(defaults.DEFAULT_BACKGROUND_COLOR)

    out = np.empty((h, w, 3), dtype=np.float32)
    out[...] = base_color

    gradient = result.gradient_layer
    if gradient.shape[2] == 4:
        composite_over(out, gradient[..., :3], gradient[..., 3])
    else:
        out[...] = gradient

    labels = result.label_layer
    composite_over(out, labels[..., :3], labels[..., 3])
    return (np.clip(out, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def to_pil(result: RenderResult, background: str = defaults.DEFAULT_BACKGROUND_COLOR) -> Image.Image:
    return Image.fromarray(flatten_layers(result, background))


def export_png(
    result: RenderResult,
    background: str = defaults.DEFAULT_BACKGROUND_COLOR,
    path: Optional[Union[str, Path]] = None,
) -> bytes:
    """Encode the flattened frame as PNG.

    Args:
        result: Rendered layers
        background: Fill under the gradient layer
        path: If given, the PNG is also written there

    Returns:
        PNG bytes
    """
    buf = io.BytesIO()
    to_pil(result, background).save(buf, format="PNG")
    data = buf.getvalue()
    if path is not None:
        path = Path(path)
        path.write_bytes(data)
        logger.info("Exported %dx%d PNG to %s", result.size[0], result.size[1], path)
    return data
