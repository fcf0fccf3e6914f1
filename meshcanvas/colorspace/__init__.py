"""Color math for meshcanvas.

This module provides:
- Hex <-> RGB parsing and formatting
- RGB <-> HSV conversion (hue degrees, saturation/value percent)
- Linear interpolation of colors and alpha values
- Float helpers for the numpy render pipeline

Example:
    from meshcanvas.colorspace import hex_to_rgb, lerp_color

    hex_to_rgb("#3b82f6")                    # (59, 130, 246)
    lerp_color("#000000", "#ffffff", 0.5)    # "#808080"
"""

from .conversions import (
    RGB,
    HSV,
    is_valid_hex,
    hex_to_rgb,
    rgb_to_hex,
    normalize_hex,
    rgb_to_hsv,
    hsv_to_rgb,
    lerp,
    lerp_rgb,
    lerp_color,
    lerp_alpha,
    hex_to_unit_rgb,
    hex_to_rgba,
)

__all__ = [
    "RGB",
    "HSV",
    "is_valid_hex",
    "hex_to_rgb",
    "rgb_to_hex",
    "normalize_hex",
    "rgb_to_hsv",
    "hsv_to_rgb",
    "lerp",
    "lerp_rgb",
    "lerp_color",
    "lerp_alpha",
    "hex_to_unit_rgb",
    "hex_to_rgba",
]
