"""Hex / RGB / HSV conversions and color interpolation.

Channel conventions:
    RGB: integers 0..255
    HSV: hue in degrees 0..360, saturation and value in percent 0..100
    Hex: "#rrggbb" (leading '#' optional on input, case-insensitive)
"""

from __future__ import annotations

import math
import re

import numpy as np

from meshcanvas.errors import InvalidColorFormat

RGB = tuple[int, int, int]
HSV = tuple[float, float, float]

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")


def is_valid_hex(value: object) -> bool:
    """Return True if value is a 6-digit hex color string."""
    return isinstance(value, str) and _HEX_RE.match(value) is not None


def hex_to_rgb(value: str) -> RGB:
    """Parse a 6-digit hex color.

    Raises:
        InvalidColorFormat: if value is not six hex digits (with optional '#').
    """
    if not isinstance(value, str):
        raise InvalidColorFormat(value)
    match = _HEX_RE.match(value)
    if match is None:
        raise InvalidColorFormat(value)
    return (int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16))


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _clamp_channel(c: float) -> int:
    return max(0, min(255, _round_half_up(c)))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Format RGB channels as lowercase '#rrggbb' (channels clamped to 0..255)."""
    return "#" + "".join(f"{_clamp_channel(c):02x}" for c in (r, g, b))


def normalize_hex(value: str) -> str:
    """Return the canonical lowercase '#rrggbb' form of a hex color."""
    return rgb_to_hex(*hex_to_rgb(value))


def rgb_to_hsv(r: float, g: float, b: float) -> HSV:
    """RGB (0..255) -> HSV (h degrees, s and v percent)."""
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    cmax = max(r, g, b)
    cmin = min(r, g, b)
    diff = cmax - cmin

    h = 0.0
    s = 0.0 if cmax == 0 else diff / cmax
    v = cmax

    if diff != 0:
        if cmax == r:
            h = ((g - b) / diff + (6.0 if g < b else 0.0)) / 6.0
        elif cmax == g:
            h = ((b - r) / diff + 2.0) / 6.0
        else:
            h = ((r - g) / diff + 4.0) / 6.0

    return (h * 360.0, s * 100.0, v * 100.0)


def hsv_to_rgb(h: float, s: float, v: float) -> RGB:
    """HSV (h degrees, s and v percent) -> RGB rounded to integers."""
    h = (h % 360.0) / 360.0
    s = min(max(s, 0.0), 100.0) / 100.0
    v = min(max(v, 0.0), 100.0) / 100.0

    i = int(np.floor(h * 6.0))
    f = h * 6.0 - i
    p = v * (1.0 - s)
    q = v * (1.0 - f * s)
    t = v * (1.0 - (1.0 - f) * s)

    r, g, b = [
        (v, t, p),
        (q, v, p),
        (p, v, t),
        (p, q, v),
        (t, p, v),
        (v, p, q),
    ][i % 6]
    return (_clamp_channel(r * 255.0), _clamp_channel(g * 255.0), _clamp_channel(b * 255.0))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation, t clamped to [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    return a + (b - a) * t


def lerp_rgb(a: RGB, b: RGB, t: float) -> RGB:
    """Component-wise interpolation rounded to the nearest channel value."""
    return tuple(_clamp_channel(lerp(ca, cb, t)) for ca, cb in zip(a, b))  # type: ignore[return-value]


def lerp_color(hex_a: str, hex_b: str, t: float) -> str:
    """Interpolate two hex colors at fraction t."""
    return rgb_to_hex(*lerp_rgb(hex_to_rgb(hex_a), hex_to_rgb(hex_b), t))


def lerp_alpha(a: float, b: float, t: float) -> float:
    """Interpolate two alpha values (0..100), rounded to an integer percent."""
    return float(_round_half_up(lerp(a, b, t)))


def hex_to_unit_rgb(value: str) -> np.ndarray:
    """Hex color -> float32 array of three channels in [0, 1]."""
    return np.asarray(hex_to_rgb(value), dtype=np.float32) / 255.0


def hex_to_rgba(value: str, alpha: int = 255) -> tuple[int, int, int, int]:
    """Hex color -> (r, g, b, a) tuple for PIL drawing."""
    r, g, b = hex_to_rgb(value)
    return (r, g, b, int(alpha))
