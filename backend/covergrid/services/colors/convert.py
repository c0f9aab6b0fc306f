"""
Color space conversion for the dominant color pipeline.

Pixels are analysed in HSL, with every component normalized to [0, 1].
The scalar functions work on single colors; the ``*_array`` variants run the
same arithmetic over whole images with numpy and produce identical results.
"""

import math
import re
from typing import Sequence, Tuple

import numpy as np

RGB = Tuple[int, int, int]
HSL = Tuple[float, float, float]

HEX_RE = re.compile(r"#?[0-9a-fA-F]{6}")


def rgb_to_hsl(r: int, g: int, b: int) -> HSL:
    """Convert 8-bit RGB channels to an (h, s, l) triple."""
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    l = (mx + mn) / 2

    if mx == mn:
        return 0.0, 0.0, l  # achromatic

    d = mx - mn
    s = d / (2 - mx - mn) if l > 0.5 else d / (mx + mn)
    if mx == r:
        h = (g - b) / d + (6 if g < b else 0)
    elif mx == g:
        h = (b - r) / d + 2
    else:
        h = (r - g) / d + 4
    return h / 6, s, l


def _hue_to_rgb(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def _to_byte(x: float) -> int:
    # Round half up, like the browser's Math.round
    return min(255, max(0, int(math.floor(x * 255 + 0.5))))


def hsl_to_rgb(point: Sequence[float]) -> RGB:
    """Convert an (h, s, l) triple back to 8-bit RGB channels."""
    h, s, l = point
    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = _hue_to_rgb(p, q, h + 1 / 3)
        g = _hue_to_rgb(p, q, h)
        b = _hue_to_rgb(p, q, h - 1 / 3)
    return _to_byte(r), _to_byte(g), _to_byte(b)


def hsl_to_hex(point: Sequence[float]) -> str:
    """Convert an (h, s, l) triple to a lowercase ``#rrggbb`` string."""
    return rgb_to_hex(hsl_to_rgb(point))


def rgb_to_hex(rgb: Sequence[int]) -> str:
    """Convert RGB channels to a lowercase hex color string."""
    r, g, b = [int(x) for x in rgb]
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> RGB:
    """Convert hex color string to RGB tuple."""
    if not HEX_RE.fullmatch(hex_color):
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    value = hex_color.lstrip("#")
    return tuple(int(value[i:i+2], 16) for i in (0, 2, 4))


def rgb_array_to_hsl(pixels: np.ndarray) -> np.ndarray:
    """
    Convert an (N, 3+) array of 8-bit pixels to an (N, 3) float64 HSL array.

    Any channels past the third (alpha) are ignored.
    """
    rgb = np.asarray(pixels)[:, :3].astype(np.float64) / 255.0
    if rgb.shape[0] == 0:
        return np.empty((0, 3), dtype=np.float64)

    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    mx = rgb.max(axis=1)
    mn = rgb.min(axis=1)
    l = (mx + mn) / 2
    d = mx - mn
    chromatic = mx != mn

    with np.errstate(divide="ignore", invalid="ignore"):
        s = np.where(l > 0.5, d / (2 - mx - mn), d / (mx + mn))
        h_r = (g - b) / d + np.where(g < b, 6.0, 0.0)
        h_g = (b - r) / d + 2
        h_b = (r - g) / d + 4
        h = np.where(mx == r, h_r, np.where(mx == g, h_g, h_b)) / 6

    return np.column_stack([
        np.where(chromatic, h, 0.0),
        np.where(chromatic, s, 0.0),
        l,
    ])


def _hue_to_rgb_array(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.where(t < 0, t + 1, t)
    t = np.where(t > 1, t - 1, t)
    return np.select(
        [t < 1 / 6, t < 1 / 2, t < 2 / 3],
        [p + (q - p) * 6 * t, q, p + (q - p) * (2 / 3 - t) * 6],
        default=p,
    )


def hsl_array_to_rgb(points: np.ndarray) -> np.ndarray:
    """Convert an (N, 3) HSL array to an (N, 3) uint8 RGB array."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    h, s, l = points[:, 0], points[:, 1], points[:, 2]

    q = np.where(l < 0.5, l * (1 + s), l + s - l * s)
    p = 2 * l - q
    channels = np.column_stack([
        _hue_to_rgb_array(p, q, h + 1 / 3),
        _hue_to_rgb_array(p, q, h),
        _hue_to_rgb_array(p, q, h - 1 / 3),
    ])
    channels = np.where((s == 0)[:, None], l[:, None], channels)

    return np.clip(np.floor(channels * 255 + 0.5), 0, 255).astype(np.uint8)
