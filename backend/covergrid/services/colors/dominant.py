"""
Dominant color selection.

Each cluster votes for one representative hex color. Points vote with a
weight that favours saturated, mid-lightness colors, and votes pool on the
exact hex string a point converts to.
"""

from typing import Optional

import numpy as np

from .convert import hsl_array_to_rgb, rgb_to_hex


def point_weights(points: np.ndarray) -> np.ndarray:
    """Vote weight per HSL point: saturation * (1 - |0.5 - lightness|)."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return points[:, 1] * (1 - np.abs(0.5 - points[:, 2]))


def select_dominant(cluster: np.ndarray) -> Optional[str]:
    """
    Pick the hex color with the largest pooled weight in a cluster.

    Ties go to the color seen first in scan order, so a cluster whose points
    all carry zero weight (greys) still yields its first color.

    Returns:
        Lowercase ``#rrggbb`` string, or None for an empty cluster
    """
    points = np.asarray(cluster, dtype=np.float64).reshape(-1, 3)
    if points.shape[0] == 0:
        return None

    weights = point_weights(points)
    rgb = hsl_array_to_rgb(points).astype(np.int64)
    codes = (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]

    unique_codes, first_seen, inverse = np.unique(codes, return_index=True, return_inverse=True)
    pooled = np.bincount(inverse.ravel(), weights=weights, minlength=unique_codes.shape[0])

    scan_order = np.argsort(first_seen)
    best = scan_order[np.argmax(pooled[scan_order])]
    code = int(unique_codes[best])
    return rgb_to_hex(((code >> 16) & 0xFF, (code >> 8) & 0xFF, code & 0xFF))
