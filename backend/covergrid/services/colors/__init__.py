"""
CoverGrid Colors Module

Dominant color extraction for album covers: HSL conversion, k-means
clustering and a saturation/lightness weighted vote per cluster.
"""

from .convert import (
    rgb_to_hsl, hsl_to_hex, hsl_to_rgb, rgb_to_hex, hex_to_rgb,
    rgb_array_to_hsl, hsl_array_to_rgb
)
from .clustering import KMeansRun, run_kmeans, cluster_points
from .dominant import point_weights, select_dominant
from .extraction import extract_dominant_colors, dominant_color

__all__ = [
    'rgb_to_hsl', 'hsl_to_hex', 'hsl_to_rgb', 'rgb_to_hex', 'hex_to_rgb',
    'rgb_array_to_hsl', 'hsl_array_to_rgb',
    'KMeansRun', 'run_kmeans', 'cluster_points',
    'point_weights', 'select_dominant',
    'extract_dominant_colors', 'dominant_color'
]
