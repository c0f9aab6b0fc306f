"""
Dominant color extraction for album covers.

Chains the pipeline stages for one image:
pixels -> HSL points -> k-means clusters -> one weighted-vote color per cluster.
"""

from typing import List, Optional

import numpy as np
from loguru import logger

from covergrid.config import config
from .clustering import run_kmeans
from .convert import rgb_array_to_hsl
from .dominant import select_dominant
from ..observability import performance_monitor


def downsample_pixels(pixels: np.ndarray, max_samples: int, rng_seed: int = 42) -> np.ndarray:
    """
    Deterministically subsample pixels, keeping scan order.

    A ``max_samples`` of 0 (or a pixel count already within the limit)
    returns the input unchanged.
    """
    count = pixels.shape[0]
    if max_samples <= 0 or count <= max_samples:
        return pixels
    rng = np.random.default_rng(rng_seed)
    indices = np.sort(rng.choice(count, size=max_samples, replace=False))
    logger.debug(f"Downsampled {count} pixels to {max_samples}")
    return pixels[indices]


def extract_dominant_colors(pixels: np.ndarray,
                            k: Optional[int] = None,
                            rng: Optional[np.random.Generator] = None,
                            tolerance: Optional[float] = None,
                            max_iterations: Optional[int] = None,
                            max_samples: Optional[int] = None) -> List[Optional[str]]:
    """
    Compute one dominant color per cluster for an image.

    Args:
        pixels: (N, 3) or (N, 4) uint8 samples in row-major order; alpha ignored
        k: Number of clusters (config default 5)
        rng: Random source for cluster seeding
        tolerance: Centroid convergence tolerance
        max_iterations: Iteration cap for clustering
        max_samples: Optional pixel budget (0 disables)

    Returns:
        List of k entries, each a ``#rrggbb`` string or None for an empty cluster
    """
    k = config.CLUSTER_COUNT if k is None else k
    max_samples = config.MAX_SAMPLES if max_samples is None else max_samples

    pixels = np.asarray(pixels, dtype=np.uint8)
    if pixels.ndim != 2 or pixels.shape[1] < 3:
        raise ValueError(f"Expected (N, 3) or (N, 4) pixel samples, got shape {pixels.shape}")
    pixels = downsample_pixels(pixels, max_samples)

    with performance_monitor("color_conversion", pixel_count=pixels.shape[0]):
        points = rgb_array_to_hsl(pixels)

    with performance_monitor("color_clustering", pixel_count=points.shape[0], cluster_count=k):
        result = run_kmeans(points, k, rng=rng, tolerance=tolerance, max_iterations=max_iterations)

    with performance_monitor("dominant_selection", pixel_count=points.shape[0], cluster_count=k):
        colors = [select_dominant(cluster) for cluster in result.clusters]

    logger.debug(f"Dominant colors per cluster: {colors} "
                 f"(iterations={result.iterations}, converged={result.converged})")
    return colors


def dominant_color(pixels: np.ndarray, **kwargs) -> Optional[str]:
    """Representative color of an image: the first cluster's dominant color."""
    return extract_dominant_colors(pixels, **kwargs)[0]
