"""
K-means clustering of HSL points.

Partitions the perceptual points of one image into a fixed number of groups
by iterative centroid refinement. Seeding and empty-cluster reseeding draw
from an injectable ``numpy.random.Generator`` so runs can be reproduced.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from loguru import logger

from covergrid.config import config


@dataclass
class KMeansRun:
    """Outcome of one clustering run."""
    clusters: List[np.ndarray]
    centroids: np.ndarray
    iterations: int
    converged: bool


def _empty_group() -> np.ndarray:
    return np.empty((0, 3), dtype=np.float64)


def assign_to_centroids(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """
    Label each point with the index of its nearest centroid.

    Distance is Euclidean in (h, s, l) space; ties resolve to the lowest
    centroid index.
    """
    distances = np.empty((points.shape[0], centroids.shape[0]), dtype=np.float64)
    for j, centroid in enumerate(centroids):
        distances[:, j] = np.sqrt(np.sum((points - centroid) ** 2, axis=1))
    return np.argmin(distances, axis=1)


def run_kmeans(points: np.ndarray,
               k: int,
               rng: Optional[np.random.Generator] = None,
               tolerance: Optional[float] = None,
               max_iterations: Optional[int] = None) -> KMeansRun:
    """
    Cluster points into exactly ``k`` groups.

    Args:
        points: (N, 3) HSL points
        k: Number of groups to return
        rng: Random source for seeding (fresh generator if omitted)
        tolerance: Largest centroid movement still counted as converged;
            0 requires exact equality
        max_iterations: Hard cap on refinement passes

    Returns:
        KMeansRun whose ``clusters`` holds k arrays (some possibly empty)
        that together contain every input point exactly once

    Raises:
        ValueError: If k or max_iterations is below 1
    """
    if k < 1:
        raise ValueError(f"Cluster count must be positive, got {k}")

    tolerance = config.KMEANS_TOLERANCE if tolerance is None else tolerance
    max_iterations = config.KMEANS_MAX_ITERATIONS if max_iterations is None else max_iterations
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}")

    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    n_points = points.shape[0]
    if n_points == 0:
        logger.debug("No points to cluster")
        return KMeansRun(
            clusters=[_empty_group() for _ in range(k)],
            centroids=_empty_group(),
            iterations=0,
            converged=True
        )

    if rng is None:
        rng = np.random.default_rng()

    # More centroids than distinct colors can only produce duplicates
    n_distinct = np.unique(points, axis=0).shape[0]
    k_live = min(k, n_distinct)
    if k_live < k:
        logger.debug(f"Capping k={k} at {k_live} distinct points")

    centroids = points[rng.integers(0, n_points, size=k_live)].copy()
    clusters: List[np.ndarray] = []
    converged = False
    iterations = 0

    while iterations < max_iterations:
        iterations += 1
        labels = assign_to_centroids(points, centroids)
        clusters = [points[labels == j] for j in range(k_live)]

        new_centroids = centroids.copy()
        occupied = np.zeros(k_live, dtype=bool)
        for j, members in enumerate(clusters):
            if members.shape[0] == 0:
                # Stays empty in this pass; moves for the next one
                new_centroids[j] = points[rng.integers(0, n_points)]
            else:
                new_centroids[j] = members.mean(axis=0)
                occupied[j] = True

        shift = np.max(np.abs(new_centroids - centroids), axis=1)
        if np.all(shift[occupied] <= tolerance):
            converged = True
            break
        centroids = new_centroids

    if not converged:
        logger.warning(
            f"K-means stopped at iteration cap {max_iterations} without converging "
            f"({n_points} points, k={k_live})"
        )
    else:
        logger.debug(f"K-means converged after {iterations} iterations ({n_points} points, k={k_live})")

    clusters.extend(_empty_group() for _ in range(k - k_live))
    return KMeansRun(
        clusters=clusters,
        centroids=centroids,
        iterations=iterations,
        converged=converged
    )


def cluster_points(points: np.ndarray,
                   k: int,
                   rng: Optional[np.random.Generator] = None,
                   tolerance: Optional[float] = None,
                   max_iterations: Optional[int] = None) -> List[np.ndarray]:
    """Cluster points and return only the k groups."""
    return run_kmeans(points, k, rng=rng, tolerance=tolerance, max_iterations=max_iterations).clusters
