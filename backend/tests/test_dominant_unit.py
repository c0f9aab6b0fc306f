"""
Unit tests for dominant color selection and the extraction pipeline.
"""

import numpy as np
import pytest

from covergrid.config import config
from covergrid.services.colors.convert import hsl_to_hex, rgb_to_hsl
from covergrid.services.colors.dominant import point_weights, select_dominant
from covergrid.services.colors.extraction import (
    downsample_pixels, dominant_color, extract_dominant_colors
)
from covergrid.services.observability import get_metrics_collector

RED = rgb_to_hsl(255, 0, 0)
DARK_RED = rgb_to_hsl(128, 0, 0)


class TestPointWeights:
    """Saturation/lightness vote weight"""

    def test_weights(self):
        points = np.array([RED, (0.0, 0.0, 0.5), (0.0, 1.0, 0.0), (0.0, 0.5, 0.75)])
        np.testing.assert_allclose(point_weights(points), [1.0, 0.0, 0.5, 0.375])


class TestSelectDominant:
    """Weighted vote per cluster"""

    def test_empty_cluster(self):
        assert select_dominant(np.empty((0, 3))) is None

    @pytest.mark.parametrize("point", [RED, DARK_RED, (0.0, 0.0, 0.3), (0.55, 0.4, 0.8)])
    def test_single_point_is_its_own_hex(self, point):
        assert select_dominant(np.array([point])) == hsl_to_hex(point)

    def test_heaviest_color_wins(self):
        assert select_dominant(np.array([DARK_RED, RED])) == "#ff0000"

    def test_votes_pool_on_identical_hex(self):
        nudged = (DARK_RED[0], DARK_RED[1], DARK_RED[2] + 1e-7)
        assert hsl_to_hex(nudged) == hsl_to_hex(DARK_RED) == "#800000"

        # 0.751 + 0.751 outweighs 1.0
        assert select_dominant(np.array([RED, DARK_RED, nudged])) == "#800000"

    def test_zero_weight_ties_go_to_first_seen(self):
        greys = np.array([(0.0, 0.0, 0.3), (0.0, 0.0, 0.6)])
        assert select_dominant(greys) == hsl_to_hex((0.0, 0.0, 0.3))

        assert select_dominant(greys[::-1]) == hsl_to_hex((0.0, 0.0, 0.6))


class TestExtraction:
    """Full pipeline on pixel samples"""

    def test_pure_red_image(self):
        pixels = np.tile(np.array([255, 0, 0, 255], dtype=np.uint8), (64, 1))
        colors = extract_dominant_colors(pixels, k=5, rng=np.random.default_rng(0))

        assert len(colors) == 5
        assert colors[0] == "#ff0000"
        assert all(c is None or c == "#ff0000" for c in colors)
        assert dominant_color(pixels, k=5, rng=np.random.default_rng(1)) == "#ff0000"

    def test_two_color_image(self):
        pixels = np.vstack([
            np.tile(np.array([255, 0, 0], dtype=np.uint8), (30, 1)),
            np.tile(np.array([0, 0, 255], dtype=np.uint8), (30, 1))
        ])
        colors = extract_dominant_colors(pixels, k=2, rng=np.random.default_rng(3))

        assert set(colors) == {"#ff0000", "#0000ff"}

    def test_empty_image_has_no_color(self):
        pixels = np.empty((0, 4), dtype=np.uint8)

        assert extract_dominant_colors(pixels, k=3) == [None, None, None]
        assert dominant_color(pixels) is None

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            extract_dominant_colors(np.zeros(12, dtype=np.uint8))


class TestDownsample:
    """Optional pixel budget"""

    def test_disabled_or_within_budget(self):
        pixels = np.arange(30, dtype=np.uint8).reshape(10, 3)
        assert downsample_pixels(pixels, 0) is pixels
        assert downsample_pixels(pixels, 10) is pixels

    def test_deterministic_subset_in_scan_order(self):
        pixels = np.arange(300, dtype=np.int64).reshape(100, 3)
        first = downsample_pixels(pixels, 10, rng_seed=1)
        second = downsample_pixels(pixels, 10, rng_seed=1)

        assert first.shape == (10, 3)
        np.testing.assert_array_equal(first, second)
        assert np.all(np.diff(first[:, 0]) > 0)

    def test_default_budget_caps_clustered_points(self):
        pixels = np.vstack([
            np.tile(np.array([255, 0, 0], dtype=np.uint8), (20000, 1)),
            np.tile(np.array([0, 0, 255], dtype=np.uint8), (20000, 1))
        ])
        colors = extract_dominant_colors(pixels, k=2, rng=np.random.default_rng(0))

        clustering = [m for m in get_metrics_collector().get_recent_metrics(limit=10)
                      if m["operation_name"] == "color_clustering"]
        assert config.MAX_SAMPLES == 20000
        assert clustering[-1]["pixel_count"] == config.MAX_SAMPLES
        assert set(colors) == {"#ff0000", "#0000ff"}
