"""
test_histogram.py
=================

Histogram, occupancy bounds, range percentage and contrast stretch.
"""

from __future__ import annotations

import numpy as np
import pytest

from histogram import (
    N_BINS,
    DegenerateHistogram,
    check_range,
    contrast_stretch,
    get_high_bound,
    get_low_bound,
    histogram,
)


# --------------------------------------------------------------------------- #
# Test fixtures and utilities
# --------------------------------------------------------------------------- #

def two_level_image(low: int, high: int, extra=None) -> np.ndarray:
    """120×100 image, top half *low*, bottom half *high* (6000 pixels each)."""
    img = np.empty((120, 100), dtype=np.uint8)
    img[:60] = low
    img[60:] = high
    if extra is not None:
        img = np.vstack([img, extra.astype(np.uint8)])
    return img


# --------------------------------------------------------------------------- #
# Histogram
# --------------------------------------------------------------------------- #

class TestHistogram:

    def test_counts_sum_to_pixel_count(self):
        rng = np.random.default_rng(7)
        img = rng.integers(0, 256, size=(50, 60), dtype=np.uint8)
        hist = histogram(img)
        assert hist.shape == (N_BINS,)
        assert hist.sum() == 50 * 60

    def test_idempotent(self):
        rng = np.random.default_rng(8)
        img = rng.integers(0, 256, size=(33, 17), dtype=np.uint8)
        np.testing.assert_array_equal(histogram(img), histogram(img))

    def test_border_pixels_counted(self):
        img = np.zeros((4, 4), dtype=np.uint8)
        img[0, 0] = 9
        hist = histogram(img)
        assert hist[9] == 1
        assert hist[0] == 15

    def test_colour_image_counts_first_channel(self):
        img = np.zeros((10, 10, 3), dtype=np.uint8)
        img[..., 0] = 3
        img[..., 2] = 250
        hist = histogram(img)
        assert hist[3] == 100
        assert hist[250] == 0

    def test_rejects_float_image(self):
        with pytest.raises(ValueError):
            histogram(np.zeros((5, 5), dtype=np.float32))


# --------------------------------------------------------------------------- #
# Bounds & range
# --------------------------------------------------------------------------- #

class TestBounds:

    def test_single_value_histogram(self):
        hist = np.zeros(N_BINS, dtype=np.int64)
        hist[100] = 10000
        assert get_low_bound(hist) == 100
        assert get_high_bound(hist) == 100

    def test_threshold_is_strict(self):
        hist = np.zeros(N_BINS, dtype=np.int64)
        hist[40] = 5000
        hist[60] = 5001
        hist[200] = 5001
        assert get_low_bound(hist) == 60
        assert get_high_bound(hist) == 200

    def test_no_occupied_bin_falls_back_to_zero(self):
        hist = np.full(N_BINS, 10, dtype=np.int64)
        assert get_low_bound(hist) == 0
        assert get_high_bound(hist) == 0

    def test_custom_min_count(self):
        hist = np.zeros(N_BINS, dtype=np.int64)
        hist[[5, 250]] = 11
        assert get_low_bound(hist, min_count=10) == 5
        assert get_high_bound(hist, min_count=10) == 250

    def test_range_of_single_value_image(self):
        img = np.full((100, 100), 128, dtype=np.uint8)
        assert check_range(img) == 0.0

    def test_range_of_two_levels(self):
        assert check_range(two_level_image(0, 255)) == pytest.approx(100.0)
        assert check_range(two_level_image(100, 120)) == pytest.approx(20 * 100 / 255)

    def test_small_image_has_zero_range(self):
        rng = np.random.default_rng(3)
        img = rng.integers(0, 256, size=(10, 10), dtype=np.uint8)
        assert check_range(img) == 0.0


# --------------------------------------------------------------------------- #
# Contrast stretch
# --------------------------------------------------------------------------- #

class TestContrastStretch:

    def test_full_range_image_unchanged(self):
        ramp = np.tile(np.arange(100, dtype=np.uint8), (30, 1))
        img = two_level_image(0, 255, extra=ramp)
        out = contrast_stretch(img)
        np.testing.assert_array_equal(out, img)

    def test_integer_scale(self):
        # span 50 → scale 255 // 50 = 5
        out = contrast_stretch(two_level_image(50, 100))
        assert np.all(out[:60] == 0)
        assert np.all(out[60:] == 250)

    def test_real_scale(self):
        out = contrast_stretch(two_level_image(50, 100), integer_scale=False)
        assert np.all(out[:60] == 0)
        assert np.all(out[60:] == 255)

    def test_values_outside_bounds_saturate(self):
        extra = np.full((10, 100), 200)
        extra[:5] = 10
        out = contrast_stretch(two_level_image(50, 100, extra=extra))
        assert out.dtype == np.uint8
        assert np.all(out[120:125] == 0)
        assert np.all(out[125:] == 255)

    def test_writes_every_channel(self):
        gray = two_level_image(50, 100)
        img = np.stack([gray, np.full_like(gray, 7), np.full_like(gray, 240)], axis=2)
        out = contrast_stretch(img)
        assert out.shape == img.shape
        for c in range(3):
            np.testing.assert_array_equal(out[..., c], contrast_stretch(gray))

    def test_input_not_modified(self):
        img = two_level_image(50, 100)
        before = img.copy()
        contrast_stretch(img)
        np.testing.assert_array_equal(img, before)

    def test_degenerate_histogram(self):
        with pytest.raises(DegenerateHistogram):
            contrast_stretch(np.full((10, 10), 128, dtype=np.uint8))

    def test_degenerate_single_occupied_bin(self):
        with pytest.raises(DegenerateHistogram):
            contrast_stretch(np.full((100, 100), 90, dtype=np.uint8))
