"""
histogram.py
============

Intensity histogram, dynamic-range measurement and contrast stretching.

The occupied range of an image is bounded by the first intensity (from each
end of the histogram) whose pixel count exceeds `MIN_BIN_COUNT`.  When no bin
qualifies, both bounds fall back to 0.

Public API
----------
histogram(img) -> NDArray[np.int64]              # 256 bins
get_low_bound(hist, min_count=5000) -> int
get_high_bound(hist, min_count=5000) -> int
check_range(img, min_count=5000) -> float        # percentage
contrast_stretch(img, min_count=5000, integer_scale=True) -> NDArray[np.uint8]
"""

from __future__ import annotations

import logging

import numpy as np

from io_utils import timer
from local_stats import intensity_channel

__all__ = [
    "N_BINS",
    "MIN_BIN_COUNT",
    "DegenerateHistogram",
    "histogram",
    "get_low_bound",
    "get_high_bound",
    "check_range",
    "contrast_stretch",
]

logger = logging.getLogger("histogram")
logger.setLevel(logging.INFO)

N_BINS: int = 256
# pixels a bin must strictly exceed to count as occupied
MIN_BIN_COUNT: int = 5000


class DegenerateHistogram(ValueError):
    """Occupied range is empty (high <= low); stretching would divide by zero."""


def histogram(img: np.ndarray) -> np.ndarray:
    """
    Count every pixel of the analysis channel per intensity value.

    Returns
    -------
    np.ndarray
        (256,) int64 counts; sums to rows*cols.
    """
    chan = intensity_channel(img)
    if chan.dtype != np.uint8:
        raise ValueError("Input image must be dtype uint8.")
    return np.bincount(chan.ravel(), minlength=N_BINS).astype(np.int64)


def get_low_bound(hist: np.ndarray, min_count: int = MIN_BIN_COUNT) -> int:
    """First index (ascending) whose count exceeds *min_count*, else 0."""
    occupied = np.flatnonzero(np.asarray(hist) > min_count)
    return int(occupied[0]) if occupied.size else 0


def get_high_bound(hist: np.ndarray, min_count: int = MIN_BIN_COUNT) -> int:
    """First index (descending) whose count exceeds *min_count*, else 0."""
    occupied = np.flatnonzero(np.asarray(hist) > min_count)
    return int(occupied[-1]) if occupied.size else 0


@timer
def check_range(img: np.ndarray, min_count: int = MIN_BIN_COUNT) -> float:
    """Occupied intensity span as a percentage of 0‑255."""
    hist = histogram(img)
    low = get_low_bound(hist, min_count)
    high = get_high_bound(hist, min_count)
    return (high - low) * 100.0 / 255.0


@timer
def contrast_stretch(
    img: np.ndarray,
    min_count: int = MIN_BIN_COUNT,
    integer_scale: bool = True,
) -> np.ndarray:
    """
    Linearly remap the occupied range [low, high] onto [0, 255].

    ``new = (value - low) * scale`` with ``scale = 255 // (high - low)``
    (``255 / (high - low)`` when *integer_scale* is False).  The result is
    written identically to every channel and saturated to uint8.

    Raises
    ------
    DegenerateHistogram
        If high <= low.
    """
    hist = histogram(img)
    low = get_low_bound(hist, min_count)
    high = get_high_bound(hist, min_count)
    if high <= low:
        raise DegenerateHistogram(f"cannot stretch: low={low}, high={high}")

    span = high - low
    scale = 255 // span if integer_scale else 255.0 / span
    logger.info(f"contrast stretch: low={low}, high={high}, scale={scale}")

    chan = intensity_channel(img).astype(np.float64)
    stretched = np.clip(np.rint((chan - low) * scale), 0, 255).astype(np.uint8)

    if img.ndim == 3:
        return np.repeat(stretched[..., None], img.shape[2], axis=2)
    return stretched
