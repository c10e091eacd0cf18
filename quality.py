"""
quality.py
==========

Noise and blur estimators built on the 3×3 local variance map.

Both metrics count interior pixels whose local variance passes a fixed test
and express the count as a percentage of the *whole* image (border pixels
included in the denominator even though they are never tested).  Passing
``denominator="interior"`` normalises by the interior pixel count instead.

Public API
----------
calculate_noise(img, threshold=NOISE_VARIANCE_THRESHOLD,
                denominator="full") -> float
calculate_blur(gradient, threshold=BLUR_VARIANCE_THRESHOLD,
               denominator="full") -> float

`calculate_blur` expects the output of `filters.edge_gradient`, not the raw
image.
"""

from __future__ import annotations

import numpy as np

from io_utils import timer
from local_stats import intensity_channel, interior_variance, windowed_mean

__all__ = [
    "NOISE_VARIANCE_THRESHOLD",
    "BLUR_VARIANCE_THRESHOLD",
    "DENOMINATORS",
    "calculate_noise",
    "calculate_blur",
]

# local variance (intensity² units) above which a pixel counts as noisy
NOISE_VARIANCE_THRESHOLD: float = 150.0
# local gradient variance (intensity² units) at or below which a pixel counts as blurry
BLUR_VARIANCE_THRESHOLD: float = 50.0

DENOMINATORS = ("full", "interior")


def _percentage(count: int, shape: tuple, denominator: str) -> float:
    rows, cols = shape[:2]
    if denominator == "full":
        total = rows * cols
    elif denominator == "interior":
        total = (rows - 2) * (cols - 2)
    else:
        raise ValueError(f"denominator must be one of {DENOMINATORS}, got {denominator!r}")
    return count / total * 100.0


@timer
def calculate_noise(
    img: np.ndarray,
    threshold: float = NOISE_VARIANCE_THRESHOLD,
    denominator: str = "full",
) -> float:
    """
    Percentage of pixels whose 3×3 variance is strictly greater than *threshold*.

    Parameters
    ----------
    img : np.ndarray
        8-bit image (HxW or HxWxC).
    threshold : float, default 150
        Variance threshold.
    denominator : {'full', 'interior'}, default 'full'

    Returns
    -------
    float
        Noise percentage in [0, 100].
    """
    chan = intensity_channel(img)
    var = interior_variance(chan, windowed_mean(chan))
    count = int(np.count_nonzero(var > threshold))
    return _percentage(count, chan.shape, denominator)


@timer
def calculate_blur(
    gradient: np.ndarray,
    threshold: float = BLUR_VARIANCE_THRESHOLD,
    denominator: str = "full",
) -> float:
    """
    Percentage of pixels whose 3×3 gradient variance is at most *threshold*.

    Low variance on the edge-gradient image means weak or missing edges.
    """
    chan = intensity_channel(gradient)
    var = interior_variance(chan, windowed_mean(chan))
    count = int(np.count_nonzero(var <= threshold))
    return _percentage(count, chan.shape, denominator)
