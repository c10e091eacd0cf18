"""
filters.py
==========

Edge detector and corrective filters for the **photo_enhance** pipeline.

Input
-----
8‑bit image (numpy.ndarray, dtype=uint8), gray (HxW) or colour (HxWxC).

Output
------
8‑bit image of the same shape.  Every function is pure (no in‑place
mutation) and wrapped with the `@timer` decorator from *io_utils* so that its
runtime appears in the pipeline logs.

Public API
----------
edge_gradient(img, ksize=3) -> NDArray[np.uint8]
apply_median(img, ksize=3) -> NDArray[np.uint8]
apply_unsharp(img, sigma=10.0, amount=1.7) -> NDArray[np.uint8]
"""

from __future__ import annotations

import cv2
import numpy as np

from io_utils import timer

__all__ = [
    "MEDIAN_KSIZE",
    "UNSHARP_SIGMA",
    "UNSHARP_AMOUNT",
    "edge_gradient",
    "apply_median",
    "apply_unsharp",
]

MEDIAN_KSIZE: int = 3
UNSHARP_SIGMA: float = 10.0
# weight of the original image; the blurred copy gets (1 - amount)
UNSHARP_AMOUNT: float = 1.7


# --------------------------------------------------------------------------- #
# Input validation helper
# --------------------------------------------------------------------------- #
def _validate_input(img: np.ndarray) -> None:
    """Common input validation for all filter functions."""
    if img.dtype != np.uint8:
        raise ValueError("Input image must be dtype uint8.")
    if img.ndim not in (2, 3):
        raise ValueError("Input image must be HxW or HxWxC.")


# --------------------------------------------------------------------------- #
# Edge detection
# --------------------------------------------------------------------------- #
@timer
def edge_gradient(
    img: np.ndarray,
    ksize: int = 3,
) -> np.ndarray:
    """
    Sobel edge-gradient magnitude approximation.

    Horizontal and vertical derivatives are taken in 16-bit signed precision,
    converted to absolute 8-bit values and blended with equal 0.5 weights.

    Parameters
    ----------
    img : np.ndarray
        8-bit input image.
    ksize : int, default 3
        Sobel operator aperture size (1, 3, 5, or 7).

    Returns
    -------
    np.ndarray
        8-bit gradient image, same shape as *img*.
    """
    _validate_input(img)

    if ksize not in (1, 3, 5, 7):
        raise ValueError("ksize must be one of {1,3,5,7}.")

    grad_x = cv2.Sobel(img, ddepth=cv2.CV_16S, dx=1, dy=0, ksize=ksize)
    grad_y = cv2.Sobel(img, ddepth=cv2.CV_16S, dx=0, dy=1, ksize=ksize)

    abs_x = cv2.convertScaleAbs(grad_x)
    abs_y = cv2.convertScaleAbs(grad_y)

    return cv2.addWeighted(abs_x, 0.5, abs_y, 0.5, 0)


# --------------------------------------------------------------------------- #
# Corrective filters
# --------------------------------------------------------------------------- #
@timer
def apply_median(
    img: np.ndarray,
    ksize: int = MEDIAN_KSIZE,
) -> np.ndarray:
    """
    Apply median filtering for noise suppression.

    Parameters
    ----------
    img : np.ndarray
        8-bit input image.
    ksize : int, default 3
        Median filter kernel size. Must be odd.

    Returns
    -------
    np.ndarray
        8-bit median filtered image.
    """
    _validate_input(img)

    if ksize < 3 or ksize % 2 == 0:
        raise ValueError("ksize must be an odd integer ≥ 3.")

    return cv2.medianBlur(img, ksize)


@timer
def apply_unsharp(
    img: np.ndarray,
    sigma: float = UNSHARP_SIGMA,
    amount: float = UNSHARP_AMOUNT,
) -> np.ndarray:
    """
    Unsharp mask: ``amount * img + (1 - amount) * gaussian(img, sigma)``.

    The Gaussian kernel size is derived from *sigma* by OpenCV and the blend
    saturates to [0, 255].

    Parameters
    ----------
    img : np.ndarray
        8-bit input image.
    sigma : float, default 10.0
        Gaussian standard deviation.
    amount : float, default 1.7
        Weight of the original image (> 1 sharpens).

    Returns
    -------
    np.ndarray
        8-bit sharpened image.
    """
    _validate_input(img)

    if sigma <= 0:
        raise ValueError("sigma must be positive.")

    smoothed = cv2.GaussianBlur(img, (0, 0), sigma)
    return cv2.addWeighted(img, amount, smoothed, 1.0 - amount, 0)
