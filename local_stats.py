"""
local_stats.py
==============

3×3 windowed statistics shared by the noise and blur estimators.

Public API
----------
intensity_channel(img) -> NDArray
windowed_mean(img) -> NDArray
windowed_variance(img, mean_grid, row, col) -> float
interior_variance(img, mean_grid=None) -> NDArray[np.float64]

Notes
-----
* All coordinates follow (row, col) order.
* Analysis reads a single representative channel: the image itself when it is
  HxW, channel 0 when it is HxWxC.
* The variance is the *population* variance of the 9 samples (divisor 9)
  around the box-filter mean at the centre pixel.
* Border pixels (row/col 0 and last) never get a variance; the returned map
  has shape (rows-2, cols-2) and index [i, j] belongs to pixel (i+1, j+1).
"""

from __future__ import annotations

import cv2
import numpy as np
from skimage.util import view_as_windows

__all__ = [
    "WINDOW",
    "intensity_channel",
    "windowed_mean",
    "windowed_variance",
    "interior_variance",
]

WINDOW: int = 3
_HW = WINDOW // 2


def intensity_channel(img: np.ndarray) -> np.ndarray:
    """Return the HxW channel used for analysis."""
    if img.ndim == 2:
        return img
    if img.ndim == 3:
        return np.ascontiguousarray(img[..., 0])
    raise ValueError("Input image must be HxW or HxWxC.")


def _check_size(chan: np.ndarray) -> None:
    rows, cols = chan.shape
    if rows < WINDOW or cols < WINDOW:
        raise ValueError(f"Image must be at least {WINDOW}x{WINDOW}, got {rows}x{cols}.")


def windowed_mean(img: np.ndarray) -> np.ndarray:
    """
    3×3 box-filter mean of the analysis channel.

    The result keeps the input dtype, so for 8-bit images every mean is
    rounded to the nearest integer by OpenCV.
    """
    chan = intensity_channel(img)
    _check_size(chan)
    return cv2.blur(chan, (WINDOW, WINDOW))


def windowed_variance(img: np.ndarray, mean_grid: np.ndarray, row: int, col: int) -> float:
    """
    Population variance of the 3×3 neighbourhood of (row, col) around
    ``mean_grid[row, col]``.

    Raises
    ------
    ValueError
        If (row, col) is not an interior pixel.
    """
    chan = intensity_channel(img)
    rows, cols = chan.shape
    if not (_HW <= row < rows - _HW and _HW <= col < cols - _HW):
        raise ValueError(f"({row}, {col}) is not an interior pixel of a {rows}x{cols} image.")

    window = chan[row - _HW:row + _HW + 1, col - _HW:col + _HW + 1].astype(np.float64)
    mean = float(mean_grid[row, col])
    return float(((window - mean) ** 2).sum() / window.size)


def interior_variance(img: np.ndarray, mean_grid: np.ndarray | None = None) -> np.ndarray:
    """
    Vectorised `windowed_variance` for every interior pixel.

    Parameters
    ----------
    img : np.ndarray
        Image (HxW or HxWxC).
    mean_grid : np.ndarray, optional
        Output of `windowed_mean`; computed when omitted.

    Returns
    -------
    np.ndarray
        (rows-2, cols-2) float64 variance map.
    """
    chan = intensity_channel(img)
    _check_size(chan)
    if mean_grid is None:
        mean_grid = windowed_mean(chan)

    windows = view_as_windows(chan.astype(np.float64), (WINDOW, WINDOW))
    centre_mean = mean_grid[_HW:-_HW, _HW:-_HW].astype(np.float64)[..., None, None]
    return ((windows - centre_mean) ** 2).sum(axis=(2, 3)) / (WINDOW * WINDOW)
