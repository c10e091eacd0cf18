"""
io_utils.py
===========

I/O utilities + lightweight timing decorator for the **photo_enhance** project.

The module centralises:

1. **Path management**
   * OUTPUT_DIR    – `output`, relative to the current working directory

2. **Image helpers**
   * read_image   – returns a uint8 numpy array (HxW or HxWx3).
   * save_image   – writes any OpenCV-supported format, auto‑creates parent dirs.
   * list_images  – sorted raster files inside a directory.
   * output_path  – `<out_dir>/<prefix><stem><suffix><ext>` for an input path.

3. **Error types**
   * ImageLoadFailure / ImageWriteFailure (both `IOError` subclasses).

4. **@timer decorator**
   * Measures wall‑clock (time.perf_counter) and logs at the module logger.

Nothing is created on disk at import time; directories are made lazily by
`save_image`.
"""

from __future__ import annotations

import logging
import time
from functools import wraps
from pathlib import Path
from typing import Callable, List, TypeVar

import cv2
import numpy as np

__all__ = [
    "OUTPUT_DIR",
    "IMAGE_EXTS",
    "TIMINGS",
    "ImageLoadFailure",
    "ImageWriteFailure",
    "ensure_dir",
    "read_image",
    "save_image",
    "list_images",
    "output_path",
    "reset_timings",
    "timer",
]

# --------------------------------------------------------------------------- #
# Path management
# --------------------------------------------------------------------------- #

# relative; resolved against the cwd when an image is saved
OUTPUT_DIR: Path = Path("output")

IMAGE_EXTS = (".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff", ".webp")

# timing tracker for the run log (run.txt)
TIMINGS: dict[str, float] = {}


class ImageLoadFailure(IOError):
    """Input image is missing, unreadable or could not be decoded."""


class ImageWriteFailure(IOError):
    """Output image could not be written."""


def ensure_dir(p: Path) -> Path:
    """Create directory *p* (and parents) if it does not exist. Return *p*."""
    p.mkdir(parents=True, exist_ok=True)
    return p


# --------------------------------------------------------------------------- #
# Image helpers
# --------------------------------------------------------------------------- #


def read_image(path: str | Path, as_gray: bool = False) -> np.ndarray:
    """
    Load image from *path*.

    * If *as_gray* is True, forces 1‑channel read even for RGB images.
    * Otherwise the image is decoded as 3‑channel BGR.
    * Returns uint8 numpy ndarray (HxW or HxWx3).

    Raises
    ------
    ImageLoadFailure
        File missing, not a regular file, or not decodable by OpenCV.
    """
    p = Path(path)
    if not p.is_file():
        raise ImageLoadFailure(f"Image not found: {p}")

    flag = cv2.IMREAD_GRAYSCALE if as_gray else cv2.IMREAD_COLOR
    img = cv2.imread(str(p), flag)
    if img is None:
        raise ImageLoadFailure(f"cv2 failed to read image: {p}")

    return img


def save_image(img: np.ndarray, path: str | Path) -> Path:
    """
    Save *img* to *path* (format determined by extension).
    Creates target directory hierarchy if necessary.

    Returns
    -------
    Path
        The written path.

    Raises
    ------
    ImageWriteFailure
        Directory cannot be created, extension unsupported, or encoder failed.
    """
    p = Path(path)
    try:
        ensure_dir(p.parent)
    except OSError as e:
        raise ImageWriteFailure(f"cannot create output directory {p.parent}: {e}") from e

    try:
        success = cv2.imwrite(str(p), img)
    except cv2.error as e:
        raise ImageWriteFailure(f"cv2 failed to write image: {p}: {e}") from e
    if not success:
        raise ImageWriteFailure(f"cv2 failed to write image: {p}")
    return p


def list_images(folder: str | Path) -> List[Path]:
    """Return raster files directly inside *folder*, sorted by name."""
    folder = Path(folder)
    if not folder.is_dir():
        raise NotADirectoryError(folder)
    return sorted(
        p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTS
    )


def output_path(
    src: str | Path,
    out_dir: str | Path = OUTPUT_DIR,
    prefix: str = "",
    suffix: str = "_enhanced",
    ext: str = ".jpg",
) -> Path:
    """
    Build the output filename for *src*.

    The input's base name without directory and extension is kept, e.g.
    `input/1.jpg` → `output/1_enhanced.jpg`.
    """
    stem = Path(src).stem
    return Path(out_dir) / f"{prefix}{stem}{suffix}{ext}"


# --------------------------------------------------------------------------- #
# Timing decorator
# --------------------------------------------------------------------------- #

_F = TypeVar("_F", bound=Callable[..., object])

logger = logging.getLogger("io_utils")
logger.setLevel(logging.INFO)


def reset_timings() -> None:
    """Erase all stored timing information (useful for tests)."""
    TIMINGS.clear()


def timer(fn: _F) -> _F:
    """
    Decorator that logs wall‑clock time for *fn* at INFO level.

    Usage
    -----
    >>> @timer
    ... def heavy_func(...):
    ...     ...
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        res = fn(*args, **kwargs)
        elapsed_ms = (time.perf_counter() - start) * 1e3
        logger.info(f"{fn.__name__} finished in {elapsed_ms:.2f} ms")

        TIMINGS[fn.__name__] = TIMINGS.get(fn.__name__, 0.0) + elapsed_ms

        return res

    return wrapper  # type: ignore[return-value]
