"""
pipeline.py
===========

High‑level orchestration for the adaptive enhancement flow.

Per image, strictly in this order:

1. Read the image.
2. Noise % on the image → median filter when noise ≥ 50 %.
3. Blur % on the Sobel edge gradient of the *current* image → unsharp mask
   when blur > 75 %.
4. Range % on the current image → contrast stretch when range < 50 %
   (skipped, and flagged, when the histogram is degenerate).
5. Save the final image.

Public API
----------
enhance(img, cfg=None) -> tuple[np.ndarray, EnhanceReport]    # no I/O
run(img_path, cfg=None) -> EnhanceReport
run_batch(img_paths, cfg=None) -> BatchResult

`PipelineConfig` holds all thresholds and filter parameters.  Defaults are
the module constants of `quality`, `filters` and `histogram`, so
`run("input/1.jpg")` works without passing a config.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import numpy as np

from filters import (
    MEDIAN_KSIZE,
    UNSHARP_AMOUNT,
    UNSHARP_SIGMA,
    apply_median,
    apply_unsharp,
    edge_gradient,
)
from histogram import MIN_BIN_COUNT, DegenerateHistogram, check_range, contrast_stretch
from io_utils import (
    OUTPUT_DIR,
    TIMINGS,
    ImageLoadFailure,
    ImageWriteFailure,
    ensure_dir,
    output_path,
    read_image,
    reset_timings,
    save_image,
    timer,
)
from quality import (
    BLUR_VARIANCE_THRESHOLD,
    NOISE_VARIANCE_THRESHOLD,
    calculate_blur,
    calculate_noise,
)

logger = logging.getLogger("pipeline")
logger.setLevel(logging.INFO)

# decision thresholds, all in percent
NOISE_PCT_THRESHOLD: float = 50.0  # median filter when noise% >= this
BLUR_PCT_THRESHOLD: float = 75.0  # unsharp mask when blur% > this
RANGE_PCT_THRESHOLD: float = 50.0  # contrast stretch when range% < this


# --------------------------------------------------------------------------- #
# Dataclasses
# --------------------------------------------------------------------------- #
@dataclass(slots=True)
class PipelineConfig:
    # Decision thresholds (percent)
    noise_pct_threshold: float = NOISE_PCT_THRESHOLD
    blur_pct_threshold: float = BLUR_PCT_THRESHOLD
    range_pct_threshold: float = RANGE_PCT_THRESHOLD

    # Metric parameters
    noise_variance_threshold: float = NOISE_VARIANCE_THRESHOLD
    blur_variance_threshold: float = BLUR_VARIANCE_THRESHOLD
    min_bin_count: int = MIN_BIN_COUNT
    denominator: str = "full"

    # Filters
    median_ksize: int = MEDIAN_KSIZE
    unsharp_sigma: float = UNSHARP_SIGMA
    unsharp_amount: float = UNSHARP_AMOUNT
    integer_scale: bool = True

    # I/O
    as_gray: bool = False
    output_dir: Path = OUTPUT_DIR
    output_prefix: str = ""
    output_suffix: str = "_enhanced"
    output_ext: str = ".jpg"
    write_run_log: bool = True


@dataclass(slots=True)
class EnhanceReport:
    noise_pct: float
    median_applied: bool
    blur_pct: float
    unsharp_applied: bool
    range_pct: float
    stretch_applied: bool
    stretch_degenerate: bool = False  # stretch requested but histogram degenerate
    source: Optional[Path] = None
    output: Optional[Path] = None

    @property
    def filters_applied(self) -> List[str]:
        names = []
        if self.median_applied:
            names.append("median")
        if self.unsharp_applied:
            names.append("unsharp")
        if self.stretch_applied:
            names.append("contrast_stretch")
        return names


@dataclass(slots=True)
class ImageFailure:
    path: Path
    kind: str  # exception class name
    message: str


@dataclass(slots=True)
class BatchResult:
    reports: List[EnhanceReport] = field(default_factory=list)
    failures: List[ImageFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


# --------------------------------------------------------------------------- #
# Decision rules
# --------------------------------------------------------------------------- #
def should_denoise(noise_pct: float, cfg: PipelineConfig) -> bool:
    return noise_pct >= cfg.noise_pct_threshold


def should_sharpen(blur_pct: float, cfg: PipelineConfig) -> bool:
    return blur_pct > cfg.blur_pct_threshold


def should_stretch(range_pct: float, cfg: PipelineConfig) -> bool:
    return range_pct < cfg.range_pct_threshold


# --------------------------------------------------------------------------- #
# Pure image pipeline
# --------------------------------------------------------------------------- #
def enhance(img: np.ndarray, cfg: PipelineConfig | None = None) -> Tuple[np.ndarray, EnhanceReport]:
    """
    Measure and correct *img*; return the final image and its report.

    Each stage works on the output of the previous one; *img* itself is never
    modified.
    """
    cfg = cfg or PipelineConfig()
    working = img

    # 1. Noise
    noise_pct = calculate_noise(
        working, threshold=cfg.noise_variance_threshold, denominator=cfg.denominator
    )
    median_applied = should_denoise(noise_pct, cfg)
    if median_applied:
        working = apply_median(working, ksize=cfg.median_ksize)

    # 2. Blur, measured on the gradient of the (possibly denoised) image
    blur_pct = calculate_blur(
        edge_gradient(working),
        threshold=cfg.blur_variance_threshold,
        denominator=cfg.denominator,
    )
    unsharp_applied = should_sharpen(blur_pct, cfg)
    if unsharp_applied:
        working = apply_unsharp(working, sigma=cfg.unsharp_sigma, amount=cfg.unsharp_amount)

    # 3. Dynamic range
    range_pct = check_range(working, min_count=cfg.min_bin_count)
    stretch_applied = False
    stretch_degenerate = False
    if should_stretch(range_pct, cfg):
        try:
            working = contrast_stretch(
                working, min_count=cfg.min_bin_count, integer_scale=cfg.integer_scale
            )
            stretch_applied = True
        except DegenerateHistogram as e:
            logger.warning(f"Contrast stretch skipped: {e}")
            stretch_degenerate = True

    report = EnhanceReport(
        noise_pct=noise_pct,
        median_applied=median_applied,
        blur_pct=blur_pct,
        unsharp_applied=unsharp_applied,
        range_pct=range_pct,
        stretch_applied=stretch_applied,
        stretch_degenerate=stretch_degenerate,
    )
    return working, report


# --------------------------------------------------------------------------- #
# File-level runs
# --------------------------------------------------------------------------- #
@timer
def run(img_path: str | Path, cfg: PipelineConfig | None = None) -> EnhanceReport:
    """Enhance one file and write the result into ``cfg.output_dir``."""
    cfg = cfg or PipelineConfig()
    img_path = Path(img_path)

    img = read_image(img_path, as_gray=cfg.as_gray)
    result, report = enhance(img, cfg)

    out = output_path(
        img_path,
        cfg.output_dir,
        prefix=cfg.output_prefix,
        suffix=cfg.output_suffix,
        ext=cfg.output_ext,
    )
    report.source = img_path
    report.output = save_image(result, out)
    logger.info(
        f"{img_path.name}: noise={report.noise_pct:.2f}% blur={report.blur_pct:.2f}% "
        f"range={report.range_pct:.2f}% filters={report.filters_applied or 'none'}"
    )
    return report


def run_batch(img_paths: Iterable[str | Path], cfg: PipelineConfig | None = None) -> BatchResult:
    """
    Run every path independently; a failing image is logged and skipped.
    """
    t_start = datetime.now()
    cfg = cfg or PipelineConfig()
    batch = BatchResult()
    reset_timings()

    for p in img_paths:
        p = Path(p)
        try:
            batch.reports.append(run(p, cfg))
        except (ImageLoadFailure, ImageWriteFailure, ValueError) as e:
            logger.error(f"{p}: {type(e).__name__}: {e}")
            batch.failures.append(ImageFailure(path=p, kind=type(e).__name__, message=str(e)))

    if cfg.write_run_log:
        try:
            _write_run_log(batch, cfg, t_start)
        except OSError as e:
            logger.error(f"Could not write run log: {e}")

    return batch


# --------------------------------------------------------------------------- #
# Run‑log helper
# --------------------------------------------------------------------------- #
def _write_run_log(batch: BatchResult, cfg: PipelineConfig, t_start: datetime) -> Path:
    """Write run.txt capturing parameters, per-image metrics & timings."""
    log_path = ensure_dir(Path(cfg.output_dir)) / "run.txt"
    with log_path.open("w", encoding="utf-8") as f:
        # --- Run meta information ---
        f.write(f"run_start        : {t_start.strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write(f"images           : {len(batch.reports) + len(batch.failures)}\n")
        f.write(f"failed           : {len(batch.failures)}\n")

        # --- Parameters used this run ---
        f.write("\n# Pipeline parameters\n")
        f.write(f"noise_threshold  : {cfg.noise_pct_threshold} % (var > {cfg.noise_variance_threshold})\n")
        f.write(f"blur_threshold   : {cfg.blur_pct_threshold} % (var <= {cfg.blur_variance_threshold})\n")
        f.write(f"range_threshold  : {cfg.range_pct_threshold} % (bin > {cfg.min_bin_count})\n")
        f.write(f"denominator      : {cfg.denominator}\n")
        f.write(f"median_ksize     : {cfg.median_ksize}\n")
        f.write(f"unsharp          : sigma={cfg.unsharp_sigma} amount={cfg.unsharp_amount}\n")
        f.write(f"integer_scale    : {cfg.integer_scale}\n")

        # --- Per-image table ---
        f.write("\n# Images\n")
        for r in batch.reports:
            name = r.source.name if r.source else "-"
            filters = ",".join(r.filters_applied) or "none"
            f.write(
                f"{name:<24} noise={r.noise_pct:6.2f} blur={r.blur_pct:6.2f} "
                f"range={r.range_pct:6.2f} filters={filters}\n"
            )
        for fail in batch.failures:
            f.write(f"{fail.path.name:<24} FAILED {fail.kind}: {fail.message}\n")

        # --- Timing table ---
        f.write("\n# Stage timings (ms)\n")
        # `run` spans the stages above it; kept out of the total
        total = 0.0
        for name, ms in sorted(TIMINGS.items(), key=lambda x: x[0]):
            if name == "run":
                continue
            f.write(f"{name:<16}: {ms:8.2f}\n")
            total += ms
        f.write("-" * 32 + "\n")
        f.write(f"{'Total':<16}: {total:8.2f}\n")
        f.write(f"{'run (wall)':<16}: {TIMINGS.get('run', 0.0):8.2f}\n")
    return log_path
