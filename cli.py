#!/usr/bin/env python
"""
cli.py
======

Command‑line interface for the **photo_enhance** project.

Examples
--------
# 1) Enhance a few photos with default thresholds (results in ./output)
python cli.py enhance input/1.jpg input/2.jpg

# 2) Enhance every image in a directory into a custom folder
python cli.py enhance --input_dir input -o results

# 3) Only print the metrics and decisions, write nothing
python cli.py analyze input/3.jpg

# 4) Stricter sharpening and interior-only normalisation
python cli.py enhance input/4.jpg --blur_threshold 60 --denominator interior

# 5) Real-valued stretch scale and PNG output
python cli.py enhance input/5.jpg --real_scale --ext .png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from io_utils import OUTPUT_DIR, ImageLoadFailure, list_images, read_image
from pipeline import (
    BLUR_PCT_THRESHOLD,
    NOISE_PCT_THRESHOLD,
    RANGE_PCT_THRESHOLD,
    EnhanceReport,
    PipelineConfig,
    enhance,
    run_batch,
)
from quality import DENOMINATORS

SEPARATOR = "_" * 37


# --------------------------------------------------------------------------- #
# Report formatting
# --------------------------------------------------------------------------- #
def _applied(flag: bool) -> str:
    return "is applied" if flag else "is not applied"


def format_report(report: EnhanceReport) -> str:
    """Human-readable block for one image."""
    stretch = f"Contrast Stretching {_applied(report.stretch_applied)}"
    if report.stretch_degenerate:
        stretch += " (degenerate histogram)"

    lines = []
    if report.source is not None:
        lines.append(f"Image: {report.source}")
    lines += [
        f"Noisy Pixels: {report.noise_pct}%",
        f"Median Filter {_applied(report.median_applied)}",
        f"Blurry Pixels: {report.blur_pct}%",
        f"Unsharp Filter {_applied(report.unsharp_applied)}",
        f"Color Range from 0-255: {report.range_pct}%",
        stretch,
    ]
    if report.output is not None:
        lines.append(f"Saved: {report.output}")
    lines.append(SEPARATOR)
    return "\n".join(lines)


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #
def _collect_paths(args: argparse.Namespace) -> List[Path]:
    paths = [Path(p) for p in args.paths]
    if args.input_dir:
        try:
            paths += list_images(args.input_dir)
        except NotADirectoryError:
            raise SystemExit(f"Input directory not found: {args.input_dir}")
    if not paths:
        raise SystemExit("No input images given (pass paths or --input_dir).")
    return paths


def _build_config(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        noise_pct_threshold=args.noise_threshold,
        blur_pct_threshold=args.blur_threshold,
        range_pct_threshold=args.range_threshold,
        denominator=args.denominator,
        integer_scale=not args.real_scale,
        as_gray=args.gray,
        output_dir=Path(args.output),
        output_prefix=args.prefix,
        output_suffix=args.suffix,
        output_ext=args.ext,
        write_run_log=not args.no_log,
    )


def _cmd_enhance(args: argparse.Namespace) -> int:
    cfg = _build_config(args)
    batch = run_batch(_collect_paths(args), cfg)

    for report in batch.reports:
        print(format_report(report))
    for fail in batch.failures:
        print(f"FAILED {fail.path}: {fail.kind}: {fail.message}")
        print(SEPARATOR)

    print(f"\nSummary: {len(batch.reports)} enhanced, {len(batch.failures)} failed")
    return 0 if batch.ok else 1


def _cmd_analyze(args: argparse.Namespace) -> int:
    cfg = _build_config(args)
    status = 0
    for p in _collect_paths(args):
        try:
            _, report = enhance(read_image(p, as_gray=cfg.as_gray), cfg)
        except (ImageLoadFailure, ValueError) as e:
            print(f"FAILED {p}: {type(e).__name__}: {e}")
            print(SEPARATOR)
            status = 1
            continue
        report.source = p
        print(format_report(report))
    return status


# --------------------------------------------------------------------------- #
# Argument parsing
# --------------------------------------------------------------------------- #
def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("paths", nargs="*", help="Input image files.")
    p.add_argument(
        "--input_dir",
        help="Also process every image directly inside this directory.",
    )
    p.add_argument(
        "--noise_threshold",
        type=float,
        default=NOISE_PCT_THRESHOLD,
        help="Median filter when noisy pixels ≥ this percentage (default: 50).",
    )
    p.add_argument(
        "--blur_threshold",
        type=float,
        default=BLUR_PCT_THRESHOLD,
        help="Unsharp mask when blurry pixels > this percentage (default: 75).",
    )
    p.add_argument(
        "--range_threshold",
        type=float,
        default=RANGE_PCT_THRESHOLD,
        help="Contrast stretch when intensity range < this percentage (default: 50).",
    )
    p.add_argument(
        "--denominator",
        choices=DENOMINATORS,
        default="full",
        help="Normalise noise/blur counts by all pixels or interior pixels only.",
    )
    p.add_argument(
        "--real_scale",
        action="store_true",
        help="Use real instead of integer division for the stretch scale.",
    )
    p.add_argument(
        "--gray",
        action="store_true",
        help="Decode inputs as single-channel grayscale.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photo_enhance.cli",
        description="Adaptive noise / blur / contrast enhancement for photographs",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log stage timings and decisions.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # enhance command
    p_enh = subparsers.add_parser("enhance", help="Measure, correct and save images.")
    _add_common(p_enh)
    p_enh.add_argument(
        "-o",
        "--output",
        default=str(OUTPUT_DIR),
        help="Output directory (default: ./output).",
    )
    p_enh.add_argument("--prefix", default="", help="Output filename prefix.")
    p_enh.add_argument("--suffix", default="_enhanced", help="Output filename suffix.")
    p_enh.add_argument("--ext", default=".jpg", help="Output extension (default: .jpg).")
    p_enh.add_argument(
        "--no_log",
        action="store_true",
        help="Do not write run.txt into the output directory.",
    )
    p_enh.set_defaults(func=_cmd_enhance)

    # analyze command
    p_an = subparsers.add_parser("analyze", help="Print metrics and decisions only.")
    _add_common(p_an)
    p_an.set_defaults(
        func=_cmd_analyze,
        output=str(OUTPUT_DIR),
        prefix="",
        suffix="_enhanced",
        ext=".jpg",
        no_log=True,
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    # module loggers sit at INFO, so filter on the handler
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO if args.verbose else logging.WARNING)
    logging.basicConfig(
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        handlers=[handler],
    )
    return args.func(args)  # type: ignore[attr-defined]


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
