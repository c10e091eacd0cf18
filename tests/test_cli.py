"""
test_cli.py
===========

CLI → PipelineConfig parameter passing, console report and io_utils helpers.
"""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest

import cli
from io_utils import ImageLoadFailure, list_images, output_path, read_image
from pipeline import EnhanceReport


# --------------------------------------------------------------------------- #
# Test fixtures and utilities
# --------------------------------------------------------------------------- #

def write_noise_png(path: Path, height: int = 32, width: int = 32) -> Path:
    rng = np.random.default_rng(1)
    img = rng.integers(0, 256, size=(height, width), dtype=np.uint8)
    assert cv2.imwrite(str(path), img)
    return path


def parse(argv: list[str]):
    return cli._build_parser().parse_args(argv)


# --------------------------------------------------------------------------- #
# Parameter passing
# --------------------------------------------------------------------------- #

class TestCLIConfig:

    def test_defaults(self):
        cfg = cli._build_config(parse(["enhance", "a.jpg"]))
        assert cfg.noise_pct_threshold == 50.0
        assert cfg.blur_pct_threshold == 75.0
        assert cfg.range_pct_threshold == 50.0
        assert cfg.denominator == "full"
        assert cfg.integer_scale
        assert cfg.output_suffix == "_enhanced"
        assert cfg.output_ext == ".jpg"
        assert cfg.write_run_log

    def test_overrides(self):
        args = parse([
            "enhance", "a.jpg",
            "--noise_threshold", "30",
            "--blur_threshold", "60",
            "--range_threshold", "40",
            "--denominator", "interior",
            "--real_scale",
            "--gray",
            "-o", "results",
            "--prefix", "p_",
            "--suffix", "_s",
            "--ext", ".png",
            "--no_log",
        ])
        cfg = cli._build_config(args)
        assert cfg.noise_pct_threshold == 30.0
        assert cfg.blur_pct_threshold == 60.0
        assert cfg.range_pct_threshold == 40.0
        assert cfg.denominator == "interior"
        assert not cfg.integer_scale
        assert cfg.as_gray
        assert cfg.output_dir == Path("results")
        assert (cfg.output_prefix, cfg.output_suffix, cfg.output_ext) == ("p_", "_s", ".png")
        assert not cfg.write_run_log

    def test_analyze_never_logs(self):
        cfg = cli._build_config(parse(["analyze", "a.jpg"]))
        assert not cfg.write_run_log

    def test_invalid_denominator(self):
        with pytest.raises(SystemExit):
            parse(["enhance", "a.jpg", "--denominator", "border"])


# --------------------------------------------------------------------------- #
# Report formatting
# --------------------------------------------------------------------------- #

class TestFormatReport:

    def test_block_lines(self):
        report = EnhanceReport(
            noise_pct=60.0,
            median_applied=True,
            blur_pct=10.0,
            unsharp_applied=False,
            range_pct=30.0,
            stretch_applied=True,
        )
        lines = cli.format_report(report).splitlines()
        assert lines == [
            "Noisy Pixels: 60.0%",
            "Median Filter is applied",
            "Blurry Pixels: 10.0%",
            "Unsharp Filter is not applied",
            "Color Range from 0-255: 30.0%",
            "Contrast Stretching is applied",
            cli.SEPARATOR,
        ]

    def test_degenerate_stretch_noted(self):
        report = EnhanceReport(
            noise_pct=0.0,
            median_applied=False,
            blur_pct=64.0,
            unsharp_applied=False,
            range_pct=0.0,
            stretch_applied=False,
            stretch_degenerate=True,
            source=Path("input/1.jpg"),
        )
        text = cli.format_report(report)
        assert text.startswith("Image: input/1.jpg")
        assert "Contrast Stretching is not applied (degenerate histogram)" in text


# --------------------------------------------------------------------------- #
# End-to-end commands
# --------------------------------------------------------------------------- #

class TestCommands:

    def test_enhance_paths(self, tmp_path, capsys):
        src = write_noise_png(tmp_path / "3.png")
        out_dir = tmp_path / "out"
        status = cli.main(["enhance", str(src), "-o", str(out_dir), "--ext", ".png"])

        assert status == 0
        assert (out_dir / "3_enhanced.png").exists()
        assert (out_dir / "run.txt").exists()
        stdout = capsys.readouterr().out
        assert "Noisy Pixels:" in stdout
        assert "Summary: 1 enhanced, 0 failed" in stdout

    def test_enhance_input_dir(self, tmp_path):
        in_dir = tmp_path / "in"
        in_dir.mkdir()
        write_noise_png(in_dir / "a.png")
        write_noise_png(in_dir / "b.png")
        (in_dir / "notes.txt").write_text("skip me")
        out_dir = tmp_path / "out"

        status = cli.main(["enhance", "--input_dir", str(in_dir), "-o", str(out_dir), "--ext", ".png"])

        assert status == 0
        assert sorted(p.name for p in out_dir.glob("*.png")) == ["a_enhanced.png", "b_enhanced.png"]

    def test_enhance_reports_failure(self, tmp_path, capsys):
        good = write_noise_png(tmp_path / "ok.png")
        status = cli.main([
            "enhance", str(tmp_path / "missing.jpg"), str(good),
            "-o", str(tmp_path / "out"), "--ext", ".png",
        ])
        assert status == 1
        stdout = capsys.readouterr().out
        assert "FAILED" in stdout
        assert "Summary: 1 enhanced, 1 failed" in stdout

    def test_analyze_writes_nothing(self, tmp_path, capsys, monkeypatch):
        src = write_noise_png(tmp_path / "x.png")
        monkeypatch.chdir(tmp_path)
        status = cli.main(["analyze", str(src)])

        assert status == 0
        assert sorted(p.name for p in tmp_path.iterdir()) == ["x.png"]
        assert "Median Filter is applied" in capsys.readouterr().out

    def test_default_output_dir_follows_cwd(self, tmp_path, monkeypatch):
        src = write_noise_png(tmp_path / "5.png")
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)

        status = cli.main(["enhance", str(src), "--ext", ".png", "--no_log"])

        assert status == 0
        assert (work / "output" / "5_enhanced.png").exists()

    def test_missing_input_dir(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            cli.main(["enhance", "--input_dir", str(tmp_path / "nope")])
        assert "Input directory not found" in str(exc.value)

    def test_no_inputs(self):
        with pytest.raises(SystemExit):
            cli.main(["enhance"])


# --------------------------------------------------------------------------- #
# io_utils helpers
# --------------------------------------------------------------------------- #

class TestIOHelpers:

    def test_output_path_uses_base_name(self):
        assert output_path("input/1.jpg", "output") == Path("output/1_enhanced.jpg")
        assert output_path("/data/shots/long_name.final.png", "o", prefix="e_", ext=".png") == Path(
            "o/e_long_name.final_enhanced.png"
        )

    def test_list_images_filters_and_sorts(self, tmp_path):
        for name in ("b.JPG", "a.png", "c.txt"):
            (tmp_path / name).write_bytes(b"")
        (tmp_path / "sub.png").mkdir()
        assert [p.name for p in list_images(tmp_path)] == ["a.png", "b.JPG"]

    def test_list_images_requires_directory(self, tmp_path):
        with pytest.raises(NotADirectoryError):
            list_images(tmp_path / "nope")

    def test_read_image_modes(self, tmp_path):
        src = write_noise_png(tmp_path / "g.png", 12, 9)
        assert read_image(src).shape == (12, 9, 3)
        assert read_image(src, as_gray=True).shape == (12, 9)

    def test_read_directory_fails(self, tmp_path):
        with pytest.raises(ImageLoadFailure):
            read_image(tmp_path)
