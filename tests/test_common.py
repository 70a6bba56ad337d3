"""Tests for shared utilities."""

import pytest
from PIL import ImageFont

from reelcompose.common import (
    load_font,
    parse_hex_color,
    probe_duration,
    probe_video,
    resolve_path_vars,
    run_ffmpeg,
)
from reelcompose.errors import ExternalStageError, MissingInputError


class TestParseHexColor:
    def test_with_hash(self):
        assert parse_hex_color("#FFFF00") == (255, 255, 0)

    def test_without_hash(self):
        assert parse_hex_color("1a2B3c") == (26, 43, 60)

    def test_wrong_length(self):
        with pytest.raises(ValueError, match="Invalid hex color"):
            parse_hex_color("#FFF")


class TestResolvePathVars:
    def test_substitutes(self):
        assert resolve_path_vars("${clips}/city", {"clips": "/data"}) == "/data/city"

    def test_no_vars(self):
        assert resolve_path_vars("/abs/path", {}) == "/abs/path"

    def test_unknown_var(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${nope}/x", {"clips": "/data"})


class TestLoadFont:
    def test_returns_font_that_measures_text(self):
        font = load_font(24)
        assert isinstance(font, (ImageFont.FreeTypeFont, ImageFont.ImageFont))
        left, top, right, bottom = font.getbbox("caption")
        assert right > left


class TestProbeVideo:
    def test_probe_fields(self, source_video):
        info = probe_video(source_video)
        assert info["duration"] == pytest.approx(12.0, abs=0.2)
        assert info["size"] == (320, 240)
        assert info["fps"] == pytest.approx(10.0)
        assert info["has_audio"] is True

    def test_probe_without_audio(self, clip_dir):
        info = probe_video(clip_dir / "a-red.mp4")
        assert info["has_audio"] is False
        assert probe_duration(clip_dir / "a-red.mp4") == pytest.approx(3.0, abs=0.2)

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingInputError, match="not found"):
            probe_video(tmp_path / "gone.mp4")

    def test_not_a_video(self, clip_dir):
        with pytest.raises(MissingInputError):
            probe_video(clip_dir / "notes.txt")


class TestRunFfmpeg:
    def test_failure_carries_stage_and_stderr(self, tmp_path):
        with pytest.raises(ExternalStageError) as exc:
            run_ffmpeg(["-i", str(tmp_path / "gone.mp4"), str(tmp_path / "out.mp4")], stage="extract", index=4)
        assert exc.value.stage == "extract"
        assert exc.value.index == 4
        assert str(exc.value).startswith("extract[4]: ffmpeg exited with status")
        assert "gone.mp4" in str(exc.value)

    def test_success(self, tmp_path):
        out = tmp_path / "tone.wav"
        run_ffmpeg(["-f", "lavfi", "-i", "sine=duration=0.5", str(out)], stage="test")
        assert out.exists()
