"""Tests for the final ffmpeg render and the moviepy preview render."""

import re
import subprocess
from unittest.mock import patch

import pytest

from reelcompose.captions import CaptionCue, write_srt
from reelcompose.common import FFMPEG, probe_video
from reelcompose.effects import DEFAULT_EFFECT
from reelcompose.render import (
    DEFAULT_CAPTION_STYLE,
    _escape_filter_path,
    build_render_filter,
    render_final,
    render_preview,
)


def _video_frame_count(path):
    """Decode only the video stream and return the number of frames ffmpeg reports."""
    result = subprocess.run(
        [FFMPEG, "-i", str(path), "-map", "0:v:0", "-f", "null", "-"],
        check=True, capture_output=True,
    )
    counts = re.findall(r"frame=\s*(\d+)", result.stderr.decode(errors="replace"))
    return int(counts[-1])


class TestBuildRenderFilter:
    def test_default_graph(self):
        graph = build_render_filter()
        assert graph.startswith(
            "[0:v]scale=720:1280:force_original_aspect_ratio=increase,crop=720:1280,setsar=1,fps=30,zoompan="
        )
        assert graph.endswith("[v]")
        assert "subtitles" not in graph

    def test_without_effect_uses_fps_filter(self):
        graph = build_render_filter(effect=None)
        assert "zoompan" not in graph
        assert graph.endswith(",fps=30[v]")

    def test_subtitles_with_force_style(self, tmp_path):
        srt = tmp_path / "captions.srt"
        graph = build_render_filter(srt_path=srt)
        assert "subtitles='" in graph
        assert f":force_style='{DEFAULT_CAPTION_STYLE}'[v]" in graph

    def test_subtitles_follow_zoompan(self, tmp_path):
        graph = build_render_filter(srt_path=tmp_path / "c.srt")
        assert graph.index("zoompan") < graph.index("subtitles")


class TestEscapeFilterPath:
    def test_escapes_colon_and_quote(self, tmp_path):
        escaped = _escape_filter_path(tmp_path / "a:b'c.srt")
        assert escaped.endswith("a\\:b\\'c.srt")

    def test_absolute(self):
        assert _escape_filter_path("captions.srt").startswith("/")


class TestRenderFinalArgs:
    def test_maps_video_and_optional_audio(self, tmp_path):
        with patch("reelcompose.render.run_ffmpeg") as run:
            render_final("in.mp4", str(tmp_path / "out" / "final.mp4"), crf=18)
        args = run.call_args.args[0]
        assert args[args.index("-map") + 1] == "[v]"
        assert "0:a?" in args
        assert args[args.index("-crf") + 1] == "18"
        assert args[-1] == str(tmp_path / "out" / "final.mp4")
        assert run.call_args.kwargs["stage"] == "render"
        assert (tmp_path / "out").is_dir()


class TestRenderFinalIntegration:
    def test_plain_reformat(self, source_video, tmp_path):
        out = tmp_path / "final.mp4"
        render_final(str(source_video), str(out), frame_size=(180, 320), fps=10, effect=None)
        info = probe_video(out)
        assert info["size"] == (180, 320)
        assert info["duration"] == pytest.approx(12.0, abs=0.3)
        assert info["has_audio"]

    def test_with_zoom_effect(self, short_video, tmp_path):
        out = tmp_path / "zoomed.mp4"
        render_final(
            str(short_video), str(out), frame_size=(180, 320), fps=10, effect=DEFAULT_EFFECT,
        )
        info = probe_video(out)
        assert info["size"] == (180, 320)
        assert info["duration"] == pytest.approx(2.0, abs=0.3)

    @pytest.mark.parametrize("effect", [DEFAULT_EFFECT, None])
    def test_frame_rate_change_keeps_picture_duration(self, source_video, tmp_path, effect):
        """12s at 10fps rendered at 30fps must stay 12s of picture (360 frames)."""
        out = tmp_path / "retimed.mp4"
        render_final(str(source_video), str(out), frame_size=(180, 320), fps=30, effect=effect)
        assert _video_frame_count(out) == pytest.approx(360, abs=3)


class TestRenderPreview:
    def test_preview_keeps_size(self, short_video, tmp_path):
        cues = [CaptionCue(1, 0.0, 1.0, "hello there")]
        out = tmp_path / "preview.mp4"
        render_preview(str(short_video), str(out), cues, quiet=True)
        info = probe_video(out)
        assert info["size"] == (160, 120)
        assert info["duration"] == pytest.approx(2.0, abs=0.3)

    def test_preview_without_effect_or_cues(self, short_video, tmp_path):
        out = tmp_path / "plain.mp4"
        render_preview(str(short_video), str(out), [], effect=None, quiet=True)
        assert out.exists()


def test_write_srt_feeds_render_filter(tmp_path):
    srt = tmp_path / "captions.srt"
    write_srt([CaptionCue(1, 0.0, 1.0, "hi")], srt)
    graph = build_render_filter(srt_path=srt)
    assert "captions.srt" in graph


def test_preview_uses_caption_color(short_video, tmp_path):
    """Captions are drawn through draw_caption with the requested colour."""
    cues = [CaptionCue(1, 0.0, 2.0, "hi")]
    with patch("reelcompose.render.draw_caption", side_effect=lambda f, c, t, color: f) as draw:
        render_preview(
            str(short_video), str(tmp_path / "p.mp4"), cues,
            effect=None, caption_color=(0, 255, 0), quiet=True,
        )
    assert draw.call_args.args[3] == (0, 255, 0)
