"""Shared test fixtures for reelcompose tests."""

import subprocess

import pytest
import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def _make_video(out, color, size, duration, audio=True):
    """Encode a solid-color test video (10fps), optionally with a 440Hz tone."""
    cmd = [
        _FFMPEG, "-y",
        "-f", "lavfi", "-i", f"color=c={color}:s={size}:d={duration}:r=10",
    ]
    if audio:
        cmd += [
            "-f", "lavfi", "-i", f"sine=frequency=440:sample_rate=44100:duration={duration}",
            "-shortest", "-c:a", "aac", "-b:a", "32k",
        ]
    cmd += ["-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p", str(out)]
    subprocess.run(cmd, check=True, capture_output=True)
    return out


@pytest.fixture
def source_video(tmp_path):
    """A 12-second 320x240 talking-head stand-in with a continuous tone.

    12s leaves a 6s scheduling window with the default 3s buffers.
    """
    return _make_video(tmp_path / "source.mp4", "blue", "320x240", 12)


@pytest.fixture
def short_video(tmp_path):
    """A 2-second clip, shorter than the default buffers combined."""
    return _make_video(tmp_path / "short.mp4", "gray", "160x120", 2)


@pytest.fixture
def clip_dir(tmp_path):
    """A local cutaway library: two clips with mismatched sizes, plus a non-clip file."""
    d = tmp_path / "broll"
    d.mkdir()
    _make_video(d / "a-red.mp4", "red", "160x120", 3, audio=False)
    _make_video(d / "b-green.mov", "green", "640x360", 6, audio=False)
    (d / "notes.txt").write_text("not a clip")
    return d
