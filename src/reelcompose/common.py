"""reelcompose.common — shared utilities.

Contains: color parsing, path variable resolution, font loading,
media probing, and the ffmpeg subprocess wrapper used by every
execution stage.
"""

import re
import subprocess
from pathlib import Path

import imageio_ffmpeg
from PIL import ImageFont
from moviepy import VideoFileClip

from .errors import ExternalStageError, MissingInputError


FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

# Lines of ffmpeg stderr kept in ExternalStageError messages.
STDERR_TAIL_LINES = 12


# ── Font paths ─────────────────────────────────────────────────────
# Bold sans faces read best over moving footage; DejaVu is the fallback.

FONT_PATHS = [
    Path("/usr/share/fonts/truetype/msttcorefonts/Arial_Bold.ttf"),
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6:
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load the first available caption font at the given size."""
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size)
            except OSError:
                continue
    # Last resort: Pillow default font (scalable on Pillow >= 10.1).
    return ImageFont.load_default(size=size)


# ── Media probing ──────────────────────────────────────────────────

def probe_video(path: str | Path) -> dict:
    """Return {'duration', 'size', 'fps', 'has_audio'} for a video file.

    Uses moviepy rather than ffprobe because imageio-ffmpeg only ships
    the ffmpeg binary.

    Raises:
        MissingInputError: File missing or not decodable as video.
    """
    p = Path(path)
    if not p.exists():
        raise MissingInputError(f"Video not found: {path}")
    try:
        with VideoFileClip(str(p)) as clip:
            return {
                "duration": float(clip.duration or 0.0),
                "size": tuple(clip.size),
                "fps": float(clip.fps),
                "has_audio": clip.audio is not None,
            }
    except (OSError, KeyError, ValueError) as e:
        raise MissingInputError(f"Unreadable video: {path} ({e})") from e


def probe_duration(path: str | Path) -> float:
    """Video duration in seconds (see probe_video)."""
    return probe_video(path)["duration"]


# ── ffmpeg execution ───────────────────────────────────────────────

def run_ffmpeg(args: list[str], stage: str, index: int | None = None) -> None:
    """Run ffmpeg with the given arguments (binary and -y are prepended).

    Raises:
        ExternalStageError: ffmpeg exited non-zero. The message carries
            the tail of its stderr.
    """
    cmd = [FFMPEG, "-y", "-hide_banner", *args]
    try:
        subprocess.run(cmd, check=True, capture_output=True)
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode(errors="replace").strip().splitlines()
        tail = "\n".join(stderr[-STDERR_TAIL_LINES:])
        raise ExternalStageError(
            stage, f"ffmpeg exited with status {e.returncode}\n{tail}", index=index,
        ) from e
