"""Final rendering — effect + caption burn-in over the stitched video.

Two renderers share the same effect and cue definitions:
  - render_final: native ffmpeg. The effect is expressed as zoompan
    expressions (effects.zoompan_filter) and captions go through the
    subtitles filter reading the SRT file. This is the production path.
  - render_preview: moviepy frame loop. Calls effects.effect_at and
    caption_overlay.draw_caption for every frame. Slow, but needs no
    libass and shows exactly what the planning functions compute.
"""

from pathlib import Path

from moviepy import VideoFileClip

from .caption_overlay import CAPTION_COLOR, draw_caption
from .captions import CaptionCue
from .common import run_ffmpeg
from .effects import DEFAULT_EFFECT, EffectConfig, apply_effect_to_frame, effect_at, zoompan_filter


DEFAULT_FRAME_SIZE = (720, 1280)
DEFAULT_FPS = 30

# libass force_style for burned-in captions: bold yellow on a black
# outline, bottom-centre, clear of the platform UI chrome.
DEFAULT_CAPTION_STYLE = (
    "FontName=Arial Bold,FontSize=18,PrimaryColour=&H00FFFF,"
    "OutlineColour=&H000000,Outline=3,Bold=1,Alignment=2,"
    "MarginV=55,MarginL=40,MarginR=40"
)


def _escape_filter_path(path: str | Path) -> str:
    """Escape a file path for use as a filtergraph option value."""
    p = Path(path).resolve().as_posix()
    return p.replace("\\", "\\\\").replace(":", "\\:").replace("'", "\\'")


def build_render_filter(
    frame_size: tuple[int, int] = DEFAULT_FRAME_SIZE,
    fps: float = DEFAULT_FPS,
    effect: EffectConfig | None = DEFAULT_EFFECT,
    srt_path: str | Path | None = None,
    caption_style: str = DEFAULT_CAPTION_STYLE,
) -> str:
    """Build the filter_complex graph: [0:v] -> cover crop -> fps -> zoompan? -> subtitles? -> [v].

    The input is first scaled to cover frame_size and centre-cropped, so
    zoompan never stretches a non-vertical source. The frame rate is
    converted before zoompan: zoompan maps input frames to output frames
    one to one, so feeding it the source rate would retime the picture
    against the copied audio.
    """
    w, h = frame_size
    chain = [
        f"scale={w}:{h}:force_original_aspect_ratio=increase",
        f"crop={w}:{h}",
        "setsar=1",
        f"fps={fps:g}",
    ]
    if effect is not None:
        chain.append(zoompan_filter(frame_size, fps, effect))
    if srt_path is not None:
        chain.append(
            f"subtitles='{_escape_filter_path(srt_path)}'"
            f":force_style='{caption_style}'"
        )
    return f"[0:v]{','.join(chain)}[v]"


def render_final(
    video: str,
    output: str,
    srt_path: str | Path | None = None,
    frame_size: tuple[int, int] = DEFAULT_FRAME_SIZE,
    fps: float = DEFAULT_FPS,
    effect: EffectConfig | None = DEFAULT_EFFECT,
    caption_style: str = DEFAULT_CAPTION_STYLE,
    crf: int = 23,
    preset: str = "fast",
) -> str:
    """Encode the final vertical video with ffmpeg.

    Args:
        video: Stitched (or passthrough primary) video with audio.
        output: Output mp4 path.
        srt_path: Caption file; None renders without captions.
        frame_size: Output (w, h).
        fps: Output frame rate.
        effect: Pan/zoom parameters; None disables the effect.
        caption_style: libass force_style string.
        crf: libx264 quality.
        preset: libx264 speed preset.

    Raises:
        ExternalStageError: ffmpeg failed.
    """
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    filter_graph = build_render_filter(frame_size, fps, effect, srt_path, caption_style)
    run_ffmpeg(
        [
            "-i", video,
            "-filter_complex", filter_graph,
            "-map", "[v]",
            "-map", "0:a?",
            "-c:v", "libx264", "-preset", preset, "-crf", str(crf),
            "-pix_fmt", "yuv420p",
            "-c:a", "copy",
            output,
        ],
        stage="render",
    )
    return output


def render_preview(
    video: str,
    output: str,
    cues: list[CaptionCue],
    effect: EffectConfig | None = DEFAULT_EFFECT,
    caption_color: tuple[int, int, int] = CAPTION_COLOR,
    quiet: bool = False,
) -> str:
    """Render a preview with moviepy, evaluating the effect per frame.

    Keeps the source frame size and fps. Captions are drawn in
    caption_color (R, G, B).
    """
    Path(output).parent.mkdir(parents=True, exist_ok=True)

    def _apply(get_frame, t):
        frame = get_frame(t)
        if effect is not None:
            frame = apply_effect_to_frame(frame, effect_at(t, effect))
        return draw_caption(frame, cues, t, caption_color)

    with VideoFileClip(str(video)) as clip:
        rendered = clip.transform(_apply, keep_duration=True)
        rendered.write_videofile(
            str(output),
            codec="libx264",
            audio_codec="aac",
            preset="medium",
            ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
            logger=None if quiet else "bar",
        )
    return output
