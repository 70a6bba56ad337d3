"""Caption burn-in for preview renders.

The final render burns captions with ffmpeg's subtitles filter. The
moviepy preview path has no libass, so cues are drawn here instead:
each cue's text is rendered once as an RGBA patch (text on a
semi-transparent rounded box) and alpha-blended bottom-centre onto
every frame the cue covers.
"""

from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw

from .captions import CaptionCue, cue_at
from .common import load_font


# ── Constants ────────────────────────────────────────────────────

CAPTION_MARGIN_FRAC = 0.043      # bottom margin as fraction of frame height (55px @ 1280)
CAPTION_FONT_FRAC = 0.045        # font size as fraction of frame height
CAPTION_BG_ALPHA = 153           # ~60% opacity (0.6 * 255)
CAPTION_PADDING_X = 16
CAPTION_PADDING_Y = 8
CAPTION_BORDER_RADIUS = 10
CAPTION_COLOR = (255, 255, 0)    # matches the burn-in style's yellow
CAPTION_OUTLINE = 3


def compute_caption_position(
    patch_w: int, patch_h: int, frame_w: int, frame_h: int,
) -> tuple[int, int]:
    """(x, y) top-left for a bottom-centre caption patch."""
    margin = int(frame_h * CAPTION_MARGIN_FRAC)
    x = (frame_w - patch_w) // 2
    y = frame_h - margin - patch_h
    return max(0, x), max(0, y)


@lru_cache(maxsize=64)
def render_caption_patch(
    text: str,
    font_size: int,
    color: tuple[int, int, int] = CAPTION_COLOR,
) -> np.ndarray:
    """Render caption text as an RGBA patch, shape (h, w, 4), uint8.

    Cached because a cue's patch is identical for every frame it covers.
    """
    font = load_font(font_size)

    draw_tmp = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    bbox = draw_tmp.textbbox((0, 0), text, font=font, stroke_width=CAPTION_OUTLINE)
    text_w = bbox[2] - bbox[0]
    text_h = bbox[3] - bbox[1]

    patch_w = text_w + 2 * CAPTION_PADDING_X
    patch_h = text_h + 2 * CAPTION_PADDING_Y

    img = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle(
        [(0, 0), (patch_w - 1, patch_h - 1)],
        radius=CAPTION_BORDER_RADIUS,
        fill=(0, 0, 0, CAPTION_BG_ALPHA),
    )
    draw.text(
        (CAPTION_PADDING_X - bbox[0], CAPTION_PADDING_Y - bbox[1]),
        text,
        fill=(*color, 255),
        font=font,
        stroke_width=CAPTION_OUTLINE,
        stroke_fill=(0, 0, 0, 255),
    )
    return np.array(img)


def blend_patch(frame: np.ndarray, patch: np.ndarray, x: int, y: int) -> np.ndarray:
    """Alpha-blend an RGBA patch onto a copy of frame at (x, y), clipped."""
    result = frame.copy()
    frame_h, frame_w = frame.shape[:2]
    patch_h = min(patch.shape[0], frame_h - y)
    patch_w = min(patch.shape[1], frame_w - x)
    if patch_h <= 0 or patch_w <= 0:
        return result
    patch = patch[:patch_h, :patch_w]

    alpha = patch[:, :, 3:4].astype(np.float32) / 255.0
    rgb = patch[:, :, :3].astype(np.float32)
    dest = result[y:y + patch_h, x:x + patch_w].astype(np.float32)
    blended = dest * (1 - alpha) + rgb * alpha
    result[y:y + patch_h, x:x + patch_w] = blended.astype(np.uint8)
    return result


def draw_caption(
    frame: np.ndarray,
    cues: list[CaptionCue],
    t: float,
    color: tuple[int, int, int] = CAPTION_COLOR,
) -> np.ndarray:
    """Draw the cue active at time t (if any) onto a copy of frame."""
    cue = cue_at(cues, t)
    if cue is None or not cue.text:
        return frame
    frame_h, frame_w = frame.shape[:2]
    font_size = max(12, round(frame_h * CAPTION_FONT_FRAC))
    patch = render_caption_patch(cue.text, font_size, color)
    x, y = compute_caption_position(patch.shape[1], patch.shape[0], frame_w, frame_h)
    return blend_patch(frame, patch, x, y)
