"""Pan/zoom effect — closed-form mapping from playback time to a crop.

Two independent cycles:
  - zoom (period 10s): ramp 1.0 -> 1+delta over ramp_in, hold, ramp back
    to 1.0 over the last ramp_out seconds of the period.
  - pan (period 30s): the crop centre sits at the frame centre for the
    first third, right of centre for the second, left for the last.
The vertical anchor is fixed on the upper third, where faces sit in a
talking-head frame.

effect_at() is the reference definition. zoompan_filter() emits the
same function as ffmpeg expressions for the final render, and
apply_effect_to_frame() applies it to a numpy frame for previews.
"""

from dataclasses import dataclass

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class EffectConfig:
    zoom_delta: float = 0.15
    ramp_in: float = 0.5
    ramp_out: float = 0.5
    zoom_period: float = 10.0
    pan_period: float = 30.0
    anchor_center: float = 0.5
    anchor_right: float = 0.60
    anchor_left: float = 0.40
    anchor_y: float = 1 / 3

    def __post_init__(self):
        if self.zoom_delta < 0:
            raise ValueError(f"zoom_delta must be >= 0, got {self.zoom_delta}")
        if self.zoom_period <= 0 or self.pan_period <= 0:
            raise ValueError("Effect periods must be > 0")
        if self.ramp_in < 0 or self.ramp_out < 0:
            raise ValueError("Ramp durations must be >= 0")
        if self.ramp_in + self.ramp_out > self.zoom_period:
            raise ValueError(
                f"ramp_in + ramp_out ({self.ramp_in + self.ramp_out}) "
                f"exceeds zoom_period ({self.zoom_period})"
            )
        for name in ("anchor_center", "anchor_right", "anchor_left", "anchor_y"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")


DEFAULT_EFFECT = EffectConfig()


@dataclass(frozen=True)
class EffectFrame:
    """Zoom scale (>= 1) and crop centre as fractions of the frame."""
    scale: float
    anchor_x: float
    anchor_y: float


def zoom_scale_at(t: float, config: EffectConfig = DEFAULT_EFFECT) -> float:
    m = t % config.zoom_period
    peak = 1.0 + config.zoom_delta
    hold_end = config.zoom_period - config.ramp_out

    if m < config.ramp_in:
        return 1.0 + (m / config.ramp_in) * config.zoom_delta
    if m < hold_end:
        return peak
    if config.ramp_out == 0:
        return 1.0
    return max(1.0, peak - ((m - hold_end) / config.ramp_out) * config.zoom_delta)


def anchor_x_at(t: float, config: EffectConfig = DEFAULT_EFFECT) -> float:
    m = t % config.pan_period
    third = config.pan_period / 3
    if m < third:
        return config.anchor_center
    if m < 2 * third:
        return config.anchor_right
    return config.anchor_left


def effect_at(t: float, config: EffectConfig = DEFAULT_EFFECT) -> EffectFrame:
    """The effect frame at playback time t (seconds, >= 0)."""
    if t < 0:
        raise ValueError(f"Playback time must be >= 0, got {t}")
    return EffectFrame(
        scale=zoom_scale_at(t, config),
        anchor_x=anchor_x_at(t, config),
        anchor_y=config.anchor_y,
    )


# ── Crop geometry ──────────────────────────────────────────────────


def crop_box(
    effect: EffectFrame, frame_w: int, frame_h: int,
) -> tuple[int, int, int, int]:
    """(left, top, width, height) of the zoomed window, kept inside the frame."""
    cw = max(1, round(frame_w / effect.scale))
    ch = max(1, round(frame_h / effect.scale))
    left = round(frame_w * effect.anchor_x - cw / 2)
    top = round(frame_h * effect.anchor_y - ch / 2)
    left = max(0, min(left, frame_w - cw))
    top = max(0, min(top, frame_h - ch))
    return left, top, cw, ch


def apply_effect_to_frame(frame: np.ndarray, effect: EffectFrame) -> np.ndarray:
    """Crop the effect window from a frame and scale it back to full size.

    Args:
        frame: Input frame, shape (h, w, 3), dtype uint8.
        effect: Effect parameters for this frame's timestamp.

    Returns:
        New frame, same shape and dtype.
    """
    frame_h, frame_w = frame.shape[:2]
    if effect.scale == 1.0:
        return frame.copy()
    left, top, cw, ch = crop_box(effect, frame_w, frame_h)
    window = frame[top:top + ch, left:left + cw]
    resized = Image.fromarray(window).resize((frame_w, frame_h), Image.BICUBIC)
    return np.asarray(resized, dtype=np.uint8).copy()


# ── ffmpeg expressions ─────────────────────────────────────────────


def _num(value: float) -> str:
    return f"{value:.6g}"


def zoom_expression(config: EffectConfig = DEFAULT_EFFECT) -> str:
    """ffmpeg expression (variable: time) equal to zoom_scale_at."""
    m = f"mod(time,{_num(config.zoom_period)})"
    d = _num(config.zoom_delta)
    peak = _num(1.0 + config.zoom_delta)
    hold_end = config.zoom_period - config.ramp_out

    if config.ramp_out > 0:
        ramp_down = f"max(1,{peak}-(({m}-{_num(hold_end)})/{_num(config.ramp_out)})*{d})"
    else:
        ramp_down = "1"
    hold = f"if(lt({m},{_num(hold_end)}),{peak},{ramp_down})"
    if config.ramp_in > 0:
        return f"if(lt({m},{_num(config.ramp_in)}),1+({m}/{_num(config.ramp_in)})*{d},{hold})"
    return hold


def pan_x_expression(config: EffectConfig = DEFAULT_EFFECT) -> str:
    """zoompan x expression: left edge of the window centred on anchor_x_at."""
    m = f"mod(time,{_num(config.pan_period)})"
    third = config.pan_period / 3

    def _edge(anchor):
        return f"iw*{_num(anchor)}-(iw/zoom/2)"

    return (
        f"if(lt({m},{_num(third)}),{_edge(config.anchor_center)},"
        f"if(lt({m},{_num(2 * third)}),{_edge(config.anchor_right)},"
        f"{_edge(config.anchor_left)}))"
    )


def pan_y_expression(config: EffectConfig = DEFAULT_EFFECT) -> str:
    return f"ih*{_num(config.anchor_y)}-(ih/zoom/2)"


def zoompan_filter(
    frame_size: tuple[int, int],
    fps: float,
    config: EffectConfig = DEFAULT_EFFECT,
) -> str:
    """zoompan filter (one output frame per input frame) implementing effect_at."""
    w, h = frame_size
    return (
        f"zoompan=z='{zoom_expression(config)}'"
        f":x='{pan_x_expression(config)}'"
        f":y='{pan_y_expression(config)}'"
        f":d=1:s={w}x{h}:fps={fps:g}"
    )
