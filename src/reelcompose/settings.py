"""Settings loader — per-deployment configuration from YAML.

Everything that used to be a hard-coded constant (buckets, work dir,
buffers, caps, effect tuning) lives here. Every key is optional; a
missing file or section means defaults.

Settings schema:
  paths:
    work: "/tmp/reelcompose"
    clips: "/data/broll"
  video:
    resolution: [720, 1280]
    fps: 30
    crf: 23
    preset: fast
  broll:
    library: "${clips}"         # local clip directory (optional)
    start_buffer: 3.0
    end_buffer: 3.0
    max_duration: 4.0
    seed: null
    workers: 1
  captions:
    chunk_size: 3
    style: "FontName=Arial Bold,FontSize=18,..."
    color: "#FFFF00"            # preview caption colour (quote it in YAML)
  effect:
    enabled: true
    zoom_delta: 0.15
    ramp_in: 0.5
    ramp_out: 0.5
    zoom_period: 10
    pan_period: 30
    anchor_right: 0.60
    anchor_left: 0.40
    anchor_y: 0.3333
  storage:
    region: us-east-1
    output_bucket: null
    output_prefix: "processed-"
    broll_bucket: null
    broll_prefix: ""
  transcribe:
    model: medium
    language: null
"""

import copy
from pathlib import Path

import yaml

from .common import parse_hex_color, resolve_path_vars
from .effects import EffectConfig
from .render import DEFAULT_CAPTION_STYLE


DEFAULTS = {
    "paths": {"work": "/tmp/reelcompose"},
    "video": {"resolution": [720, 1280], "fps": 30, "crf": 23, "preset": "fast"},
    "broll": {
        "library": None,
        "start_buffer": 3.0,
        "end_buffer": 3.0,
        "max_duration": 4.0,
        "seed": None,
        "workers": 1,
    },
    "captions": {"chunk_size": 3, "style": DEFAULT_CAPTION_STYLE, "color": "#FFFF00"},
    "effect": {
        "enabled": True,
        "zoom_delta": 0.15,
        "ramp_in": 0.5,
        "ramp_out": 0.5,
        "zoom_period": 10.0,
        "pan_period": 30.0,
        "anchor_right": 0.60,
        "anchor_left": 0.40,
        "anchor_y": 1 / 3,
    },
    "storage": {
        "region": "us-east-1",
        "output_bucket": None,
        "output_prefix": "processed-",
        "broll_bucket": None,
        "broll_prefix": "",
    },
    "transcribe": {"model": "medium", "language": None},
}

# Keys whose string values get ${var} substitution.
PATH_KEYS = {("paths", "work"), ("broll", "library")}


def default_settings() -> dict:
    return load_settings(None)


def load_settings(settings_path: str | Path | None = None) -> dict:
    """Load, validate, and normalize a settings file.

    Processing pipeline:
      1. Parse YAML (or start empty when no path is given).
      2. Merge each section over DEFAULTS; unknown sections/keys error.
      3. Resolve ${path} variables in path-valued keys.
      4. Validate numeric ranges and build the EffectConfig.

    Args:
        settings_path: Path to the YAML settings file, or None.

    Returns:
        Normalized settings dict. settings["effect"]["config"] holds the
        EffectConfig; settings["captions"]["rgb"] is captions.color
        parsed to (R, G, B); video.resolution is a (w, h) tuple.

    Raises:
        ValueError: Unknown keys or invalid values.
        FileNotFoundError: Missing settings file.
    """
    raw = {}
    if settings_path is not None:
        with open(settings_path) as f:
            raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError("Settings: top level must be a mapping")

    config = copy.deepcopy(DEFAULTS)

    for section, values in raw.items():
        if section not in config:
            raise ValueError(
                f"Settings: unknown section '{section}'. Valid: {sorted(config)}"
            )
        if values is not None and not isinstance(values, dict):
            raise ValueError(
                f"Settings: section '{section}' must be a mapping, got {values!r}"
            )
        if section == "paths":
            config["paths"].update(values or {})
            continue
        for key, value in (values or {}).items():
            if key not in config[section]:
                raise ValueError(
                    f"Settings: unknown key '{section}.{key}'. "
                    f"Valid: {sorted(config[section])}"
                )
            config[section][key] = value

    paths = {k: str(v) for k, v in config["paths"].items()}
    for section, key in PATH_KEYS:
        value = config[section][key]
        if isinstance(value, str):
            config[section][key] = resolve_path_vars(value, paths)

    _validate(config)
    return config


def _require_positive(section: dict, key: str, name: str, allow_zero: bool = False) -> None:
    value = section[key]
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValueError(f"Settings: {name} must be a number, got {value!r}")
    if value < 0 or (value == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValueError(f"Settings: {name} must be {bound}, got {value!r}")


def _validate(config: dict) -> None:
    video = config["video"]
    resolution = video["resolution"]
    if (
        not isinstance(resolution, (list, tuple))
        or len(resolution) != 2
        or not all(isinstance(v, int) and v > 0 and v % 2 == 0 for v in resolution)
    ):
        raise ValueError(
            f"Settings: video.resolution must be [w, h] with even positive ints, got {resolution!r}"
        )
    video["resolution"] = tuple(resolution)
    _require_positive(video, "fps", "video.fps")
    _require_positive(video, "crf", "video.crf", allow_zero=True)

    broll = config["broll"]
    _require_positive(broll, "start_buffer", "broll.start_buffer", allow_zero=True)
    _require_positive(broll, "end_buffer", "broll.end_buffer", allow_zero=True)
    _require_positive(broll, "max_duration", "broll.max_duration")
    if not isinstance(broll["workers"], int) or broll["workers"] < 1:
        raise ValueError(f"Settings: broll.workers must be an int >= 1, got {broll['workers']!r}")
    if broll["seed"] is not None and not isinstance(broll["seed"], int):
        raise ValueError(f"Settings: broll.seed must be an int or null, got {broll['seed']!r}")

    chunk_size = config["captions"]["chunk_size"]
    if not isinstance(chunk_size, int) or chunk_size < 1:
        raise ValueError(f"Settings: captions.chunk_size must be an int >= 1, got {chunk_size!r}")
    color = config["captions"]["color"]
    if not isinstance(color, str):
        raise ValueError(f"Settings: captions.color must be a hex string like '#FFFF00', got {color!r}")
    try:
        config["captions"]["rgb"] = parse_hex_color(color)
    except ValueError as e:
        raise ValueError(f"Settings: captions.color: {e}") from e

    effect = config["effect"]
    params = {k: v for k, v in effect.items() if k != "enabled"}
    try:
        effect["config"] = EffectConfig(**{k: float(v) for k, v in params.items()})
    except TypeError as e:
        raise ValueError(f"Settings: effect values must be numbers ({e})") from e
