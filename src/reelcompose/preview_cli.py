"""CLI for preview renders — moviepy frame loop, no libass needed.

Usage:
    reelcompose preview source.mp4 --output preview.mp4
    reelcompose preview source.mp4 --output preview.mp4 \
        --transcript transcript.json --settings settings.yaml
"""

import argparse

from .captions import build_cues, load_transcript_words
from .render import render_preview
from .settings import load_settings


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Preview the pan/zoom effect and caption timing on a video.",
    )
    parser.add_argument(
        "source",
        help="Video to preview (e.g. a stitched composition or the raw source)",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output mp4 path",
    )
    parser.add_argument(
        "--transcript", default=None,
        help="Transcript JSON; captions are drawn when given",
    )
    parser.add_argument(
        "--settings", default=None,
        help="YAML settings file (effect tuning, caption chunk size)",
    )
    parser.add_argument(
        "--no-zoom", action="store_true",
        help="Disable the pan/zoom effect",
    )
    parsed = parser.parse_args(args)

    settings = load_settings(parsed.settings)
    cues = []
    if parsed.transcript:
        words = load_transcript_words(parsed.transcript)
        cues = build_cues(words, settings["captions"]["chunk_size"])

    effect_settings = settings["effect"]
    effect = None
    if not parsed.no_zoom and effect_settings["enabled"]:
        effect = effect_settings["config"]

    print(f"Previewing {parsed.source}: {len(cues)} cues, effect {'on' if effect else 'off'}")
    render_preview(
        parsed.source, parsed.output, cues,
        effect=effect, caption_color=settings["captions"]["rgb"],
    )
    print(f"\nDone: {parsed.output}")


if __name__ == "__main__":
    main()
