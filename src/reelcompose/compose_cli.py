"""CLI for the full composition pipeline.

Usage:
    # Captions + zoom only
    reelcompose compose talking-head.mp4 --output short.mp4

    # Three cutaways from a local clip directory, reproducible choice
    reelcompose compose talking-head.mp4 --output short.mp4 \
        --broll-count 3 --broll-dir clips/ --seed 7

    # Source from a URL, clips and output in S3 (buckets from settings)
    reelcompose compose https://example.com/in.mp4 --output /tmp/short.mp4 \
        --settings settings.yaml --broll-count 2 --upload

    # Print the plan without rendering
    reelcompose compose talking-head.mp4 --broll-count 3 --broll-dir clips/ \
        --transcript transcript.json --plan-only
"""

import argparse
import json
from dataclasses import asdict

from .captions import format_timestamp, load_transcript_words
from .library import LocalClipLibrary
from .pipeline import compose_short, library_from_settings, store_from_settings
from .settings import load_settings
from .timeline import segments_to_dicts


def _print_plan(result: dict) -> None:
    print(f"\nSource duration: {result['duration_s']:.2f}s")
    print(f"Insertion points: {len(result['insertion_points'])}")
    for i, p in enumerate(result["insertion_points"]):
        print(f"  {i}: {p:.3f}s")

    segments = segments_to_dicts(result["segments"])
    print(f"Segments: {len(segments)}")
    for i, seg in enumerate(segments):
        print(
            f"  {i}: {seg['kind']:<8} at {seg['timeline_start']:7.3f}s  "
            f"{seg['duration']:6.3f}s  {seg['source_ref']} @ {seg['source_offset']:.3f}s"
        )

    cues = result["cues"]
    print(f"Caption cues: {len(cues)}")
    for cue in cues[:5]:
        print(f"  {cue.index}: {format_timestamp(cue.start)} --> {format_timestamp(cue.end)}  {cue.text}")
    if len(cues) > 5:
        print(f"  ... {len(cues) - 5} more")


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Compose a short: cutaways, burned-in captions, pan/zoom effect.",
    )
    parser.add_argument(
        "source",
        help="Primary (talking-head) video: local path or http(s) URL",
    )
    parser.add_argument(
        "--output",
        help="Output mp4 path (required unless --plan-only)",
    )
    parser.add_argument(
        "--settings", default=None,
        help="YAML settings file (default: built-in defaults)",
    )
    parser.add_argument(
        "--broll-count", type=int, default=0,
        help="Number of cutaways to insert (default: 0)",
    )
    parser.add_argument(
        "--broll-dir", default=None,
        help="Local clip library directory (overrides settings)",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Seed for cutaway clip sampling (overrides settings)",
    )
    parser.add_argument(
        "--transcript", default=None,
        help="Transcript JSON with word timestamps (skips transcription)",
    )
    parser.add_argument(
        "--no-zoom", action="store_true",
        help="Disable the pan/zoom effect",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Parallel segment extractions (overrides settings)",
    )
    parser.add_argument(
        "--upload", action="store_true",
        help="Upload the output to storage.output_bucket and print its URL",
    )
    parser.add_argument(
        "--plan-only", action="store_true",
        help="Print insertion points, segments and cues; don't render",
    )
    parser.add_argument(
        "--plan-json", default=None,
        help="Also write the plan as JSON to this path",
    )
    parsed = parser.parse_args(args)

    if not parsed.output and not parsed.plan_only:
        parser.error("--output is required (unless using --plan-only)")

    settings = load_settings(parsed.settings)
    if parsed.seed is not None:
        settings["broll"]["seed"] = parsed.seed
    if parsed.workers is not None:
        if parsed.workers < 1:
            parser.error("--workers must be >= 1")
        settings["broll"]["workers"] = parsed.workers

    library = None
    if parsed.broll_count > 0:
        if parsed.broll_dir:
            library = LocalClipLibrary(parsed.broll_dir)
        else:
            library = library_from_settings(settings)
        if library is None:
            parser.error(
                "--broll-count needs --broll-dir, broll.library or storage.broll_bucket"
            )

    store = None
    if parsed.upload:
        store = store_from_settings(settings)
        if store is None:
            parser.error("--upload needs storage.output_bucket in --settings")

    words = None
    if parsed.transcript:
        words = load_transcript_words(parsed.transcript)
    elif parsed.plan_only:
        print("No --transcript given: planning without captions.")
        words = []

    result = compose_short(
        parsed.source,
        parsed.output,
        settings,
        broll_count=parsed.broll_count,
        include_zoom=not parsed.no_zoom,
        words=words,
        library=library,
        store=store,
        plan_only=parsed.plan_only,
    )

    if parsed.plan_only:
        _print_plan(result)

    if parsed.plan_json:
        with open(parsed.plan_json, "w") as f:
            json.dump(
                {
                    "duration_s": result["duration_s"],
                    "insertion_points": result["insertion_points"],
                    "segments": segments_to_dicts(result["segments"]),
                    "cues": [asdict(c) for c in result["cues"]],
                },
                f,
                indent=2,
            )
        print(f"Plan written to {parsed.plan_json}")

    if result["url"]:
        print(f"\nURL: {result['url']}")


if __name__ == "__main__":
    main()
