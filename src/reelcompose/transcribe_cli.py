"""CLI for transcription — word-level timestamps, optionally straight to SRT.

Usage:
    reelcompose transcribe source.mp4
    reelcompose transcribe source.mp4 --model large-v3 --srt captions.srt
    reelcompose transcribe source.mp4 --language en --output transcript.json
"""

import argparse
from pathlib import Path

from .captions import DEFAULT_CHUNK_SIZE, build_cues, words_from_dicts, write_srt
from .transcribe import transcribe


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Transcribe video/audio with word-level timestamps.",
    )
    parser.add_argument(
        "source",
        help="Path to video or audio file",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output JSON path (default: <source>.transcript.json)",
    )
    parser.add_argument(
        "--model", default="medium",
        help="Whisper model size (default: medium)",
    )
    parser.add_argument(
        "--language", default=None,
        help="Source language code (default: auto-detect)",
    )
    parser.add_argument(
        "--srt", default=None,
        help="Also write caption cues to this .srt path",
    )
    parser.add_argument(
        "--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
        help=f"Words per caption for --srt (default: {DEFAULT_CHUNK_SIZE})",
    )
    parsed = parser.parse_args(args)
    if parsed.chunk_size < 1:
        parser.error("--chunk-size must be >= 1")
    return parsed


def main(args=None):
    parsed = _parse_args(args)
    output = parsed.output or str(Path(parsed.source).with_suffix(".transcript.json"))

    print(f"Transcribing: {parsed.source} (model {parsed.model})")

    result = transcribe(
        source=parsed.source,
        model=parsed.model,
        language=parsed.language,
        output=output,
    )
    print(f"\nDone: {len(result['words'])} words, {result['duration_s']}s, language={result['language']}")
    print(f"Transcript: {output}")

    if parsed.srt:
        cues = build_cues(words_from_dicts(result["words"]), parsed.chunk_size)
        write_srt(cues, parsed.srt)
        print(f"Captions:   {parsed.srt} ({len(cues)} cues)")


if __name__ == "__main__":
    main()
