"""CLI for caption files — transcript JSON to SRT.

Usage:
    reelcompose captions transcript.json --output captions.srt
    reelcompose captions transcript.json --output captions.srt --chunk-size 2
"""

import argparse

from .captions import DEFAULT_CHUNK_SIZE, build_cues, load_transcript_words, write_srt


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Build an SRT file of fixed-size word chunks from a transcript.",
    )
    parser.add_argument(
        "transcript",
        help="Transcript JSON with a 'words' list (start, end, text|word)",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output .srt path",
    )
    parser.add_argument(
        "--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
        help=f"Words per caption (default: {DEFAULT_CHUNK_SIZE})",
    )
    parsed = parser.parse_args(args)

    if parsed.chunk_size < 1:
        parser.error("--chunk-size must be >= 1")

    words = load_transcript_words(parsed.transcript)
    cues = build_cues(words, parsed.chunk_size)
    write_srt(cues, parsed.output)
    print(f"Done: {len(words)} words -> {len(cues)} cues in {parsed.output}")


if __name__ == "__main__":
    main()
