"""Subcommand dispatcher for reelcompose.

Usage:
    reelcompose compose    source.mp4 --output short.mp4 --broll-count 3
    reelcompose captions   transcript.json --output captions.srt
    reelcompose transcribe source.mp4 --output transcript.json
    reelcompose preview    source.mp4 --output preview.mp4 --transcript t.json
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="reelcompose",
        description="Short vertical video assembly: cutaways, captions, pan/zoom.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compose", help="Full pipeline: cutaways, captions, effect, upload")
    subparsers.add_parser("captions", help="Build an SRT caption file from a transcript")
    subparsers.add_parser("transcribe", help="Transcribe video/audio with word timestamps")
    subparsers.add_parser("preview", help="moviepy preview of the effect and captions")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compose":
        from .compose_cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "captions":
        from .captions_cli import main as captions_main
        captions_main(remaining)
    elif parsed.command == "transcribe":
        from .transcribe_cli import main as transcribe_main
        transcribe_main(remaining)
    elif parsed.command == "preview":
        from .preview_cli import main as preview_main
        preview_main(remaining)


if __name__ == "__main__":
    main()
