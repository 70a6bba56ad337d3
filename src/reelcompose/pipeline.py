"""End-to-end composition of one short.

Two phases:
  - plan_short: pure planning. Insertion points, segment plan, caption
    cues. No ffmpeg, no network (beyond what the caller already fetched).
  - compose_short: fetch -> transcribe -> plan -> stitch -> render ->
    upload. All intermediates live in one temporary directory that is
    removed when the request ends, whether it succeeded or not.

Any failure abandons the whole request; nothing is retried and no
partial output is returned.
"""

import tempfile
import time
from pathlib import Path

from .captions import CaptionCue, TranscriptWord, build_cues, write_srt
from .common import probe_video
from .errors import InvalidDurationError
from .library import CutawayClip, LocalClipLibrary, fetch_clips, sample_clips
from .schedule import compute_insertion_points
from .stitch import stitch_segments
from .storage import ArtifactStore, S3ClipLibrary, fetch_source
from .render import render_final
from .timeline import TimelineSegment, compose_segments


def plan_short(
    primary: str,
    total_duration: float,
    clips: list[CutawayClip],
    words: list[TranscriptWord],
    settings: dict,
) -> dict:
    """Run the pure planning phase.

    One cutaway is placed per clip given, so len(clips) is the cutaway
    count.

    Returns:
        {'insertion_points', 'segments', 'cues'}.

    Raises:
        InvalidDurationError: Source too short for its buffers.
    """
    broll = settings["broll"]
    points = compute_insertion_points(
        total_duration, len(clips),
        start_buffer=broll["start_buffer"],
        end_buffer=broll["end_buffer"],
    )
    segments: list[TimelineSegment] = compose_segments(
        primary, total_duration, points, clips,
        max_cutaway_duration=broll["max_duration"],
    )
    cues: list[CaptionCue] = build_cues(words, settings["captions"]["chunk_size"])
    return {"insertion_points": points, "segments": segments, "cues": cues}


def library_from_settings(settings: dict, s3_client=None):
    """Local clip directory if configured, else the S3 broll bucket, else None."""
    broll = settings["broll"]
    storage = settings["storage"]
    if broll["library"]:
        return LocalClipLibrary(broll["library"])
    if storage["broll_bucket"]:
        return S3ClipLibrary(
            storage["broll_bucket"], prefix=storage["broll_prefix"], client=s3_client,
        )
    return None


def store_from_settings(settings: dict, s3_client=None):
    storage = settings["storage"]
    if storage["output_bucket"]:
        return ArtifactStore(storage["output_bucket"], client=s3_client, region=storage["region"])
    return None


def _default_transcriber(settings: dict):
    from .transcribe import transcribe_words

    def _transcribe(path):
        return transcribe_words(
            path,
            model=settings["transcribe"]["model"],
            language=settings["transcribe"]["language"],
        )
    return _transcribe


def compose_short(
    source: str,
    output: str,
    settings: dict,
    broll_count: int = 0,
    include_zoom: bool = True,
    words: list[TranscriptWord] | None = None,
    library=None,
    store: ArtifactStore | None = None,
    transcriber=None,
    plan_only: bool = False,
) -> dict:
    """Compose one short from a talking-head source.

    Args:
        source: Local path or http(s) URL of the primary video.
        output: Local path of the final mp4.
        settings: Normalized settings (settings.load_settings).
        broll_count: Cutaways requested. Capped at the library size.
        include_zoom: Apply the pan/zoom effect.
        words: Transcript words; None runs the transcriber.
        library: Clip library (list_keys/fetch). Required if broll_count > 0.
        store: Artifact store; when set, the output is uploaded.
        transcriber: callable(path) -> list[TranscriptWord]. Defaults to
            faster-whisper via transcribe.transcribe_words.
        plan_only: Stop after planning; nothing is rendered.

    Returns:
        {'output', 'url', 'duration_s', 'insertion_points', 'segments',
         'cues', 'processing_time_s'}. 'segments' and 'cues' hold the
        plan objects.

    Raises:
        ValueError: broll_count > 0 without a library, or negative.
        InvalidDurationError, MissingInputError, ExternalStageError,
        CompositionInvariantError: see errors.py.
    """
    t_start = time.monotonic()
    if broll_count < 0:
        raise ValueError(f"broll_count must be >= 0, got {broll_count}")
    if broll_count > 0 and library is None:
        raise ValueError("broll_count > 0 requires a clip library")

    work_root = Path(settings["paths"]["work"])
    work_root.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(
        prefix="request-", dir=work_root, ignore_cleanup_errors=True,
    ) as work:
        work = Path(work)

        # Step 1: source video.
        primary = fetch_source(source, work / "input.mp4")
        info = probe_video(primary)
        total = info["duration"]
        if total <= 0:
            raise InvalidDurationError(f"Source video has non-positive duration {total}")
        print(f"Source: {primary} ({total:.2f}s, {info['size'][0]}x{info['size'][1]})")

        # Step 2: scheduling window check happens before any clip is
        # fetched, so a too-short source fails fast.
        broll = settings["broll"]
        compute_insertion_points(
            total, broll_count,
            start_buffer=broll["start_buffer"], end_buffer=broll["end_buffer"],
        )

        # Step 3: transcript.
        if words is None:
            print("Transcribing audio...")
            words = (transcriber or _default_transcriber(settings))(primary)
        print(f"Transcript: {len(words)} words")

        # Step 4: cutaway clips.
        clips = []
        if broll_count > 0:
            keys = sample_clips(library.list_keys(), broll_count, seed=broll["seed"])
            if len(keys) < broll_count:
                print(f"Library holds {len(keys)} clips; placing {len(keys)} cutaways")
            clips = fetch_clips(library, keys, work / "broll")

        # Step 5: plan.
        plan = plan_short(primary, total, clips, words, settings)
        print(f"Insertion points: {[round(p, 2) for p in plan['insertion_points']]}")
        print(f"Plan: {len(plan['segments'])} segments, {len(plan['cues'])} caption cues")

        result = {
            "output": None,
            "url": None,
            "duration_s": total,
            "insertion_points": plan["insertion_points"],
            "segments": plan["segments"],
            "cues": plan["cues"],
        }
        if plan_only:
            result["processing_time_s"] = round(time.monotonic() - t_start, 2)
            return result

        # Step 6: stitch (returns the primary itself when there are no cutaways).
        video = stitch_segments(
            primary, plan["segments"], str(work / "stitched.mp4"), work / "segments",
            workers=broll["workers"],
        )

        # Step 7: final render with captions and effect.
        srt_path = None
        if plan["cues"]:
            srt_path = write_srt(plan["cues"], work / "captions.srt")
        video_settings = settings["video"]
        effect_settings = settings["effect"]
        print("Rendering captions and effects...")
        render_final(
            video, output,
            srt_path=srt_path,
            frame_size=video_settings["resolution"],
            fps=video_settings["fps"],
            effect=effect_settings["config"] if include_zoom and effect_settings["enabled"] else None,
            caption_style=settings["captions"]["style"],
            crf=video_settings["crf"],
            preset=video_settings["preset"],
        )
        result["output"] = output

    # Step 8: upload.
    if store is not None:
        key = f"{settings['storage']['output_prefix']}{int(time.time() * 1000)}.mp4"
        result["url"] = store.upload(output, key)

    result["processing_time_s"] = round(time.monotonic() - t_start, 2)
    print(f"Done in {result['processing_time_s']:.1f}s: {result['url'] or output}")
    return result
