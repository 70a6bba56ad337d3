"""Segment materialization and stitching — executes a timeline plan.

Three ffmpeg stages, all video-only until the last:
  1. extract: one intermediate mp4 per segment (primary sub-range, or a
     trimmed cutaway scaled/cropped to the output frame). Segments are
     independent, so extraction can run on a worker pool.
  2. concat: join the intermediates in plan order (concat demuxer,
     stream copy; every intermediate shares codec, size and fps).
  3. remux: put the ORIGINAL primary soundtrack under the stitched
     picture. Per-segment audio is never used, so speech runs unbroken
     underneath the cutaways. -shortest trims rounding drift.

A plan without cutaways is a passthrough: the primary path is returned
as-is and ffmpeg is never invoked.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from .common import probe_video, run_ffmpeg
from .errors import MissingInputError
from .timeline import SegmentKind, TimelineSegment


def _video_filter(frame_size: tuple[int, int], fps: float) -> str:
    """Scale to cover the frame, centre-crop the overflow, fix fps."""
    w, h = frame_size
    return (
        f"scale={w}:{h}:force_original_aspect_ratio=increase,"
        f"crop={w}:{h},setsar=1,fps={fps:g}"
    )


def validate_segment_sources(segments: list[TimelineSegment]) -> None:
    """Check that every file the plan references exists on disk.

    Raises:
        MissingInputError: Lists all missing files.
    """
    missing = []
    for ref in dict.fromkeys(seg.source_ref for seg in segments):
        if not Path(ref).exists():
            missing.append(ref)

    if missing:
        msg = f"Missing {len(missing)} segment source(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise MissingInputError(msg)


def extract_segment(
    segment: TimelineSegment,
    index: int,
    output: str,
    frame_size: tuple[int, int],
    fps: float,
) -> str:
    """Render one segment to a video-only intermediate.

    Input-side seeking (-ss before -i) with a re-encode is frame
    accurate. Cutaways always start at their first frame.

    Returns:
        The output path.
    """
    seek = []
    if segment.source_offset > 0:
        seek = ["-ss", f"{segment.source_offset:.6f}"]

    run_ffmpeg(
        [
            *seek,
            "-i", segment.source_ref,
            "-t", f"{segment.duration:.6f}",
            "-an",
            "-vf", _video_filter(frame_size, fps),
            "-c:v", "libx264", "-preset", "ultrafast", "-crf", "23",
            "-pix_fmt", "yuv420p",
            output,
        ],
        stage="extract",
        index=index,
    )
    return output


def concat_segments(paths: list[str], output: str, work_dir: str | Path) -> str:
    """Join video-only intermediates in the given order without re-encoding."""
    list_path = Path(work_dir) / "concat.txt"
    lines = []
    for p in paths:
        escaped = str(Path(p).resolve()).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    list_path.write_text("\n".join(lines) + "\n")

    run_ffmpeg(
        ["-f", "concat", "-safe", "0", "-i", str(list_path), "-c", "copy", output],
        stage="concat",
    )
    return output


def reattach_audio(video: str, audio_source: str, output: str) -> str:
    """Mux audio_source's first audio track (if any) under video's picture.

    Both streams are copied. The output ends with the shorter stream.
    """
    run_ffmpeg(
        [
            "-i", video,
            "-i", audio_source,
            "-map", "0:v:0",
            "-map", "1:a:0?",
            "-c", "copy",
            "-shortest",
            output,
        ],
        stage="remux",
    )
    return output


def stitch_segments(
    primary: str,
    segments: list[TimelineSegment],
    output: str,
    work_dir: str | Path,
    frame_size: tuple[int, int] | None = None,
    fps: float | None = None,
    workers: int = 1,
) -> str:
    """Materialize a segment plan and return the path of the stitched video.

    Args:
        primary: Path to the primary (talking-head) video.
        segments: Plan from timeline.compose_segments.
        output: Path for the stitched video (with primary audio).
        work_dir: Directory for intermediates. The caller owns cleanup.
        frame_size: Output (w, h). Defaults to the primary's frame size.
        fps: Output frame rate. Defaults to the primary's.
        workers: Parallel segment extractions (1 = sequential).

    Returns:
        `output`, or `primary` unchanged when the plan has no cutaways.

    Raises:
        MissingInputError: A referenced source file is missing.
        ExternalStageError: Any ffmpeg stage failed.
    """
    if not any(seg.kind is SegmentKind.CUTAWAY for seg in segments):
        print("No cutaways in plan — passing primary through.")
        return primary

    validate_segment_sources(segments)

    if frame_size is None or fps is None:
        info = probe_video(primary)
        frame_size = frame_size or info["size"]
        fps = fps or info["fps"]

    work = Path(work_dir)
    work.mkdir(parents=True, exist_ok=True)
    seg_paths = [str(work / f"segment_{i:03d}.mp4") for i in range(len(segments))]

    def _extract(i):
        seg = segments[i]
        t0 = time.monotonic()
        extract_segment(seg, i, seg_paths[i], frame_size, fps)
        elapsed = time.monotonic() - t0
        print(
            f"  CUT    [{i}] {seg.kind.value:<8} {seg.source_offset:7.2f}s + "
            f"{seg.duration:5.2f}s  ({elapsed:.1f}s wall)",
            flush=True,
        )

    effective_workers = max(1, min(workers, len(segments)))
    print(f"Extracting {len(segments)} segments ({effective_workers} workers)")
    if effective_workers == 1:
        for i in range(len(segments)):
            _extract(i)
    else:
        with ThreadPoolExecutor(max_workers=effective_workers) as pool:
            futures = {pool.submit(_extract, i): i for i in range(len(segments))}
            try:
                for future in as_completed(futures):
                    future.result()  # propagate exceptions
            except BaseException:
                pool.shutdown(wait=True, cancel_futures=True)
                raise

    stitched = str(work / "stitched_video.mp4")
    concat_segments(seg_paths, stitched, work)
    reattach_audio(stitched, primary, output)
    print(f"  DONE   stitched {len(segments)} segments -> {output}")
    return output
