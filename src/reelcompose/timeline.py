"""Segment composition — the abstract timeline plan.

Turns (primary duration, insertion points, cutaway clips) into an
ordered list of TimelineSegments. Cutaways REPLACE primary time: the
primary picture is skipped while a cutaway plays (its audio is not, see
stitch.py), so the segment durations always sum to the primary duration.

Walkthrough for a 30s primary, points [11, 19], cutaways of 6s and 2s,
cap 4s:

    primary  [0, 11)       11s
    cutaway  clip-a        4s   (6s capped)
    primary  [15, 19)      4s
    cutaway  clip-b        2s
    primary  [21, 30)      9s
                           ---
                           30s
"""

import math
from dataclasses import dataclass, asdict
from enum import Enum

from .errors import CompositionInvariantError, InvalidDurationError
from .library import CutawayClip


DEFAULT_MAX_CUTAWAY_DURATION = 4.0

# Tolerance for the duration-sum invariant.
DURATION_EPSILON = 1e-6


class SegmentKind(str, Enum):
    PRIMARY = "primary"
    CUTAWAY = "cutaway"


@dataclass(frozen=True)
class TimelineSegment:
    """A contiguous slice of the primary video or of one cutaway clip.

    source_offset is measured in the source's own time (always 0 for
    cutaways, which play from their first frame).
    """
    kind: SegmentKind
    source_ref: str
    source_offset: float
    duration: float


def compose_segments(
    primary_ref: str,
    total_duration: float,
    insertion_points: list[float],
    clips: list[CutawayClip],
    max_cutaway_duration: float = DEFAULT_MAX_CUTAWAY_DURATION,
) -> list[TimelineSegment]:
    """Build the ordered segment plan.

    A cursor walks the primary timeline. For each insertion point p with
    its clip c: emit primary [cursor, p) if non-empty, emit c for
    min(c.duration, cap) seconds, move the cursor to p + used. A trailing
    primary segment covers whatever is left.

    A cutaway never runs past the next insertion point or the end of the
    primary; it is trimmed to fit. Points from compute_insertion_points
    only need this when the spacing is shorter than the cap.

    Args:
        primary_ref: Path (or handle) of the primary video.
        total_duration: Primary duration in seconds.
        insertion_points: Ascending timestamps, one per clip.
        clips: Cutaway clips, same order as insertion_points.
        max_cutaway_duration: Cap on each cutaway's on-screen time.

    Returns:
        Segments in final-timeline order.

    Raises:
        ValueError: Mismatched lengths, unordered or out-of-range points,
            non-positive cap.
        InvalidDurationError: Non-positive primary or clip duration.
        CompositionInvariantError: Durations failed to sum to total.
    """
    if total_duration <= 0:
        raise InvalidDurationError(f"Primary duration must be > 0, got {total_duration}")
    if max_cutaway_duration <= 0:
        raise ValueError(f"max_cutaway_duration must be > 0, got {max_cutaway_duration}")
    if len(insertion_points) != len(clips):
        raise ValueError(
            f"Need one clip per insertion point: "
            f"{len(insertion_points)} points, {len(clips)} clips"
        )
    for i, p in enumerate(insertion_points):
        if not 0 <= p < total_duration:
            raise ValueError(
                f"Insertion point {i} ({p}) outside [0, {total_duration})"
            )
        if i > 0 and p <= insertion_points[i - 1]:
            raise ValueError(f"Insertion points must be strictly ascending: {insertion_points}")
    for clip in clips:
        if clip.duration <= 0:
            raise InvalidDurationError(
                f"Cutaway '{clip.key}' has non-positive duration {clip.duration}"
            )

    segments = []
    cursor = 0.0

    for i, (point, clip) in enumerate(zip(insertion_points, clips)):
        if point > cursor:
            segments.append(TimelineSegment(
                SegmentKind.PRIMARY, primary_ref, cursor, point - cursor,
            ))

        limit = insertion_points[i + 1] if i + 1 < len(insertion_points) else total_duration
        end = min(point + min(clip.duration, max_cutaway_duration), limit)
        segments.append(TimelineSegment(SegmentKind.CUTAWAY, clip.path, 0.0, end - point))
        cursor = end

    if cursor < total_duration:
        segments.append(TimelineSegment(
            SegmentKind.PRIMARY, primary_ref, cursor, total_duration - cursor,
        ))

    check_segments(segments, total_duration)
    return segments


def check_segments(segments: list[TimelineSegment], total_duration: float) -> None:
    """Verify the plan is gapless and sums to the primary duration.

    Raises:
        CompositionInvariantError: On any violation.
    """
    for i, seg in enumerate(segments):
        if seg.duration <= 0:
            raise CompositionInvariantError(
                f"Segment {i} has non-positive duration {seg.duration}"
            )

    # Primary segments must appear in source order and each must resume
    # exactly where the timeline left off.
    timeline_t = 0.0
    for i, seg in enumerate(segments):
        if seg.kind is SegmentKind.PRIMARY and not math.isclose(
            seg.source_offset, timeline_t, abs_tol=DURATION_EPSILON,
        ):
            raise CompositionInvariantError(
                f"Segment {i} starts at {seg.source_offset:.6f}s in the primary "
                f"but the timeline is at {timeline_t:.6f}s"
            )
        timeline_t += seg.duration

    if not math.isclose(timeline_t, total_duration, abs_tol=DURATION_EPSILON):
        raise CompositionInvariantError(
            f"Segment durations sum to {timeline_t:.6f}s, expected {total_duration:.6f}s"
        )


def segments_to_dicts(segments: list[TimelineSegment]) -> list[dict]:
    """Plain-dict form of a plan (JSON/YAML friendly), with timeline starts."""
    result = []
    timeline_t = 0.0
    for seg in segments:
        d = asdict(seg)
        d["kind"] = seg.kind.value
        d["timeline_start"] = timeline_t
        result.append(d)
        timeline_t += seg.duration
    return result
