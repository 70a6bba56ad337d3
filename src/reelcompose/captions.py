"""Caption cues — word transcript to fixed-size, time-coded SRT blocks.

Words are grouped into consecutive chunks of `chunk_size` (default 3).
Each chunk becomes one cue spanning its first word's start to its last
word's end. The SRT layout is consumed by ffmpeg's subtitles filter and
must stay byte-for-byte:

    1
    00:00:00,000 --> 00:00:01,240
    so here is

    2
    ...
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path

from .errors import CompositionInvariantError


DEFAULT_CHUNK_SIZE = 3


@dataclass(frozen=True)
class TranscriptWord:
    text: str
    start: float
    end: float


@dataclass(frozen=True)
class CaptionCue:
    index: int
    start: float
    end: float
    text: str


# ── Time codes ─────────────────────────────────────────────────────


def format_timestamp(seconds: float) -> str:
    """Render seconds as HH:MM:SS,mmm, truncating to whole milliseconds.

    The fraction is rounded to 1e-6 ms before truncation so binary float
    noise (1.001 -> 1000.9999999) does not lose a millisecond.

    >>> format_timestamp(3725.4567)
    '01:02:05,456'
    """
    if seconds < 0:
        raise ValueError(f"Timestamp must be >= 0, got {seconds}")
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    millis = math.floor(round((seconds % 1) * 1000, 6))
    if millis >= 1000:
        millis = 999
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


# ── Cue building ───────────────────────────────────────────────────


def build_cues(words: list[TranscriptWord], chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[CaptionCue]:
    """Group words into cues of `chunk_size` (the last may be shorter).

    Text is the words joined by single spaces, untouched otherwise.

    Raises:
        ValueError: chunk_size < 1.
        CompositionInvariantError: Words are out of order, so the cues
            would overlap.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    cues = []
    for k, i in enumerate(range(0, len(words), chunk_size), start=1):
        chunk = words[i:i + chunk_size]
        cues.append(CaptionCue(
            index=k,
            start=chunk[0].start,
            end=chunk[-1].end,
            text=" ".join(w.text for w in chunk),
        ))

    check_cues(cues)
    return cues


def check_cues(cues: list[CaptionCue]) -> None:
    """Cues must be numbered 1..n with ascending, non-overlapping times."""
    for i, cue in enumerate(cues):
        if cue.index != i + 1:
            raise CompositionInvariantError(f"Cue {i} has index {cue.index}, expected {i + 1}")
        if cue.end < cue.start:
            raise CompositionInvariantError(
                f"Cue {cue.index} ends ({cue.end}) before it starts ({cue.start})"
            )
        if i > 0:
            prev = cues[i - 1]
            if cue.start <= prev.start or cue.start < prev.end:
                raise CompositionInvariantError(
                    f"Cue {cue.index} starts at {cue.start}s, overlapping cue "
                    f"{prev.index} ({prev.start}s - {prev.end}s)"
                )


def cue_at(cues: list[CaptionCue], t: float) -> CaptionCue | None:
    """The cue on screen at time t, if any (start inclusive, end exclusive)."""
    for cue in cues:
        if cue.start <= t < cue.end:
            return cue
        if cue.start > t:
            break
    return None


# ── SRT output ─────────────────────────────────────────────────────


def render_srt(cues: list[CaptionCue]) -> str:
    """Serialize cues as SRT blocks separated by a blank line."""
    blocks = [
        f"{cue.index}\n{format_timestamp(cue.start)} --> {format_timestamp(cue.end)}\n{cue.text}\n"
        for cue in cues
    ]
    return "\n".join(blocks)


def write_srt(cues: list[CaptionCue], output: str | Path) -> str:
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    Path(output).write_text(render_srt(cues), encoding="utf-8")
    return str(output)


# ── Transcript input ───────────────────────────────────────────────


def words_from_dicts(raw_words: list[dict]) -> list[TranscriptWord]:
    """Convert transcript word dicts to TranscriptWords.

    Accepts both the transcribe.py shape ({'text', 'start', 'end'}) and
    the OpenAI verbose_json shape ({'word', 'start', 'end'}).

    Raises:
        ValueError: Missing fields, or end before start.
    """
    words = []
    for i, w in enumerate(raw_words):
        text = w.get("text", w.get("word"))
        if text is None or "start" not in w or "end" not in w:
            raise ValueError(f"Transcript word {i}: needs text/word, start and end")
        start, end = float(w["start"]), float(w["end"])
        if end < start:
            raise ValueError(f"Transcript word {i} ('{text}'): end {end} < start {start}")
        words.append(TranscriptWord(text=str(text).strip(), start=start, end=end))
    return words


def load_transcript_words(path: str | Path) -> list[TranscriptWord]:
    """Load the 'words' list from a transcript JSON file."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if "words" not in raw:
        raise ValueError(f"Transcript {path}: missing required 'words' field")
    return words_from_dicts(raw["words"])
