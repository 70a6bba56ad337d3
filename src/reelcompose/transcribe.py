"""Transcription — faster-whisper word timestamps.

Requires optional dependencies: pip install reelcompose[transcribe]
Import-guarded so planning, stitching and rendering work without it.
"""

import json
import tempfile
from pathlib import Path

from .captions import TranscriptWord
from .common import run_ffmpeg
from .errors import ExternalStageError, MissingInputError

# Import-guarded heavy dependency.
try:
    from faster_whisper import WhisperModel
    _WHISPER_AVAILABLE = True
except ImportError:
    WhisperModel = None
    _WHISPER_AVAILABLE = False


def _extract_audio(source: str, work_dir: Path) -> str:
    """Extract mono 16 kHz WAV audio (what whisper resamples to anyway)."""
    wav_path = str(work_dir / "audio.wav")
    run_ffmpeg(
        [
            "-i", source,
            "-vn",
            "-acodec", "pcm_s16le",
            "-ar", "16000",
            "-ac", "1",
            wav_path,
        ],
        stage="extract_audio",
    )
    return wav_path


def _normalize_words(words: list[dict]) -> list[TranscriptWord]:
    """Drop empty words and clamp overlaps so words are ordered and disjoint.

    Whisper occasionally starts a word a few ms before the previous one
    ends; the next word's start is moved up to the previous end.
    """
    result = []
    prev_end = 0.0
    for w in words:
        text = w["text"].strip()
        if not text:
            continue
        start = max(w["start"], prev_end)
        end = max(w["end"], start)
        result.append(TranscriptWord(text=text, start=start, end=end))
        prev_end = end
    return result


def _build_output(
    source: str,
    duration_s: float,
    model: str,
    language: str,
    words: list[TranscriptWord],
) -> dict:
    """Build the output dict matching the transcript JSON schema."""
    return {
        "source": source,
        "duration_s": duration_s,
        "model": model,
        "language": language,
        "words": [{"start": w.start, "end": w.end, "text": w.text} for w in words],
    }


def transcribe(
    source: str,
    model: str = "medium",
    language: str | None = None,
    output: str | None = None,
) -> dict:
    """Transcribe a video/audio file with word-level timestamps.

    Args:
        source: Path to video or audio file.
        model: Whisper model size (tiny, base, small, medium, large-v3).
        language: Language code or None for auto-detection.
        output: Optional JSON path to also write the transcript to.

    Returns:
        Transcript dict: source, duration_s, model, language, words.

    Raises:
        RuntimeError: reelcompose[transcribe] is not installed.
        MissingInputError: Source file does not exist.
        ExternalStageError: Audio extraction or whisper failed.
    """
    if not _WHISPER_AVAILABLE:
        raise RuntimeError(
            "Transcription requires extra dependencies.\n"
            "Run: pip install reelcompose[transcribe]"
        )
    source_path = Path(source)
    if not source_path.exists():
        raise MissingInputError(f"Source not found: {source}")

    with tempfile.TemporaryDirectory() as work_dir:
        wav_path = _extract_audio(source, Path(work_dir))

        try:
            whisper_model = WhisperModel(model)
            segments, info = whisper_model.transcribe(
                wav_path,
                language=language,
                word_timestamps=True,
            )
            raw_words = []
            for segment in segments:
                if segment.words:
                    for w in segment.words:
                        raw_words.append({
                            "start": round(w.start, 3),
                            "end": round(w.end, 3),
                            "text": w.word,
                        })
        except (RuntimeError, ValueError, OSError) as e:
            raise ExternalStageError("transcribe", str(e)) from e

    words = _normalize_words(raw_words)
    result = _build_output(
        source=source_path.name,
        duration_s=round(info.duration, 1),
        model=model,
        language=language or info.language,
        words=words,
    )

    if output is not None:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2)

    return result


def transcribe_words(source: str, model: str = "medium", language: str | None = None) -> list[TranscriptWord]:
    """transcribe() reduced to the word sequence the caption builder needs."""
    result = transcribe(source, model=model, language=language)
    return [TranscriptWord(**w) for w in result["words"]]
