"""Cutaway clip library — catalog listing, sampling, and fetching.

A library is anything with:
  - list_keys() -> list[str]: identifiers of every clip in the catalog.
  - fetch(key, dest_dir) -> CutawayClip: a locally readable copy.

LocalClipLibrary serves a directory on disk; storage.S3ClipLibrary
serves a bucket prefix.
"""

import random
from dataclasses import dataclass
from pathlib import Path

from .common import probe_duration
from .errors import InvalidDurationError, MissingInputError


CLIP_EXTENSIONS = (".mp4", ".mov")


@dataclass(frozen=True)
class CutawayClip:
    """A fetched cutaway: local path, natural duration, library key."""
    path: str
    duration: float
    key: str


def is_clip_key(key: str, extensions: tuple[str, ...] = CLIP_EXTENSIONS) -> bool:
    """True if the key names a video file the library should offer."""
    return key.lower().endswith(tuple(ext.lower() for ext in extensions))


def make_clip(path: str | Path, key: str) -> CutawayClip:
    """Probe a local file and wrap it as a CutawayClip.

    Raises:
        MissingInputError: File missing or unreadable.
        InvalidDurationError: Clip reports a zero or negative duration.
    """
    duration = probe_duration(path)
    if duration <= 0:
        raise InvalidDurationError(f"Cutaway '{key}' has non-positive duration {duration}")
    return CutawayClip(path=str(path), duration=duration, key=key)


def sample_clips(keys: list[str], count: int, seed: int | None = None) -> list[str]:
    """Pick `count` distinct keys (sampling without replacement).

    The catalog is sorted first so the result depends only on the key
    set and the seed, never on listing order. If the catalog holds fewer
    than `count` keys, every key is returned (in sampled order).

    Raises:
        ValueError: Negative count.
        MissingInputError: count > 0 and the catalog is empty.
    """
    if count < 0:
        raise ValueError(f"Clip count must be >= 0, got {count}")
    if count == 0:
        return []
    if not keys:
        raise MissingInputError("No cutaway clips found in library")
    rng = random.Random(seed)
    catalog = sorted(set(keys))
    return rng.sample(catalog, min(count, len(catalog)))


def fetch_clips(library, keys: list[str], dest_dir: str | Path) -> list[CutawayClip]:
    """Fetch each key from the library into dest_dir, preserving order."""
    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    clips = []
    for i, key in enumerate(keys):
        print(f"  FETCH  [{i}] {key}")
        clips.append(library.fetch(key, dest))
    return clips


class LocalClipLibrary:
    """Clip catalog backed by a directory of video files."""

    def __init__(self, directory: str | Path, extensions: tuple[str, ...] = CLIP_EXTENSIONS):
        self.directory = Path(directory)
        self.extensions = extensions

    def list_keys(self) -> list[str]:
        """File names (relative to the directory) of every clip.

        Raises:
            MissingInputError: The directory does not exist.
        """
        if not self.directory.is_dir():
            raise MissingInputError(f"Clip library directory not found: {self.directory}")
        return sorted(
            str(p.relative_to(self.directory))
            for p in self.directory.rglob("*")
            if p.is_file() and is_clip_key(p.name, self.extensions)
        )

    def fetch(self, key: str, dest_dir: str | Path) -> CutawayClip:
        """Local clips are read in place; dest_dir is unused."""
        path = self.directory / key
        if not path.exists():
            raise MissingInputError(f"Cutaway clip not found: {path}")
        return make_clip(path, key)
