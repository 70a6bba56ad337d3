"""Error taxonomy for composition requests.

Every error raised by reelcompose is fatal for the current request.
Each class also derives from the builtin it refines, so callers that
already catch ValueError / FileNotFoundError / RuntimeError keep working.
"""


class ReelComposeError(Exception):
    """Base class for all reelcompose errors."""


class InvalidDurationError(ReelComposeError, ValueError):
    """Scheduling window is empty, or a clip reports a non-positive duration."""


class MissingInputError(ReelComposeError, FileNotFoundError):
    """A cutaway clip or the primary source cannot be read."""


class CompositionInvariantError(ReelComposeError, RuntimeError):
    """An internal consistency check failed. Indicates a logic defect."""


class ExternalStageError(ReelComposeError, RuntimeError):
    """A collaborator (ffmpeg, transcription, storage) reported failure.

    Attributes:
        stage: Name of the failing stage, e.g. "extract", "concat", "upload".
        index: Segment or cue index the stage was working on, if any.
    """

    def __init__(self, stage: str, message: str, index: int | None = None):
        self.stage = stage
        self.index = index
        where = f"{stage}[{index}]" if index is not None else stage
        super().__init__(f"{where}: {message}")
