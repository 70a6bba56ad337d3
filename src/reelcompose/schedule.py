"""Cutaway insertion point scheduling.

Points are spread evenly across the usable window, which excludes an
intro buffer at the start and a call-to-action buffer at the end. With
count=3 on a 30s source the points land at 25%, 50% and 75% of the
24s window.
"""

from .errors import InvalidDurationError


DEFAULT_START_BUFFER = 3.0
DEFAULT_END_BUFFER = 3.0


def compute_insertion_points(
    total_duration: float,
    count: int,
    start_buffer: float = DEFAULT_START_BUFFER,
    end_buffer: float = DEFAULT_END_BUFFER,
) -> list[float]:
    """Return `count` ascending timestamps where cutaways begin.

    interval = usable / (count + 1), point i = start_buffer + interval * i,
    so every point is strictly inside (start_buffer, total - end_buffer).

    Args:
        total_duration: Primary video duration in seconds.
        count: Number of cutaways to place (>= 0).
        start_buffer: Seconds at the start that never receive a cutaway.
        end_buffer: Seconds at the end that never receive a cutaway.

    Raises:
        ValueError: Negative count or buffer.
        InvalidDurationError: count > 0 and the usable window is <= 0.
    """
    if count < 0:
        raise ValueError(f"Cutaway count must be >= 0, got {count}")
    if start_buffer < 0 or end_buffer < 0:
        raise ValueError(
            f"Buffers must be >= 0, got start={start_buffer}, end={end_buffer}"
        )
    if count == 0:
        return []

    usable = total_duration - start_buffer - end_buffer
    if usable <= 0:
        raise InvalidDurationError(
            f"No room for cutaways: {total_duration:.3f}s source minus "
            f"{start_buffer:.3f}s + {end_buffer:.3f}s buffers leaves {usable:.3f}s"
        )

    interval = usable / (count + 1)
    return [start_buffer + interval * i for i in range(1, count + 1)]
