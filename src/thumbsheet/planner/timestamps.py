"""Where to seek (extraction plan) and which time ranges each thumbnail covers (display plan).

The two plans are computed by separate formulas on purpose. Extraction
samples ``num_caps`` points strictly inside the usable range; the display
plan spreads cue ranges evenly over the whole, untrimmed video.
"""

import logging
from typing import List

from thumbsheet.models.options import ThumbnailOptions

logger = logging.getLogger(__name__)

CREDITS_MAX_SECONDS = 120.0
CREDITS_FRACTION = 0.1


def credits_duration(duration: float) -> float:
    """Length cut from the end with skip-credits: 2 minutes or 10%, whichever is shorter."""
    return min(CREDITS_MAX_SECONDS, duration * CREDITS_FRACTION)


def plan_extraction(duration: float, options: ThumbnailOptions) -> List[float]:
    """Compute the timestamps (in seconds) the decoder is asked to seek to.

    Raises:
        ValueError: If the resolved range is empty.
    """
    from_time = options.start_seconds
    end = options.end_seconds
    to_time = duration if end is None else end

    if options.skip_credits:
        to_time = duration - credits_duration(duration)
        logger.debug(f"Skipping credits: range ends at {to_time:.2f}s")

    if to_time > duration:
        to_time = duration

    working_duration = to_time - from_time
    if working_duration <= 0:
        raise ValueError(
            f"Empty capture range: from {from_time:.2f}s to {to_time:.2f}s "
            f"(video duration {duration:.2f}s)"
        )

    if options.interval > 0:
        timestamps = []
        k = 0
        while from_time + k * options.interval < to_time:
            timestamps.append(from_time + k * options.interval)
            k += 1
        return timestamps

    if options.num_caps <= 1:
        return [from_time + working_duration / 2]

    # num_caps + 1 keeps the last sample strictly before to_time; the very last
    # instant of a stream frequently cannot be decoded
    step = working_duration / (options.num_caps + 1)
    return [from_time + step * i for i in range(1, options.num_caps + 1)]


def plan_display(duration: float, frame_count: int) -> List[float]:
    """Cue boundaries for ``frame_count`` thumbnails: frame_count + 1 values from 0 to duration.

    Raises:
        ValueError: If frame_count is not positive.
    """
    if frame_count <= 0:
        raise ValueError(f"Display plan needs at least one frame, got {frame_count}")
    step = duration / frame_count
    return [0.0] + [step * i for i in range(1, frame_count + 1)]
