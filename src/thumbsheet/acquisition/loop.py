"""Decode one frame per planned timestamp, retrying a little later when the quality gate rejects it."""

import logging
from typing import Callable, Optional, Sequence

from PIL import Image

from thumbsheet.decoder.base import DecodeError, Decoder
from thumbsheet.models.frames import Frame, FrameList
from thumbsheet.quality.gate import QualityGate
from thumbsheet.utils.timecode import format_hms

RETRY_OFFSET_SECONDS = 1.0
DEFAULT_MAX_RETRIES = 3

logger = logging.getLogger(__name__)

SlotCallback = Callable[[int, float], None]


class NoFramesError(RuntimeError):
    """Every capture slot failed to decode; there is nothing to compose."""


def acquire_slot(
    decoder: Decoder,
    timestamp: float,
    gate: QualityGate,
    fast: bool = False,
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_offset: float = RETRY_OFFSET_SECONDS,
) -> Optional[Image.Image]:
    """Decode a frame for one slot, making at most ``max_retries`` attempts.

    Each failed attempt (end of stream, decode error or gate rejection) moves
    the seek target ``retry_offset`` seconds later. When no attempt passes the
    gate, the last frame that did decode is returned; None means nothing
    decoded at all.
    """
    fallback: Optional[Image.Image] = None
    current = timestamp

    try:
        for attempt in range(1, max_retries + 1):
            try:
                image = decoder.seek_and_decode(current, fast=fast)
            except DecodeError as e:
                logger.warning(f"{e} (attempt {attempt}/{max_retries})")
                image = None

            if image is None:
                logger.debug(f"No frame at {format_hms(current)} (attempt {attempt}/{max_retries})")
            else:
                try:
                    reasons = gate.rejection_reasons(image)
                except BaseException:
                    image.close()
                    raise
                if not reasons:
                    if fallback is not None:
                        fallback.close()
                    return image
                logger.debug(
                    f"Frame at {format_hms(current)} rejected as {', '.join(reasons)} "
                    f"(attempt {attempt}/{max_retries})"
                )
                if fallback is not None:
                    fallback.close()
                fallback = image

            current += retry_offset
    except BaseException:
        if fallback is not None:
            fallback.close()
        raise

    if fallback is not None:
        logger.info(f"No frame near {format_hms(timestamp)} passed the quality checks, keeping the last one")
    return fallback


def acquire_frames(
    decoder: Decoder,
    timestamps: Sequence[float],
    gate: QualityGate,
    fast: bool = False,
    max_retries: int = DEFAULT_MAX_RETRIES,
    on_slot: Optional[SlotCallback] = None,
) -> FrameList:
    """Acquire frames for every planned timestamp, in order.

    Each frame is paired with the timestamp originally planned for its slot,
    even when it was decoded at a retry offset.

    Raises:
        NoFramesError: If no slot produced a frame.
    """
    frames = FrameList()
    dropped = 0

    try:
        for index, timestamp in enumerate(timestamps):
            image = acquire_slot(decoder, timestamp, gate, fast=fast, max_retries=max_retries)
            if image is None:
                dropped += 1
                logger.warning(f"Dropped capture {index + 1} at {format_hms(timestamp)}: no frame could be decoded")
            else:
                frames.append(Frame(image=image, timestamp=timestamp))
            if on_slot is not None:
                on_slot(index, timestamp)
    except BaseException:
        frames.close()
        raise

    if not frames:
        raise NoFramesError("No valid frames extracted from video")
    if dropped:
        logger.warning(f"Extracted {len(frames)} of {len(timestamps)} frames")
    return frames
