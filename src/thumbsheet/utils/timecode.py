"""Parsing and formatting of video times and file sizes."""

import re

TIME_PATTERN = re.compile(r"^(?:(\d+):)?(\d{1,2}):(\d{1,2}(?:\.\d+)?)$")

SIZE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]


def parse_time(value: str) -> float:
    """Parse 'HH:MM:SS', 'MM:SS' or plain seconds into seconds.

    Raises:
        ValueError: If the string is not a valid non-negative time.
    """
    text = value.strip()
    if not text:
        return 0.0

    try:
        seconds = float(text)
    except ValueError:
        match = TIME_PATTERN.match(text)
        if not match:
            raise ValueError(f"Invalid time format: {value!r} (expected HH:MM:SS)")
        hours, minutes, secs = match.groups()
        if int(minutes) >= 60 or float(secs) >= 60:
            raise ValueError(f"Invalid time format: {value!r} (minutes and seconds must be < 60)")
        seconds = int(hours or 0) * 3600 + int(minutes) * 60 + float(secs)

    if seconds < 0:
        raise ValueError(f"Time must not be negative: {value!r}")
    return seconds


def format_hms(seconds: float) -> str:
    """Format seconds as HH:MM:SS, truncating fractions."""
    total = int(max(seconds, 0))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_vtt(seconds: float) -> str:
    """Format seconds as a WebVTT cue time (HH:MM:SS.mmm)."""
    millis_total = int(round(max(seconds, 0) * 1000))
    total, millis = divmod(millis_total, 1000)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def human_readable_size(num_bytes: int) -> str:
    """Format a byte count with binary units, e.g. 1.5 MiB."""
    size = float(num_bytes)
    order = 0
    while size >= 1024 and order < len(SIZE_UNITS) - 1:
        size /= 1024
        order += 1
    if order == 0:
        return f"{int(size)} B"
    return f"{size:.2f} {SIZE_UNITS[order]}"
