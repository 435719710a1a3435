"""Shared utilities for checking external tool dependencies and their versions."""

import logging
import re
import subprocess

logger = logging.getLogger(__name__)


def parse_version_tuple(version_str: str) -> tuple[int, ...]:
    """Parse a version string like '6.1' or '7.0.2' into a tuple of ints."""
    return tuple(int(x) for x in version_str.split("."))


def _check_ffmpeg_tool(tool: str, min_version: tuple[int, ...]) -> str:
    try:
        result = subprocess.run(
            [tool, "-version"], capture_output=True, text=True, timeout=5, check=False,
        )
    except FileNotFoundError:
        raise RuntimeError(f"Required tool not found: {tool}")

    output = result.stdout + result.stderr
    match = re.search(rf"{tool} version n?(\d+\.\d+(?:\.\d+)?)", output)
    if not match:
        # Git snapshot builds report e.g. 'N-113012-g...' and carry no release number
        if re.search(rf"{tool} version \S+", output):
            logger.debug(f"{tool} reports a non-release version, skipping version check")
            return "snapshot"
        raise RuntimeError(f"Could not parse {tool} version from output: {output.strip()[:200]}")

    version_str = match.group(1)
    version = parse_version_tuple(version_str)

    if version < min_version:
        raise RuntimeError(
            f"{tool} version {version_str} is not supported. "
            f"Required: >= {'.'.join(map(str, min_version))}"
        )

    return version_str


def check_ffmpeg(min_version: tuple[int, ...] = (4, 0)) -> str:
    """Verify ffmpeg is available and recent enough.

    Parses version from output like 'ffmpeg version 6.1.1-3ubuntu5 Copyright ...'.

    Returns:
        The detected version string.

    Raises:
        RuntimeError: If ffmpeg is not found or version is too old.
    """
    return _check_ffmpeg_tool("ffmpeg", min_version)


def check_ffprobe(min_version: tuple[int, ...] = (4, 0)) -> str:
    """Verify ffprobe is available and recent enough.

    Returns:
        The detected version string.

    Raises:
        RuntimeError: If ffprobe is not found or version is too old.
    """
    return _check_ffmpeg_tool("ffprobe", min_version)
