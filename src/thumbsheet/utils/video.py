import logging
from pathlib import Path
from typing import Any, Optional

import ffmpeg

from thumbsheet.decoder.base import DecodeError
from thumbsheet.models.metadata import VideoMetadata

logger: logging.Logger = logging.getLogger(__name__)


def parse_frame_rate(value: Optional[str]) -> float:
    """Parse ffprobe rates like '30000/1001' or '25'."""
    if not value:
        return 0.0
    if '/' in value:
        num, denom = map(int, value.split('/'))
        return num / denom if denom else 0.0
    return float(value)


def resolve_duration(stream: dict, container: dict) -> float:
    """Stream duration first, container duration as fallback, 0 when neither is known."""
    for source in (stream, container):
        value = source.get('duration')
        if value not in (None, 'N/A'):
            return float(value)
    return 0.0


def get_video_info(filename: Path) -> VideoMetadata:
    """Probe a video with ffprobe.

    Raises:
        DecodeError: If ffprobe cannot read the file or it has no video stream.
    """
    path = Path(filename)
    try:
        probe = ffmpeg.probe(str(path))
    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors='ignore').strip() if e.stderr else str(e)
        raise DecodeError(f"Could not probe {path}: {stderr}") from e

    streams: list[Any] = probe.get('streams', [])
    video = next((s for s in streams if s.get('codec_type') == 'video'), None)
    if video is None:
        raise DecodeError(f"No video stream found in {path}")
    audio = next((s for s in streams if s.get('codec_type') == 'audio'), None)
    container: dict = probe.get('format', {})

    duration = resolve_duration(video, container)
    if duration == 0:
        logger.warning(f"No duration reported for {path.name}, assuming 0")

    video_info = VideoMetadata(
        filename=path.name,
        file_size=path.stat().st_size,
        duration=duration,
        width=video['width'],
        height=video['height'],
        video_codec=video.get('codec_name', 'unknown'),
        audio_codec=audio.get('codec_name', 'unknown') if audio else 'unknown',
        frame_rate=parse_frame_rate(video.get('avg_frame_rate')) or parse_frame_rate(video.get('r_frame_rate')),
        bit_rate=int(container.get('bit_rate') or 0),
        format_name=container.get('format_name', 'unknown'),
    )

    logger.info(
        f"Video detected: {video_info.width}x{video_info.height}, "
        f"{video_info.video_codec}, {video_info.frame_rate:.2f} fps, {video_info.duration:.2f}s"
    )
    return video_info
