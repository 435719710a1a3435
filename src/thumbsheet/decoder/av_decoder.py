"""Frame decoder backed by PyAV, keeping the container open for the whole run."""

import logging
from pathlib import Path
from typing import Optional

import av
from av.error import FFmpegError
from PIL import Image

from thumbsheet.decoder.base import DecodeError, Decoder
from thumbsheet.models.metadata import VideoMetadata

logger = logging.getLogger(__name__)


class AvDecoder(Decoder):
    """Decoder using libav through PyAV.

    Seeks with AVSEEK_FLAG_BACKWARD on the video stream and flushes the codec
    after every seek so no frame from the previous position is returned.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        try:
            self._container = av.open(str(self.path))
        except FFmpegError as e:
            raise DecodeError(f"Could not open video {self.path}: {e}") from e

        try:
            if not self._container.streams.video:
                raise DecodeError(f"No video stream found in {self.path}")
            self._stream = self._container.streams.video[0]
            self._stream.thread_type = "AUTO"
            self.metadata = self._read_metadata()
        except BaseException:
            self._container.close()
            raise

        logger.debug(
            f"Opened {self.path.name} with PyAV: {self.metadata.width}x{self.metadata.height}, "
            f"{self.metadata.video_codec}, {self.metadata.duration:.2f}s"
        )

    def _read_metadata(self) -> VideoMetadata:
        stream = self._stream
        container = self._container

        if stream.duration is not None and stream.time_base is not None:
            duration = float(stream.duration * stream.time_base)
        elif container.duration is not None:
            duration = container.duration / av.time_base
        else:
            logger.warning(f"No duration reported for {self.path.name}, assuming 0")
            duration = 0.0

        codec_context = stream.codec_context
        if not codec_context.width or not codec_context.height:
            raise DecodeError(f"Video stream of {self.path} has no frame size")

        audio_codec = "unknown"
        if container.streams.audio:
            audio_codec = container.streams.audio[0].codec_context.name

        rate = stream.average_rate or stream.guessed_rate

        return VideoMetadata(
            filename=self.path.name,
            file_size=self.path.stat().st_size,
            duration=duration,
            width=codec_context.width,
            height=codec_context.height,
            video_codec=codec_context.name,
            audio_codec=audio_codec,
            frame_rate=float(rate) if rate else 0.0,
            bit_rate=container.bit_rate or 0,
            format_name=container.format.name,
        )

    def seek_and_decode(self, timestamp: float, fast: bool = False) -> Optional[Image.Image]:
        stream = self._stream
        target_pts = (stream.start_time or 0) + int(timestamp / stream.time_base)

        try:
            self._container.seek(target_pts, backward=True, any_frame=False, stream=stream)
            stream.codec_context.flush_buffers()

            for frame in self._container.decode(stream):
                if not fast and frame.pts is not None and frame.pts < target_pts:
                    continue
                return frame.to_image()
        except av.error.EOFError:
            return None
        except FFmpegError as e:
            raise DecodeError(f"Failed to decode {self.path.name} at {timestamp:.3f}s: {e}") from e

        return None

    def close(self) -> None:
        self._container.close()
