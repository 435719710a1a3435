"""Frame decoder that runs one ffmpeg process per frame through ffmpeg-python."""

import logging
from pathlib import Path
from typing import Optional

import ffmpeg
from PIL import Image

from thumbsheet.decoder.base import DecodeError, Decoder
from thumbsheet.utils.dependencies import check_ffmpeg, check_ffprobe
from thumbsheet.utils.video import get_video_info

logger = logging.getLogger(__name__)


class PipeDecoder(Decoder):
    """Decoder using the ffmpeg executable.

    Input seeking (-ss before -i) lands on the keyframe before the target.
    ffmpeg then decodes forward to the exact time unless -noaccurate_seek is
    given, which is used for fast mode. Every call starts a fresh process, so
    no decoder state survives between seeks.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        ffmpeg_version = check_ffmpeg()
        ffprobe_version = check_ffprobe()
        logger.debug(f"ffmpeg version: {ffmpeg_version}, ffprobe version: {ffprobe_version}")
        self.metadata = get_video_info(self.path)

    def seek_and_decode(self, timestamp: float, fast: bool = False) -> Optional[Image.Image]:
        width, height = self.metadata.width, self.metadata.height
        input_kwargs = {'ss': f"{timestamp:.3f}"}
        if fast:
            input_kwargs['noaccurate_seek'] = None

        stream = (
            ffmpeg
            .input(str(self.path), **input_kwargs)
            .output('pipe:', format='rawvideo', pix_fmt='rgb24', vframes=1, s=f"{width}x{height}")
        )
        logger.debug(f"ffmpeg command: {' '.join(stream.compile())}")

        try:
            out, _ = stream.run(capture_stdout=True, capture_stderr=True)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode(errors='ignore').strip() if e.stderr else str(e)
            raise DecodeError(f"ffmpeg failed on {self.path.name} at {timestamp:.3f}s: {stderr}") from e

        frame_size = width * height * 3
        if len(out) < frame_size:
            return None
        return Image.frombytes('RGB', (width, height), out[:frame_size])

    def close(self) -> None:
        pass
