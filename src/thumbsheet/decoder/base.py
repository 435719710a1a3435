"""Frame decoder contract shared by all backends."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from PIL import Image

from thumbsheet.models.metadata import VideoMetadata
from thumbsheet.models.options import DecoderBackend


class DecodeError(RuntimeError):
    """The container could not be opened or a stream segment failed to decode."""


class Decoder(ABC):
    """Seek-and-decode access to the video stream of one file.

    Decoders own native handles and must be closed; use them as context managers.
    """

    metadata: VideoMetadata

    @abstractmethod
    def seek_and_decode(self, timestamp: float, fast: bool = False) -> Optional[Image.Image]:
        """Decode one RGB frame at or after ``timestamp`` seconds.

        Seeks backward to the keyframe at or before the target first. With
        ``fast`` the first frame decoded after the seek is returned; otherwise
        frames are decoded forward until one reaches the target time.

        Returns:
            The frame, or None when the end of the stream is reached first.

        Raises:
            DecodeError: If the stream is corrupt at this position.
        """

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> "Decoder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_decoder(path: Path, backend: DecoderBackend = DecoderBackend.AV) -> Decoder:
    """Open ``path`` with the chosen backend.

    Raises:
        DecodeError: If the file has no decodable video stream.
    """
    if backend == DecoderBackend.FFMPEG:
        from thumbsheet.decoder.pipe_decoder import PipeDecoder
        return PipeDecoder(path)

    from thumbsheet.decoder.av_decoder import AvDecoder
    return AvDecoder(path)
