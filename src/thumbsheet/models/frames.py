"""Decoded frames and the ordered list handed from acquisition to composition."""

from dataclasses import dataclass, field
from typing import Iterator, List

from PIL import Image


@dataclass
class Frame:
    """A decoded RGB image paired with the timestamp it was requested at."""
    image: Image.Image
    timestamp: float

    def close(self) -> None:
        self.image.close()


@dataclass
class FrameList:
    """Frames in extraction order. Closing the list closes every frame it owns."""
    frames: List[Frame] = field(default_factory=list)

    def append(self, frame: Frame) -> None:
        self.frames.append(frame)

    def close(self) -> None:
        for frame in self.frames:
            frame.close()
        self.frames.clear()

    def __enter__(self) -> "FrameList":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    def __len__(self) -> int:
        return len(self.frames)

    def __getitem__(self, index: int) -> Frame:
        return self.frames[index]
