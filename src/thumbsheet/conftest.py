"""Shared fixtures: small synthetic videos encoded with PyAV."""

from pathlib import Path
from typing import Callable, Tuple

import av
import numpy as np
import pytest

# One color per second of test video, far apart so a decoded frame can be
# matched back to the second it came from
PALETTE = [
    (230, 25, 25),
    (25, 200, 25),
    (25, 25, 230),
    (230, 230, 25),
    (25, 230, 230),
    (230, 25, 230),
    (240, 240, 240),
    (240, 130, 20),
    (120, 20, 160),
    (120, 120, 120),
]


def make_frame(second: int, size: Tuple[int, int], blank: bool = False) -> np.ndarray:
    """Left half in the palette color of ``second``, right half a sharp checkerboard."""
    width, height = size
    if blank:
        return np.zeros((height, width, 3), dtype=np.uint8)
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:, : width // 2] = PALETTE[second % len(PALETTE)]
    yy, xx = np.mgrid[0:height, 0 : width - width // 2]
    checker = (((yy // 8) + (xx // 8)) % 2 * 255).astype(np.uint8)
    frame[:, width // 2 :] = checker[..., None]
    return frame


def write_test_video(
    path: Path,
    duration: int = 10,
    fps: int = 10,
    size: Tuple[int, int] = (160, 120),
    blank_until: float = 0.0,
    gop_size: int = 20,
) -> Path:
    with av.open(str(path), mode="w") as container:
        stream = container.add_stream("mpeg4", rate=fps)
        stream.width, stream.height = size
        stream.pix_fmt = "yuv420p"
        stream.codec_context.gop_size = gop_size
        for index in range(duration * fps):
            second = index // fps
            array = make_frame(second, size, blank=index / fps < blank_until)
            frame = av.VideoFrame.from_ndarray(array, format="rgb24")
            for packet in stream.encode(frame):
                container.mux(packet)
        for packet in stream.encode():
            container.mux(packet)
    return path


def palette_index(image) -> int:
    """Palette entry closest to the mean color of the image's left quarter."""
    array = np.asarray(image.convert("RGB"), dtype=np.float64)
    region = array[:, : array.shape[1] // 4]
    mean = region.reshape(-1, 3).mean(axis=0)
    distances = [np.linalg.norm(mean - np.array(color)) for color in PALETTE]
    return int(np.argmin(distances))


@pytest.fixture
def video_factory(tmp_path: Path) -> Callable[..., Path]:
    def factory(name: str = "clip.mp4", **kwargs) -> Path:
        return write_test_video(tmp_path / name, **kwargs)
    return factory


@pytest.fixture
def sample_video(video_factory) -> Path:
    return video_factory()
