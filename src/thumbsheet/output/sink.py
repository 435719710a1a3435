"""Writing contact sheets, single frames and WebVTT scrubber tracks to disk."""

import logging
import os
from pathlib import Path
from typing import List, Sequence

from PIL import Image

from thumbsheet.compose.layout import GridLayout
from thumbsheet.models.frames import FrameList
from thumbsheet.utils.timecode import format_vtt

logger = logging.getLogger(__name__)

JPEG_QUALITY = 90


def resolve_output_path(video_path: Path, pattern: str) -> Path:
    """Substitute {{.Path}} and {{.Name}} in an output pattern.

    {{.Path}} is the video's directory with a trailing separator, {{.Name}} its
    stem. A result without any directory part is placed next to the video.
    """
    video_path = Path(video_path)
    prefix = "" if video_path.parent == Path(".") else f"{video_path.parent}{os.sep}"
    output = pattern.replace("{{.Path}}", prefix).replace("{{.Name}}", video_path.stem)

    result = Path(output)
    if not result.is_absolute() and result.parent == Path("."):
        result = video_path.parent / result
    return result


def check_overwrite(path: Path, overwrite: bool) -> None:
    """Raises FileExistsError if path exists and overwriting is not allowed."""
    if path.exists() and not overwrite:
        raise FileExistsError(
            f"Output file already exists: {path}. Use --overwrite to replace."
        )


def save_image(image: Image.Image, path: Path) -> Path:
    """Save as PNG for a .png path, otherwise as JPEG."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".png":
        image.save(path, format="PNG", optimize=True)
    else:
        rgb = image.convert("RGB")
        try:
            rgb.save(path, format="JPEG", quality=JPEG_QUALITY)
        finally:
            if rgb is not image:
                rgb.close()
    logger.debug(f"Wrote {path}")
    return path


def single_image_paths(base_path: Path, count: int) -> List[Path]:
    """<stem>_<n><suffix> for n = 1..count, zero padded to the width of count."""
    width = len(str(count))
    return [
        base_path.with_name(f"{base_path.stem}_{i:0{width}d}{base_path.suffix}")
        for i in range(1, count + 1)
    ]


def save_single_images(frames: FrameList, base_path: Path, overwrite: bool = False) -> List[Path]:
    paths = single_image_paths(base_path, len(frames))
    for path in paths:
        check_overwrite(path, overwrite)

    for frame, path in zip(frames, paths):
        save_image(frame.image, path)

    logger.info(f"Saved {len(paths)} individual images")
    return paths


def vtt_path_for(image_path: Path) -> Path:
    return image_path.with_suffix(".vtt")


def build_webvtt(image_name: str, layout: GridLayout, display_timestamps: Sequence[float]) -> str:
    """Cue per thumbnail: its display time range and its rectangle on the sheet.

    Raises:
        ValueError: If the number of display timestamps does not match the layout.
    """
    if len(display_timestamps) != layout.frame_count + 1:
        raise ValueError(
            f"Expected {layout.frame_count + 1} display timestamps, got {len(display_timestamps)}"
        )

    lines = ["WEBVTT", ""]
    for index in range(layout.frame_count):
        rect = layout.thumbnail_rect(index)
        start, end = display_timestamps[index], display_timestamps[index + 1]
        lines.append(f"{format_vtt(start)} --> {format_vtt(end)}")
        lines.append(f"{image_name}#xywh={rect.x},{rect.y},{rect.width},{rect.height}")
        lines.append("")
    return "\n".join(lines) + "\n"


def write_webvtt(path: Path, image_path: Path, layout: GridLayout, display_timestamps: Sequence[float]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write(build_webvtt(image_path.name, layout, display_timestamps))
    logger.info(f"Saved WebVTT file: {path}")
    return path
