"""Fonts, header text and timestamp labels.

Font problems never abort a run: the label is skipped and a warning logged.
"""

import logging
import os
from typing import Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from thumbsheet.models.metadata import VideoMetadata
from thumbsheet.models.options import ThumbnailOptions
from thumbsheet.utils.timecode import format_hms, human_readable_size

logger = logging.getLogger(__name__)

FALLBACK_FONTS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/Arial Unicode.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
]

HEADER_MARGIN = 10
TIMESTAMP_MARGIN = 5
TIMESTAMP_BOX_PADDING = 2
TIMESTAMP_BOX_ALPHA = 180

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


def header_font_size(font_size: int) -> int:
    """Header text is set at 96 DPI: point size scaled by 96/72."""
    return int(font_size * 96 / 72)


def header_line_height(font_size: int) -> int:
    return int((font_size + 4) * 96 / 72)


def load_font(font_path: Optional[str], size: int) -> Optional[Font]:
    """Load the requested font, or the first available fallback when none is given.

    Returns None (after logging a warning) when a requested font cannot be loaded.
    """
    if font_path:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError as e:
            logger.warning(f"Cannot load font {font_path}: {e}. Text labels will be skipped.")
            return None

    for candidate in FALLBACK_FONTS:
        if os.path.exists(candidate):
            try:
                return ImageFont.truetype(candidate, size)
            except OSError as e:
                logger.debug(f"Skipping font {candidate}: {e}")

    logger.debug("No system font found, using Pillow's built-in font")
    try:
        return ImageFont.load_default(size)
    except OSError as e:
        logger.warning(f"Cannot load a default font: {e}. Text labels will be skipped.")
        return None


def load_fonts(font_path: Optional[str], sizes: Sequence[int]) -> Dict[int, Optional[Font]]:
    """Load one typeface at several sizes.

    A requested font that cannot be loaded is reported once and every size maps to None.
    """
    fonts: Dict[int, Optional[Font]] = {}
    for size in sizes:
        if size in fonts:
            continue
        font = load_font(font_path, size)
        if font is None and font_path:
            return {s: None for s in sizes}
        fonts[size] = font
    return fonts


def build_header_lines(metadata: VideoMetadata, options: ThumbnailOptions) -> List[str]:
    lines = [
        f"File Name: {metadata.filename}",
        f"File Size: {human_readable_size(metadata.file_size)}",
        f"Duration: {format_hms(metadata.duration)}",
        f"Resolution: {metadata.width}x{metadata.height}",
    ]
    if options.header_meta:
        lines.append(f"FPS: {metadata.frame_rate:.2f}, Bitrate: {metadata.bit_rate // 1000} kbps")
        lines.append(f"Codec: {metadata.video_codec} / {metadata.audio_codec}")
    if options.comment:
        lines.append(options.comment)
    return lines


def render_header(
    lines: Sequence[str],
    size: Tuple[int, int],
    font: Optional[Font],
    font_size: int,
    background: Tuple[int, int, int],
    foreground: Tuple[int, int, int],
) -> Image.Image:
    """Header band: background fill with one text line every header_line_height pixels."""
    band = Image.new("RGB", size, background)
    if font is None:
        return band

    draw = ImageDraw.Draw(band)
    line_height = header_line_height(font_size)
    for i, line in enumerate(lines):
        draw.text((HEADER_MARGIN, HEADER_MARGIN + line_height * i), line, font=font, fill=foreground)
    return band


def draw_timestamp(
    thumbnail: Image.Image,
    timestamp: float,
    font: Optional[Font],
    font_size: int,
    opacity: float = 1.0,
) -> Image.Image:
    """Return a copy of the thumbnail with an HH:MM:SS label in the bottom-left corner."""
    if font is None:
        return thumbnail.copy()

    text = format_hms(timestamp)
    origin = (TIMESTAMP_MARGIN, thumbnail.height - font_size - TIMESTAMP_MARGIN)

    overlay = Image.new("RGBA", thumbnail.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    left, top, right, bottom = draw.textbbox(origin, text, font=font)
    pad = TIMESTAMP_BOX_PADDING
    draw.rectangle(
        [left - pad, top - pad, right + pad, bottom + pad],
        fill=(0, 0, 0, int(TIMESTAMP_BOX_ALPHA * opacity)),
    )
    draw.text(origin, text, font=font, fill=(255, 255, 255, int(255 * opacity)))

    base = thumbnail.convert("RGBA")
    labelled = Image.alpha_composite(base, overlay).convert("RGB")
    base.close()
    overlay.close()
    return labelled
