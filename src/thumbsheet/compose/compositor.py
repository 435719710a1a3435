"""Contact sheet composition: thumbnails on a grid below an optional header band."""

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from thumbsheet.compose.filters import apply_filters
from thumbsheet.compose.layout import GridLayout, Rect, build_layout
from thumbsheet.compose.text import (
    Font,
    build_header_lines,
    draw_timestamp,
    header_font_size,
    load_fonts,
    render_header,
)
from thumbsheet.models.frames import Frame
from thumbsheet.models.metadata import VideoMetadata
from thumbsheet.models.options import ThumbnailOptions

logger = logging.getLogger(__name__)

WATERMARK_OPACITY = 0.7
BORDER_COLOR = (255, 255, 255)


@dataclass
class ContactSheet:
    """The composed image and where each thumbnail landed on it."""
    image: Image.Image
    rects: List[Rect]
    layout: GridLayout

    def close(self) -> None:
        self.image.close()

    def __enter__(self) -> "ContactSheet":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def load_watermark(path: Path) -> Image.Image:
    """Load a watermark as RGBA with its alpha scaled to 70% opacity."""
    with Image.open(path) as source:
        watermark = source.convert("RGBA")
    alpha = watermark.getchannel("A").point(lambda a: int(a * WATERMARK_OPACITY))
    watermark.putalpha(alpha)
    return watermark


def apply_watermark(target: Image.Image, watermark: Image.Image, center: bool = True) -> None:
    """Paste the watermark onto target in place, centered or at the top-left corner."""
    if center:
        position = ((target.width - watermark.width) // 2, (target.height - watermark.height) // 2)
    else:
        position = (0, 0)
    target.paste(watermark, position, watermark)


def render_thumbnail(
    frame: Frame,
    layout: GridLayout,
    options: ThumbnailOptions,
    timestamp_font: Optional[Font],
    watermark: Optional[Image.Image],
    rng: random.Random,
) -> Image.Image:
    """Resize, filter, watermark, label and border one frame."""
    size: Tuple[int, int] = (layout.thumb_width, layout.thumb_height)
    resized = frame.image.convert("RGB").resize(size, Image.Resampling.LANCZOS)

    thumb = apply_filters(resized, options.filters, rng)
    resized.close()

    if watermark is not None:
        apply_watermark(thumb, watermark, center=False)

    if not options.disable_timestamps:
        labelled = draw_timestamp(thumb, frame.timestamp, timestamp_font, options.font_size, options.timestamp_opacity)
        thumb.close()
        thumb = labelled

    if options.border > 0:
        draw = ImageDraw.Draw(thumb)
        draw.rectangle([0, 0, thumb.width - 1, thumb.height - 1], outline=BORDER_COLOR, width=options.border)

    return thumb


def compose_contact_sheet(
    frames: Sequence[Frame],
    metadata: VideoMetadata,
    options: ThumbnailOptions,
    rng: Optional[random.Random] = None,
) -> ContactSheet:
    """Compose frames into a contact sheet.

    ``rng`` drives randomized filters; pass a seeded instance for reproducible output.

    Raises:
        LayoutError: On zero frames or invalid geometry, before any image is allocated.
    """
    layout = build_layout(frames, metadata, options)
    rng = rng if rng is not None else random.Random()

    logger.debug(
        f"Layout: {layout.columns}x{layout.rows} grid of {layout.thumb_width}x{layout.thumb_height}, "
        f"header {layout.header_height}px, canvas {layout.content_width}x{layout.total_height}"
    )

    sizes = []
    if not options.disable_timestamps:
        sizes.append(options.font_size)
    if layout.header_height > 0:
        sizes.append(header_font_size(options.font_size))
    fonts = load_fonts(options.font, sizes)
    timestamp_font = fonts.get(options.font_size) if not options.disable_timestamps else None

    watermark_all = load_watermark(options.watermark_all) if options.watermark_all else None
    canvas = Image.new("RGB", (layout.content_width, layout.total_height), tuple(options.bg_content))

    try:
        rects = []
        for index, frame in enumerate(frames):
            rect = layout.thumbnail_rect(index)
            thumb = render_thumbnail(frame, layout, options, timestamp_font, watermark_all, rng)
            canvas.paste(thumb, (rect.x, rect.y))
            thumb.close()
            rects.append(rect)

        if layout.header_height > 0:
            band = render_header(
                build_header_lines(metadata, options),
                (layout.content_width, layout.header_height),
                fonts[header_font_size(options.font_size)],
                options.font_size,
                tuple(options.bg_header),
                tuple(options.fg_header),
            )
            canvas.paste(band, (0, 0))
            band.close()

        if options.watermark:
            with load_watermark(options.watermark) as watermark:
                apply_watermark(canvas, watermark, center=True)
    except BaseException:
        canvas.close()
        raise
    finally:
        if watermark_all is not None:
            watermark_all.close()

    return ContactSheet(image=canvas, rects=rects, layout=layout)
