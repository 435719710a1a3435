"""Grid geometry shared by the compositor and the WebVTT writer.

Both sides call :func:`build_layout` and :meth:`GridLayout.thumbnail_rect`;
no other code computes thumbnail positions.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from thumbsheet.compose.text import HEADER_MARGIN, build_header_lines, header_line_height
from thumbsheet.models.frames import Frame
from thumbsheet.models.metadata import VideoMetadata
from thumbsheet.models.options import ThumbnailOptions


class LayoutError(ValueError):
    """The requested grid cannot be built (no frames, or a non-positive dimension)."""


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class GridLayout:
    frame_count: int
    columns: int
    thumb_width: int
    thumb_height: int
    padding: int
    header_height: int

    @property
    def rows(self) -> int:
        return math.ceil(self.frame_count / self.columns)

    @property
    def content_width(self) -> int:
        return self.columns * self.thumb_width + (self.columns + 1) * self.padding

    @property
    def content_height(self) -> int:
        return self.rows * self.thumb_height + (self.rows + 1) * self.padding

    @property
    def total_height(self) -> int:
        return self.header_height + self.content_height

    def thumbnail_rect(self, index: int) -> Rect:
        row, col = divmod(index, self.columns)
        return Rect(
            x=self.padding + col * (self.thumb_width + self.padding),
            y=self.header_height + self.padding + row * (self.thumb_height + self.padding),
            width=self.thumb_width,
            height=self.thumb_height,
        )


def header_height(line_count: int, font_size: int) -> int:
    """10px top margin, one line height per line, 10px bottom margin; 0 without lines."""
    if line_count <= 0:
        return 0
    return HEADER_MARGIN + header_line_height(font_size) * line_count + HEADER_MARGIN


def thumbnail_size(width: int, height: int, source_size: Tuple[int, int]) -> Tuple[int, int]:
    """Thumbnail size, deriving a zero height from the source aspect ratio."""
    if height > 0:
        return width, height
    source_width, source_height = source_size
    if source_width <= 0 or source_height <= 0:
        raise LayoutError(f"Invalid source frame size {source_width}x{source_height}")
    return width, max(int(source_height * (width / source_width)), 1)


def compute_layout(
    frame_count: int,
    columns: int,
    thumb_width: int,
    thumb_height: int,
    padding: int,
    header_height: int = 0,
) -> GridLayout:
    """Validate grid parameters and build the layout.

    Raises:
        LayoutError: On zero frames or a non-positive dimension.
    """
    if frame_count <= 0:
        raise LayoutError("No frames provided for contact sheet")
    if columns <= 0:
        raise LayoutError(f"Columns must be positive, got {columns}")
    if thumb_width <= 0 or thumb_height <= 0:
        raise LayoutError(f"Thumbnail size must be positive, got {thumb_width}x{thumb_height}")
    if padding < 0 or header_height < 0:
        raise LayoutError("Padding and header height must not be negative")
    return GridLayout(frame_count, columns, thumb_width, thumb_height, padding, header_height)


def build_layout(frames: Sequence[Frame], metadata: VideoMetadata, options: ThumbnailOptions) -> GridLayout:
    """Layout for a contact sheet of ``frames``, sized from the first frame."""
    if len(frames) == 0:
        raise LayoutError("No frames provided for contact sheet")
    thumb_width, thumb_height = thumbnail_size(options.width, options.height, frames[0].image.size)
    lines = build_header_lines(metadata, options) if options.header else []
    return compute_layout(
        len(frames),
        options.columns,
        thumb_width,
        thumb_height,
        options.padding,
        header_height(len(lines), options.font_size),
    )
