"""Cosmetic image filters applied to each thumbnail before it is placed on the sheet."""

import logging
import random
from typing import Callable, Dict, Iterable, List, Optional, Union

import numpy as np
from PIL import Image, ImageDraw, ImageEnhance, ImageOps

logger = logging.getLogger(__name__)

FILTER_DESCRIPTIONS: Dict[str, str] = {
    "none": "No filter applied",
    "invert": "Invert colors",
    "greyscale": "Convert to greyscale image",
    "sepia": "Convert to sepia image",
    "fancy": "Randomly rotates every image",
    "cross": "Simulated cross processing",
    "strip": "Simulate an old 35mm Film strip",
}

FILTER_ALIASES = {"grayscale": "greyscale"}

FANCY_MAX_ANGLE = 15

SEPIA_MATRIX = (
    0.393, 0.769, 0.189, 0,
    0.349, 0.686, 0.168, 0,
    0.272, 0.534, 0.131, 0,
)


def normalize_filter_names(value: Union[str, Iterable[str], None]) -> List[str]:
    """Turn 'cross,fancy' or ['Cross', 'fancy'] into a validated list of filter names.

    'none' entries are dropped, aliases are resolved.

    Raises:
        ValueError: On an unknown filter name.
    """
    if value is None:
        return []
    raw = value.split(",") if isinstance(value, str) else list(value)

    names = []
    for entry in raw:
        name = entry.strip().lower()
        if not name:
            continue
        name = FILTER_ALIASES.get(name, name)
        if name not in FILTER_DESCRIPTIONS:
            raise ValueError(f"Unknown filter: {entry!r} (available: {', '.join(FILTER_DESCRIPTIONS)})")
        if name != "none":
            names.append(name)
    return names


def greyscale(image: Image.Image, rng: random.Random) -> Image.Image:
    return ImageOps.grayscale(image).convert("RGB")


def invert(image: Image.Image, rng: random.Random) -> Image.Image:
    return ImageOps.invert(image.convert("RGB"))


def sepia(image: Image.Image, rng: random.Random) -> Image.Image:
    return image.convert("RGB").convert("RGB", SEPIA_MATRIX)


def fancy(image: Image.Image, rng: random.Random) -> Image.Image:
    """Rotate by a random whole angle in [-15, 15] degrees, keeping the size."""
    angle = rng.randint(-FANCY_MAX_ANGLE, FANCY_MAX_ANGLE)
    logger.debug(f"fancy: rotating by {angle} degrees")
    return image.convert("RGB").rotate(angle, resample=Image.Resampling.BICUBIC, fillcolor=(0, 0, 0))


def cross(image: Image.Image, rng: random.Random) -> Image.Image:
    """Cross processing: shift hue by 30 degrees, then boost saturation and contrast."""
    hsv = np.array(image.convert("RGB").convert("HSV"), dtype=np.int16)
    hsv[..., 0] = (hsv[..., 0] + round(30 / 360 * 256)) % 256
    shifted = Image.fromarray(hsv.astype(np.uint8), "HSV").convert("RGB")
    shifted = ImageEnhance.Color(shifted).enhance(1.2)
    return ImageEnhance.Contrast(shifted).enhance(1.1)


def strip(image: Image.Image, rng: random.Random) -> Image.Image:
    """Black bands with diamond sprocket holes down both sides."""
    out = image.convert("RGB")
    width, height = out.size
    band = max(width // 20, 1)
    spacing = band * 2
    radius = band // 3
    hole_x = band // 2

    draw = ImageDraw.Draw(out)
    draw.rectangle([0, 0, band - 1, height - 1], fill=(0, 0, 0))
    draw.rectangle([width - band, 0, width - 1, height - 1], fill=(0, 0, 0))

    if radius > 0:
        for y in range(band // 2, height, spacing):
            for cx in (hole_x, width - hole_x):
                draw.polygon(
                    [(cx, y - radius), (cx + radius, y), (cx, y + radius), (cx - radius, y)],
                    fill=(255, 255, 255),
                )
    return out


FILTERS: Dict[str, Callable[[Image.Image, random.Random], Image.Image]] = {
    "greyscale": greyscale,
    "invert": invert,
    "sepia": sepia,
    "fancy": fancy,
    "cross": cross,
    "strip": strip,
}


def apply_filters(
    image: Image.Image,
    names: Iterable[str],
    rng: Optional[random.Random] = None,
) -> Image.Image:
    """Apply filters in order and return the result as a new image.

    The input image is left untouched. Intermediate images are closed.
    """
    rng = rng if rng is not None else random.Random()
    current = image
    for name in names:
        result = FILTERS[name](current, rng)
        if current is not image and current is not result:
            current.close()
        current = result
    return current if current is not image else image.copy()
