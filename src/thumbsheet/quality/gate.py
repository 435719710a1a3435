"""Frame quality heuristics used to reject blank, blurry or unsafe frames."""

from dataclasses import dataclass
from typing import List

import numpy as np
from PIL import Image

from thumbsheet.models.options import ThumbnailOptions

SKIN_FRACTION_LIMIT = 0.40

LAPLACIAN_CENTER_WEIGHT = 8


def _rgb_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("RGB"), dtype=np.float64)


def luminance_stddev(image: Image.Image) -> float:
    """Population standard deviation of perceptual luminance over all pixels."""
    rgb = _rgb_array(image)
    luma = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
    return float(luma.std())


def is_blank(image: Image.Image, threshold: int = 85) -> bool:
    """True for near-uniform frames such as solid colors or fades to black.

    A threshold of 85 means less than 15% luminance variation counts as blank.
    """
    return luminance_stddev(image) < 255 * (100 - threshold) / 100


def laplacian_variance(image: Image.Image) -> float:
    """Variance of the absolute 3x3 Laplacian response over interior pixels.

    Returns 0 for images smaller than 3x3.
    """
    grey = np.asarray(image.convert("L"), dtype=np.int32)
    height, width = grey.shape
    if height < 3 or width < 3:
        return 0.0

    center = grey[1:-1, 1:-1]
    neighbours = (
        grey[:-2, :-2] + grey[:-2, 1:-1] + grey[:-2, 2:]
        + grey[1:-1, :-2] + grey[1:-1, 2:]
        + grey[2:, :-2] + grey[2:, 1:-1] + grey[2:, 2:]
    )
    response = np.abs(LAPLACIAN_CENTER_WEIGHT * center - neighbours)
    return float(response.var())


def is_blurry(image: Image.Image, threshold: int = 62) -> bool:
    """True when edges are too weak; a higher threshold is stricter."""
    return laplacian_variance(image) < threshold * 2


def skin_fraction(image: Image.Image) -> float:
    """Fraction of pixels matching a fixed RGB skin-tone rule."""
    rgb = np.asarray(image.convert("RGB"), dtype=np.int16)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    skin = (
        (r > 95) & (g > 40) & (b > 20)
        & (r > g) & (r > b)
        & (np.abs(r - g) > 15)
        & (r - np.minimum(g, b) > 15)
    )
    return float(skin.mean()) if skin.size else 0.0


def is_safe_for_work(image: Image.Image) -> bool:
    """Experimental: flags frames where skin tones cover more than 40% of the picture."""
    return skin_fraction(image) <= SKIN_FRACTION_LIMIT


@dataclass(frozen=True)
class QualityGate:
    """Enabled checks and their thresholds. A frame is rejected if any enabled check fails."""
    skip_blank: bool = False
    skip_blurry: bool = False
    sfw: bool = False
    blank_threshold: int = 85
    blur_threshold: int = 62

    @classmethod
    def from_options(cls, options: ThumbnailOptions) -> "QualityGate":
        return cls(
            skip_blank=options.skip_blank,
            skip_blurry=options.skip_blurry,
            sfw=options.sfw,
            blank_threshold=options.blank_threshold,
            blur_threshold=options.blur_threshold,
        )

    @property
    def enabled(self) -> bool:
        return self.skip_blank or self.skip_blurry or self.sfw

    def rejection_reasons(self, image: Image.Image) -> List[str]:
        reasons = []
        if self.skip_blank and is_blank(image, self.blank_threshold):
            reasons.append("blank")
        if self.skip_blurry and is_blurry(image, self.blur_threshold):
            reasons.append("blurry")
        if self.sfw and not is_safe_for_work(image):
            reasons.append("unsafe")
        return reasons

    def rejects(self, image: Image.Image) -> bool:
        return bool(self.rejection_reasons(image))
