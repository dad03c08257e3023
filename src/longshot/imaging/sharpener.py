"""Three-stage text sharpening filter.

Stages run in order and each one reads the previous stage's materialized
output:

1. contrast stretch around the global mean brightness,
2. thresholded unsharp mask against a Gaussian-blurred copy,
3. darkening of pixels that are already dark.

The alpha channel passes through untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from PIL import Image as PILImage
from PIL import ImageFilter

from longshot.imaging.image import Image

if TYPE_CHECKING:
    from numpy.typing import NDArray

CONTRAST_FACTOR: float = 1.2
BLUR_RADIUS: float = 2.0
UNSHARP_AMOUNT: float = 2.5
UNSHARP_THRESHOLD: int = 5
DARK_LIMIT: int = 150
DARK_FACTOR: float = 0.8


def sharpen(image: Image) -> Image:
    """Return a sharpened copy of ``image`` with the same dimensions."""
    rgb = image.pixels[:, :, :3]
    stretched = stretch_contrast(rgb)
    masked = unsharp_mask(stretched)
    boosted = boost_dark_pixels(masked)

    out = image.pixels.copy()
    out[:, :, :3] = boosted
    return Image(out)


def stretch_contrast(rgb: NDArray[np.uint8], factor: float = CONTRAST_FACTOR) -> NDArray[np.uint8]:
    """Scale each channel's distance from the mean pixel brightness by ``factor``."""
    values = rgb.astype(np.float64)
    mean_brightness = float((values.sum(axis=2) / 3).mean())
    stretched = (values - mean_brightness) * factor + mean_brightness
    return _round_clip(stretched)


def unsharp_mask(
    rgb: NDArray[np.uint8],
    radius: float = BLUR_RADIUS,
    amount: float = UNSHARP_AMOUNT,
    threshold: int = UNSHARP_THRESHOLD,
) -> NDArray[np.uint8]:
    """Push channels away from a blurred copy where they differ by more than ``threshold``."""
    blurred = _blur(rgb, radius)
    sharp = rgb.astype(np.float64)
    diff = sharp - blurred
    enhanced = np.where(np.abs(diff) > threshold, sharp + amount * diff, sharp)
    # Ties go to even, matching an 8-bit clamped store.
    return np.clip(np.rint(enhanced), 0, 255).astype(np.uint8)


def boost_dark_pixels(
    rgb: NDArray[np.uint8],
    limit: int = DARK_LIMIT,
    factor: float = DARK_FACTOR,
) -> NDArray[np.uint8]:
    """Scale R, G and B by ``factor`` (truncating) where all three are below ``limit``."""
    dark = np.all(rgb < limit, axis=2)
    out = rgb.copy()
    out[dark] = np.floor(rgb[dark].astype(np.float64) * factor).astype(np.uint8)
    return out


def _blur(rgb: NDArray[np.uint8], radius: float) -> NDArray[np.float64]:
    blurred = PILImage.fromarray(np.ascontiguousarray(rgb)).filter(ImageFilter.GaussianBlur(radius=radius))
    return np.asarray(blurred, dtype=np.float64)


def _round_clip(values: NDArray[np.float64]) -> NDArray[np.uint8]:
    # Round half up, then saturate to the 8-bit range.
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)
