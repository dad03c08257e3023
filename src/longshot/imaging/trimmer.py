"""Whitespace trimming."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from longshot.imaging.image import Image

WHITE_LEVEL: int = 250


def trim(image: Image) -> Image:
    """Crop ``image`` to the bounding box of its content pixels.

    A pixel is content when any of R, G, B is below ``WHITE_LEVEL`` or its
    alpha is non-zero. When no box with positive extent on both axes is found
    the input is returned unchanged.
    """
    mask = content_mask(image)
    rows = np.flatnonzero(mask.any(axis=1))
    cols = np.flatnonzero(mask.any(axis=0))
    if rows.size == 0:
        return image

    top, bottom = int(rows[0]), int(rows[-1])
    left, right = int(cols[0]), int(cols[-1])
    if top >= bottom or left >= right:
        return image

    return image.crop(left, top, right, bottom)


def content_mask(image: Image) -> NDArray[np.bool_]:
    px = image.pixels
    return np.any(px[:, :, :3] < WHITE_LEVEL, axis=2) | (px[:, :, 3] > 0)
