"""Immutable RGBA pixel grid.

Every filter in :mod:`longshot.imaging` takes an :class:`Image` and returns a
new one; the wrapped array is marked read-only so a slice can never alias a
buffer some other slice is still writing to.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from longshot.errors import InvalidImageError

CHANNELS = 4


@dataclass(frozen=True, eq=False)
class Image:
    """Decoded image as an HxWx4 uint8 array in R, G, B, A order."""

    pixels: NDArray[np.uint8]

    def __post_init__(self) -> None:
        pixels = self.pixels
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise InvalidImageError(f"Expected an HxWx{CHANNELS} pixel array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidImageError(f"Image must have positive dimensions, got {pixels.shape[1]}x{pixels.shape[0]}")
        if pixels.dtype != np.uint8:
            raise InvalidImageError(f"Expected uint8 samples, got {pixels.dtype}")
        owned = np.array(pixels, dtype=np.uint8, copy=True, order="C")
        owned.flags.writeable = False
        object.__setattr__(self, "pixels", owned)

    @classmethod
    def from_buffer(cls, buffer: bytes | bytearray | memoryview, width: int, height: int) -> Image:
        """Build an image from a flat RGBA buffer of length width*height*4."""
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"Image must have positive dimensions, got {width}x{height}")
        expected = width * height * CHANNELS
        if len(buffer) != expected:
            raise InvalidImageError(f"Buffer length {len(buffer)} does not match {width}x{height}x{CHANNELS}")
        flat = np.frombuffer(buffer, dtype=np.uint8)
        return cls(flat.reshape(height, width, CHANNELS))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def buffer(self) -> bytes:
        """Flat RGBA bytes, row-major."""
        return self.pixels.tobytes()

    def rows(self, start: int, end: int) -> Image:
        """Return a copy of the half-open row range [start, end)."""
        return Image(self.pixels[start:end])

    def crop(self, left: int, top: int, right: int, bottom: int) -> Image:
        """Return a copy of the inclusive rectangle [left, right] x [top, bottom]."""
        return Image(self.pixels[top : bottom + 1, left : right + 1])

    def same_pixels(self, other: Image) -> bool:
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))
