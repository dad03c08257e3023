"""Tests for the Pillow image codec."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image as PILImage

from longshot.errors import ImageDecodeError, ImageTooLargeError
from longshot.imaging.codec import PillowCodec
from longshot.imaging.image import Image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _encode_with_pillow(array: np.ndarray, fmt: str) -> bytes:
    out = io.BytesIO()
    PILImage.fromarray(array).save(out, format=fmt)
    return out.getvalue()


class TestPillowCodec:
    def test_decodes_png_to_rgba(self) -> None:
        rng = np.random.default_rng(1)
        rgba = rng.integers(0, 256, size=(12, 9, 4), dtype=np.uint8)
        codec = PillowCodec(max_image_pixels=10_000)

        image = codec.decode(_encode_with_pillow(rgba, "PNG"))

        assert (image.width, image.height) == (9, 12)
        assert np.array_equal(image.pixels, rgba)

    def test_rgb_input_gets_opaque_alpha(self) -> None:
        rgb = np.full((6, 8, 3), 40, dtype=np.uint8)
        codec = PillowCodec(max_image_pixels=10_000)

        image = codec.decode(_encode_with_pillow(rgb, "JPEG"))

        assert (image.width, image.height) == (8, 6)
        assert np.all(image.pixels[:, :, 3] == 255)

    def test_garbage_raises_decode_error(self) -> None:
        codec = PillowCodec(max_image_pixels=10_000)
        with pytest.raises(ImageDecodeError) as excinfo:
            codec.decode(b"definitely not an image")
        assert excinfo.value.kind == "decode_failed"

    def test_pixel_limit_is_enforced(self) -> None:
        codec = PillowCodec(max_image_pixels=24)
        data = _encode_with_pillow(np.zeros((5, 5, 4), dtype=np.uint8), "PNG")
        with pytest.raises(ImageTooLargeError):
            codec.decode(data)

    def test_encode_produces_png_that_decodes_back(self) -> None:
        rng = np.random.default_rng(2)
        image = Image(rng.integers(0, 256, size=(7, 5, 4), dtype=np.uint8))
        codec = PillowCodec(max_image_pixels=10_000)

        data = codec.encode(image)

        assert data.startswith(PNG_SIGNATURE)
        assert codec.decode(data).same_pixels(image)
