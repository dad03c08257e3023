"""Image decoding and encoding at the system boundary.

The pipeline itself never touches encoded bytes; callers inject an
:class:`ImageCodec` wherever bytes come in or go out.
"""

from __future__ import annotations

import io
import logging
from typing import Protocol

import numpy as np
from PIL import Image as PILImage
from PIL import ImageOps, UnidentifiedImageError

from longshot.errors import ImageDecodeError, ImageTooLargeError
from longshot.imaging.image import Image

logger = logging.getLogger(__name__)


class ImageCodec(Protocol):
    """Protocol for turning encoded bytes into images and back."""

    def decode(self, data: bytes) -> Image:
        """Decode raw file bytes into an RGBA :class:`Image`.

        Raises:
            ImageDecodeError: If the bytes are not a supported image.
            ImageTooLargeError: If the image exceeds the pixel limit.
        """
        ...

    def encode(self, image: Image) -> bytes:
        """Encode an :class:`Image` into file bytes."""
        ...


class PillowCodec:
    """PNG/JPEG/WebP codec backed by Pillow; always encodes PNG."""

    def __init__(self, max_image_pixels: int) -> None:
        self._max_image_pixels = max_image_pixels

    def decode(self, data: bytes) -> Image:
        try:
            with PILImage.open(io.BytesIO(data)) as src:
                width, height = src.size
                if width * height > self._max_image_pixels:
                    raise ImageTooLargeError(
                        f"Image is {width}x{height} ({width * height} pixels), limit is {self._max_image_pixels}"
                    )
                source_format = src.format
                oriented = ImageOps.exif_transpose(src)
                rgba = oriented.convert("RGBA")
        except PILImage.DecompressionBombError as exc:
            raise ImageTooLargeError(str(exc)) from exc
        except UnidentifiedImageError as exc:
            raise ImageDecodeError("Unsupported or corrupt image data") from exc
        except (OSError, SyntaxError) as exc:
            raise ImageDecodeError(f"Failed to decode image: {exc}") from exc

        logger.debug("Decoded %dx%d %s image", rgba.width, rgba.height, source_format)
        return Image(np.asarray(rgba, dtype=np.uint8))

    def encode(self, image: Image) -> bytes:
        out = io.BytesIO()
        PILImage.fromarray(np.ascontiguousarray(image.pixels)).save(out, format="PNG")
        return out.getvalue()
