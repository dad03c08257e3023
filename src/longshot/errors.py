"""Exception hierarchy shared by the imaging pipeline and the API layer."""

from __future__ import annotations


class LongshotError(Exception):
    """Base class for all LongShot errors.

    ``kind`` is a stable machine-readable tag the API layer reports back to
    clients and writes to the logs.
    """

    kind: str = "error"


class InvalidImageError(LongshotError, ValueError):
    """Image has zero width or height, or a malformed pixel buffer."""

    kind = "invalid_image"


class ImageDecodeError(LongshotError, ValueError):
    """Input bytes could not be decoded into an image."""

    kind = "decode_failed"


class ImageTooLargeError(LongshotError, ValueError):
    """Input exceeds the configured pixel or byte limit."""

    kind = "image_too_large"


class SlicingCancelledError(LongshotError):
    """The caller aborted slicing before all regions were processed."""

    kind = "cancelled"
