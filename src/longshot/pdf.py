"""PDF assembly: one slice per page, drawn at its native size."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import fitz

if TYPE_CHECKING:
    from collections.abc import Sequence

    from longshot.imaging.codec import ImageCodec
    from longshot.pipeline.slicer import Slice

logger = logging.getLogger(__name__)


class PdfAssembler(Protocol):
    """Protocol for turning ordered slices into a serialized document."""

    def assemble(self, slices: Sequence[Slice], margin: float = 0) -> bytes:
        """Build a PDF with one page per slice.

        Args:
            slices: Slices in page order.
            margin: Blank border around each image, in points.

        Returns:
            The serialized PDF.
        """
        ...


class PyMuPdfAssembler:
    """Writes PDFs with PyMuPDF, embedding each slice as a PNG."""

    def __init__(self, codec: ImageCodec) -> None:
        self._codec = codec

    def assemble(self, slices: Sequence[Slice], margin: float = 0) -> bytes:
        if not slices:
            raise ValueError("Cannot build a PDF without any slices")
        if margin < 0:
            raise ValueError(f"Margin must not be negative, got {margin}")

        doc = fitz.open()
        try:
            for item in slices:
                page = doc.new_page(width=item.width + 2 * margin, height=item.height + 2 * margin)
                rect = fitz.Rect(margin, margin, margin + item.width, margin + item.height)
                page.insert_image(rect, stream=self._codec.encode(item.image))
            data = doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()

        logger.info("Assembled PDF with %d page(s), %d bytes", len(slices), len(data))
        return data
