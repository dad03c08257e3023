"""LongShot: slice long screenshots into one-image-per-page PDFs."""

__version__ = "0.1.0"
