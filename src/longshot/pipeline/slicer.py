"""Slice a long screenshot into page-sized images.

Pipeline per request::

    source -> region boundaries -> [rows -> sharpen? -> trim] per region -> slices

Regions are independent; when an executor is supplied they are processed
concurrently and reassembled in top-to-bottom order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from longshot.errors import SlicingCancelledError
from longshot.imaging.line_detector import detect_split_points
from longshot.imaging.sharpener import sharpen
from longshot.imaging.trimmer import trim

if TYPE_CHECKING:
    import threading
    from concurrent.futures import Executor

    from longshot.imaging.image import Image

logger = logging.getLogger(__name__)

BASE_THRESHOLD: int = 120
LINE_MIN_WIDTH: int = 2
LINE_MIN_PERCENT: float = 60
MIN_SENSITIVITY: int = 0
MAX_SENSITIVITY: int = 100


class SliceStrategy(StrEnum):
    LINES = "lines"
    FIXED_HEIGHT = "fixed_height"


@dataclass(frozen=True)
class SliceOptions:
    """Knobs for a single slicing run.

    ``max_height`` and ``overlap`` only apply to the fixed-height strategy.
    """

    sensitivity: int = 50
    sharpen: bool = True
    strategy: SliceStrategy = SliceStrategy.LINES
    max_height: int = 1200
    overlap: int = 0


@dataclass(frozen=True)
class SliceRegion:
    """Half-open row interval [start_y, end_y) of the source image."""

    start_y: int
    end_y: int

    @property
    def height(self) -> int:
        return self.end_y - self.start_y


@dataclass(frozen=True)
class Slice:
    """One output page image and the source rows it was cut from."""

    image: Image
    region: SliceRegion

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


def slice_image(
    image: Image,
    options: SliceOptions | None = None,
    *,
    executor: Executor | None = None,
    cancel: threading.Event | None = None,
) -> list[Slice]:
    """Cut ``image`` into trimmed (and optionally sharpened) slices.

    Args:
        image: Decoded source image.
        options: Slicing knobs; defaults to :class:`SliceOptions`.
        executor: Optional executor used to process regions concurrently.
        cancel: When set, no further regions are started and
            :class:`SlicingCancelledError` is raised.

    Returns:
        Slices in top-to-bottom order of their source regions.
    """
    options = options or SliceOptions()
    regions = [region for region in compute_regions(image, options) if _is_usable(region)]

    if executor is None:
        slices = [_process_region(image, region, options.sharpen, cancel) for region in regions]
    else:
        futures = [executor.submit(_process_region, image, region, options.sharpen, cancel) for region in regions]
        try:
            slices = [future.result() for future in futures]
        finally:
            for future in futures:
                future.cancel()

    logger.info(
        "Sliced %dx%d image into %d slice(s) (strategy=%s, sharpen=%s)",
        image.width,
        image.height,
        len(slices),
        options.strategy,
        options.sharpen,
    )
    return slices


def compute_regions(image: Image, options: SliceOptions) -> list[SliceRegion]:
    """Return the source regions ``options.strategy`` would cut ``image`` into."""
    if options.strategy == SliceStrategy.FIXED_HEIGHT:
        return fixed_height_regions(image.height, options.max_height, options.overlap)
    return line_regions(image, options.sensitivity)


def line_regions(image: Image, sensitivity: int) -> list[SliceRegion]:
    """Regions separated by detected black lines; they partition [0, height)."""
    sensitivity = _clamp_sensitivity(sensitivity)
    points = detect_split_points(
        image,
        threshold=BASE_THRESHOLD - sensitivity,
        min_line_width=LINE_MIN_WIDTH,
        min_line_percent=LINE_MIN_PERCENT,
    )
    logger.debug("Split points at %s", points)
    boundaries = [0, *points, image.height]
    return [SliceRegion(start, end) for start, end in zip(boundaries, boundaries[1:], strict=False)]


def fixed_height_regions(height: int, max_height: int, overlap: int = 0) -> list[SliceRegion]:
    """Regions of at most ``max_height`` rows, each overlapping the previous by ``overlap`` rows."""
    if max_height < 1:
        logger.warning("max_height %d is not positive, using 1", max_height)
        max_height = 1
    if not 0 <= overlap < max_height:
        clamped = min(max(overlap, 0), max_height - 1)
        logger.warning("overlap %d outside [0, %d), using %d", overlap, max_height, clamped)
        overlap = clamped

    regions: list[SliceRegion] = []
    start = 0
    while start < height:
        end = min(start + max_height, height)
        regions.append(SliceRegion(start, end))
        if end == height:
            break
        start = end - overlap
    return regions


def _process_region(
    image: Image,
    region: SliceRegion,
    apply_sharpen: bool,
    cancel: threading.Event | None = None,
) -> Slice:
    _check_cancelled(cancel)
    part = image.rows(region.start_y, region.end_y)
    if apply_sharpen:
        part = sharpen(part)
    return Slice(image=trim(part), region=region)


def _is_usable(region: SliceRegion) -> bool:
    if region.height <= 0:
        logger.warning("Skipping degenerate region [%d, %d)", region.start_y, region.end_y)
        return False
    return True


def _clamp_sensitivity(sensitivity: int) -> int:
    clamped = min(max(sensitivity, MIN_SENSITIVITY), MAX_SENSITIVITY)
    if clamped != sensitivity:
        logger.warning("Sensitivity %s outside [%d, %d], using %d", sensitivity, MIN_SENSITIVITY, MAX_SENSITIVITY, clamped)
    return clamped


def _check_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise SlicingCancelledError("Slicing cancelled by caller")
