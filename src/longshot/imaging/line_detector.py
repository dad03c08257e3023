"""Black horizontal line detection.

Rows whose share of dark pixels exceeds a percentage are grouped into runs;
each run at least ``min_line_width`` rows tall yields one split point at its
vertical midpoint.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from longshot.imaging.image import Image

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD: float = 50
DEFAULT_MIN_LINE_WIDTH: int = 2
DEFAULT_MIN_LINE_PERCENT: float = 70
MIN_SPLIT_DISTANCE: int = 50


def detect_split_points(
    image: Image,
    threshold: float = DEFAULT_THRESHOLD,
    min_line_width: int = DEFAULT_MIN_LINE_WIDTH,
    min_line_percent: float = DEFAULT_MIN_LINE_PERCENT,
) -> list[int]:
    """Return ascending Y coordinates of black lines in ``image``.

    Args:
        image: Source image; only its RGB samples are read.
        threshold: A pixel is black when the mean of its R, G, B samples is
            below this value.
        min_line_width: Minimum number of consecutive qualifying rows for a
            run to count as a line.
        min_line_percent: A row qualifies when strictly more than this
            percentage of its pixels are black.

    Returns:
        Split points, each more than ``MIN_SPLIT_DISTANCE`` rows past the
        previous one. Empty when no line is found.
    """
    if image.width == 0:
        return []

    qualifying = _qualifying_rows(image, threshold, min_line_percent)
    raw = _run_midpoints(qualifying, min_line_width)
    points = _filter_close_points(raw)
    logger.debug(
        "Detected %d raw / %d filtered split points (threshold=%s, min_width=%s, min_percent=%s)",
        len(raw),
        len(points),
        threshold,
        min_line_width,
        min_line_percent,
    )
    return points


def _qualifying_rows(image: Image, threshold: float, min_line_percent: float) -> NDArray[np.bool_]:
    # mean(R, G, B) < threshold, kept in integers; 3 * 255 fits in uint16.
    channel_sums = image.pixels[:, :, :3].sum(axis=2, dtype=np.uint16)
    black_counts = np.count_nonzero(channel_sums < 3 * threshold, axis=1)
    percent = black_counts / image.width * 100
    return percent > min_line_percent


def _run_midpoints(qualifying: NDArray[np.bool_], min_line_width: int) -> list[int]:
    points: list[int] = []
    run_start = -1

    for y, is_line in enumerate(qualifying.tolist()):
        if is_line and run_start == -1:
            run_start = y
        elif not is_line and run_start != -1:
            run_length = y - run_start
            if run_length >= min_line_width:
                points.append(run_start + run_length // 2)
            run_start = -1

    # A line touching the bottom edge never sees a non-qualifying row.
    if run_start != -1:
        run_length = len(qualifying) - run_start
        if run_length >= min_line_width:
            points.append(run_start + run_length // 2)

    return points


def _filter_close_points(points: list[int]) -> list[int]:
    kept: list[int] = []
    for point in points:
        if not kept or point - kept[-1] > MIN_SPLIT_DISTANCE:
            kept.append(point)
    return kept
