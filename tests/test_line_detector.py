"""Tests for black line detection."""

from __future__ import annotations

import numpy as np
import pytest

from longshot.imaging.image import Image
from longshot.imaging.line_detector import MIN_SPLIT_DISTANCE, detect_split_points

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _white(width: int, height: int) -> np.ndarray:
    return np.full((height, width, 4), 255, dtype=np.uint8)


def _with_black_rows(width: int, height: int, rows: range | list[int]) -> Image:
    pixels = _white(width, height)
    for y in rows:
        pixels[y, :, :3] = 0
    return Image(pixels)


# ---------------------------------------------------------------------------
# Run detection
# ---------------------------------------------------------------------------


class TestRunDetection:
    def test_single_black_row_with_unit_width(self) -> None:
        image = _with_black_rows(200, 300, [120])
        assert detect_split_points(image, threshold=70, min_line_width=1, min_line_percent=60) == [120]

    def test_four_row_line_splits_at_midpoint(self) -> None:
        image = _with_black_rows(1000, 3000, range(1500, 1504))
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == [1502]

    def test_odd_run_length_floors_midpoint(self) -> None:
        image = _with_black_rows(100, 300, range(100, 103))
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == [101]

    def test_all_white_has_no_split_points(self) -> None:
        image = Image(_white(300, 400))
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == []

    def test_run_shorter_than_min_width_is_ignored(self) -> None:
        image = _with_black_rows(100, 300, [150])
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == []

    def test_run_touching_bottom_edge_is_closed(self) -> None:
        image = _with_black_rows(100, 300, range(296, 300))
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == [298]

    def test_short_run_at_bottom_edge_is_ignored(self) -> None:
        image = _with_black_rows(100, 300, [299])
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == []

    def test_line_starting_at_top_row(self) -> None:
        image = _with_black_rows(100, 300, [0, 1])
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == [1]


# ---------------------------------------------------------------------------
# Row qualification
# ---------------------------------------------------------------------------


class TestRowQualification:
    def test_percent_must_be_strictly_exceeded(self) -> None:
        pixels = _white(100, 200)
        pixels[100:104, :60, :3] = 0
        image = Image(pixels)
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == []

    def test_partial_row_above_percent_qualifies(self) -> None:
        pixels = _white(100, 200)
        pixels[100:104, :61, :3] = 0
        image = Image(pixels)
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == [102]

    def test_brightness_must_be_strictly_below_threshold(self) -> None:
        pixels = _white(50, 200)
        pixels[100:104, :, :3] = 70
        image = Image(pixels)
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == []

    def test_brightness_is_unweighted_rgb_mean(self) -> None:
        pixels = _white(50, 200)
        # mean of (0, 0, 209) is 69.67, below 70
        pixels[100:104, :, 0] = 0
        pixels[100:104, :, 1] = 0
        pixels[100:104, :, 2] = 209
        image = Image(pixels)
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == [102]

    def test_saturated_channels_do_not_wrap(self) -> None:
        pixels = _white(50, 200)
        # channel sum is 520; an 8-bit sum would wrap to 8
        pixels[100:104, :, 0] = 255
        pixels[100:104, :, 1] = 255
        pixels[100:104, :, 2] = 10
        image = Image(pixels)
        assert detect_split_points(image, threshold=100, min_line_width=2, min_line_percent=60) == []

    def test_alpha_is_ignored(self) -> None:
        pixels = _white(50, 200)
        pixels[100:104, :, :] = 0
        image = Image(pixels)
        assert detect_split_points(image, threshold=70, min_line_width=2, min_line_percent=60) == [102]

    def test_defaults_reject_dark_gray(self) -> None:
        pixels = _white(50, 200)
        pixels[100:104, :, :3] = 60
        image = Image(pixels)
        assert detect_split_points(image) == []
        assert detect_split_points(image, threshold=70) == [102]


# ---------------------------------------------------------------------------
# Minimum separation
# ---------------------------------------------------------------------------


class TestMinimumSeparation:
    def test_points_within_distance_are_dropped(self) -> None:
        image = _with_black_rows(100, 400, [100, 150])
        assert detect_split_points(image, threshold=70, min_line_width=1, min_line_percent=60) == [100]

    def test_points_past_distance_are_kept(self) -> None:
        image = _with_black_rows(100, 400, [100, 151])
        assert detect_split_points(image, threshold=70, min_line_width=1, min_line_percent=60) == [100, 151]

    def test_first_point_is_always_kept(self) -> None:
        image = _with_black_rows(100, 400, [0])
        assert detect_split_points(image, threshold=70, min_line_width=1, min_line_percent=60) == [0]

    def test_filter_compares_against_last_kept_point(self) -> None:
        image = _with_black_rows(100, 400, [100, 140, 160])
        assert detect_split_points(image, threshold=70, min_line_width=1, min_line_percent=60) == [100, 160]

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_points_are_ascending_and_separated(self, seed: int) -> None:
        rng = np.random.default_rng(seed)
        height = 2000
        rows = sorted(rng.choice(height, size=120, replace=False).tolist())
        image = _with_black_rows(64, height, rows)

        points = detect_split_points(image, threshold=70, min_line_width=1, min_line_percent=60)

        assert points
        assert all(0 <= p < height for p in points)
        assert all(b - a > MIN_SPLIT_DISTANCE for a, b in zip(points, points[1:], strict=False))
