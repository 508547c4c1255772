from __future__ import annotations

from datetime import datetime, timedelta
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from glycemic_metrics.models import (
    FiveCategoryStats,
    GlucoseCategory,
    GlucoseReading,
    GlucoseThresholds,
    RangeCategoryMode,
    ThreeCategoryStats,
)
from glycemic_metrics.ranges import (
    calculate_glucose_range_stats,
    calculate_percentage,
    categorize_glucose,
    convert_percentage_to_time,
)
from glycemic_metrics.rounding import round_half_up

THRESHOLDS = GlucoseThresholds()


def _readings(values: list[float]) -> list[GlucoseReading]:
    start = datetime(2024, 1, 1, 8, 0)
    return [GlucoseReading(timestamp=start + timedelta(minutes=5 * idx), value=value) for idx, value in enumerate(values)]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (3.89, GlucoseCategory.LOW),
        (3.9, GlucoseCategory.IN_RANGE),
        (10.0, GlucoseCategory.IN_RANGE),
        (10.01, GlucoseCategory.HIGH),
        (20.0, GlucoseCategory.HIGH),
    ],
)
def test_categorize_three_category_boundaries(value, expected):
    assert categorize_glucose(value, THRESHOLDS) is expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2.99, GlucoseCategory.VERY_LOW),
        (3.0, GlucoseCategory.LOW),
        (3.9, GlucoseCategory.IN_RANGE),
        (10.0, GlucoseCategory.IN_RANGE),
        (13.9, GlucoseCategory.HIGH),
        (13.91, GlucoseCategory.VERY_HIGH),
    ],
)
def test_categorize_five_category_boundaries(value, expected):
    assert categorize_glucose(value, THRESHOLDS, RangeCategoryMode.FIVE) is expected


def test_five_category_stats_count_every_reading_once():
    readings = _readings([2.5, 3.5, 5.0, 10.0, 12.0, 14.0])

    stats = calculate_glucose_range_stats(readings, THRESHOLDS, RangeCategoryMode.FIVE)

    assert isinstance(stats, FiveCategoryStats)
    assert (stats.very_low, stats.low, stats.in_range, stats.high, stats.very_high) == (1, 1, 2, 1, 1)
    assert sum(stats.counts().values()) == stats.total == 6
    assert stats.count(GlucoseCategory.IN_RANGE) == 2


def test_three_category_stats_agree_with_categorize():
    values = [3.0, 3.9, 6.1, 10.0, 10.1, 15.2]
    stats = calculate_glucose_range_stats(_readings(values), THRESHOLDS)

    assert isinstance(stats, ThreeCategoryStats)
    for category, count in stats.counts().items():
        assert count == sum(1 for value in values if categorize_glucose(value, THRESHOLDS) is category)


def test_empty_readings_yield_zero_shape_for_requested_mode():
    three = calculate_glucose_range_stats([], THRESHOLDS)
    five = calculate_glucose_range_stats([], THRESHOLDS, RangeCategoryMode.FIVE)

    assert three == ThreeCategoryStats(low=0, in_range=0, high=0, total=0)
    assert five == FiveCategoryStats(very_low=0, low=0, in_range=0, high=0, very_high=0, total=0)


@pytest.mark.parametrize(
    ("count", "total", "expected"),
    [
        (1, 3, 33.3),
        (2, 3, 66.7),
        (1, 8, 12.5),
        (1, 6, 16.7),
        (5, 0, 0.0),
        (0, 0, 0.0),
    ],
)
def test_calculate_percentage(count, total, expected):
    assert calculate_percentage(count, total) == pytest.approx(expected)


def test_round_half_up_rounds_ties_upward():
    assert round_half_up(0.25, 1) == pytest.approx(0.3)
    assert round_half_up(2.5) == 3.0
    assert round_half_up(-2.5) == -2.0


@pytest.mark.parametrize(
    ("total", "actual", "expected"),
    [
        (288, 12, "1h"),
        (288, 14, "1h 10m"),
        (288, 3, "15m"),
        (288, 0, "0m"),
        (0, 5, "0m"),
    ],
)
def test_convert_percentage_to_time(total, actual, expected):
    assert convert_percentage_to_time(total, actual) == expected
