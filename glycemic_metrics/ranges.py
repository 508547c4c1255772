"""Range categorisation and aggregate Time-in-Range counts."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from .frames import glucose_values
from .models import (
    FiveCategoryStats,
    GlucoseCategory,
    GlucoseRangeStats,
    GlucoseReading,
    GlucoseThresholds,
    RangeCategoryMode,
    ThreeCategoryStats,
)
from .rounding import round_half_up


def categorize_glucose(
    value: float,
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
) -> GlucoseCategory:
    """Classify a reading; values on a boundary fall toward in range."""

    if mode == RangeCategoryMode.FIVE:
        if value < thresholds.very_low:
            return GlucoseCategory.VERY_LOW
        if value < thresholds.low:
            return GlucoseCategory.LOW
        if value <= thresholds.high:
            return GlucoseCategory.IN_RANGE
        if value <= thresholds.very_high:
            return GlucoseCategory.HIGH
        return GlucoseCategory.VERY_HIGH

    if value < thresholds.low:
        return GlucoseCategory.LOW
    if value <= thresholds.high:
        return GlucoseCategory.IN_RANGE
    return GlucoseCategory.HIGH


def empty_range_stats(mode: RangeCategoryMode = RangeCategoryMode.THREE) -> GlucoseRangeStats:
    if mode == RangeCategoryMode.FIVE:
        return FiveCategoryStats(very_low=0, low=0, in_range=0, high=0, very_high=0, total=0)
    return ThreeCategoryStats(low=0, in_range=0, high=0, total=0)


def range_stats_from_values(
    values: np.ndarray,
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
) -> GlucoseRangeStats:
    """Count an array of mmol/L values into range buckets."""

    values = np.asarray(values, dtype=float)
    total = int(values.size)
    if total == 0:
        return empty_range_stats(mode)

    in_range = int(np.sum((values >= thresholds.low) & (values <= thresholds.high)))
    if mode == RangeCategoryMode.FIVE:
        return FiveCategoryStats(
            very_low=int(np.sum(values < thresholds.very_low)),
            low=int(np.sum((values >= thresholds.very_low) & (values < thresholds.low))),
            in_range=in_range,
            high=int(np.sum((values > thresholds.high) & (values <= thresholds.very_high))),
            very_high=int(np.sum(values > thresholds.very_high)),
            total=total,
        )
    return ThreeCategoryStats(
        low=int(np.sum(values < thresholds.low)),
        in_range=in_range,
        high=int(np.sum(values > thresholds.high)),
        total=total,
    )


def calculate_glucose_range_stats(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
) -> GlucoseRangeStats:
    """Count readings per range category."""

    return range_stats_from_values(glucose_values(readings), thresholds, mode)


def calculate_percentage(count: float, total: float) -> float:
    """Return ``count / total`` as a percentage with one decimal; 0 for an empty total."""

    if total == 0:
        return 0.0
    return round_half_up(count / total * 1000) / 10


def convert_percentage_to_time(total_readings: int, actual_readings: int) -> str:
    """Express a share of readings as time of a 24h day, e.g. ``"1h 10m"``.

    The result is rounded to the nearest five minutes.
    """

    if total_readings <= 0:
        return "0m"
    minutes_per_reading = (24 * 60) / total_readings
    total_minutes = int(round_half_up(actual_readings * minutes_per_reading / 5)) * 5

    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"
