"""Glucose rate of change (RoC) between consecutive readings.

Rates are in mmol/L per minute. Stable change is at most 0.06 (about
1 mg/dL/min), moderate at most 0.11 (about 2 mg/dL/min), anything faster is
rapid.
"""
from __future__ import annotations

from typing import Final, Mapping, Sequence

import numpy as np

from .constants import ROC_GOOD_MAX, ROC_MAX_GAP_MINUTES, ROC_MEDIUM_MAX, ROC_MIN_GAP_MINUTES
from .frames import sorted_by_time
from .models import GlucoseReading, RoCCategory, RoCDataPoint, RoCStats
from .ranges import calculate_percentage

ROC_THRESHOLDS: Final[Mapping[RoCCategory, float]] = {
    RoCCategory.GOOD: ROC_GOOD_MAX,
    RoCCategory.MEDIUM: ROC_MEDIUM_MAX,
}


def categorize_roc(abs_roc: float) -> RoCCategory:
    if abs_roc <= ROC_THRESHOLDS[RoCCategory.GOOD]:
        return RoCCategory.GOOD
    if abs_roc <= ROC_THRESHOLDS[RoCCategory.MEDIUM]:
        return RoCCategory.MEDIUM
    return RoCCategory.BAD


def calculate_roc(readings: Sequence[GlucoseReading]) -> list[RoCDataPoint]:
    """Return one point per consecutive pair of readings, in time order.

    Pairs further apart than 30 minutes or closer than 1 minute are skipped.
    Each point is stamped with the later reading of its pair.
    """

    ordered = sorted_by_time(readings)
    points: list[RoCDataPoint] = []
    for previous, current in zip(ordered, ordered[1:]):
        gap_minutes = (current.timestamp - previous.timestamp).total_seconds() / 60
        if gap_minutes > ROC_MAX_GAP_MINUTES or gap_minutes < ROC_MIN_GAP_MINUTES:
            continue

        roc_raw = (current.value - previous.value) / gap_minutes
        roc = abs(roc_raw)
        stamp = current.timestamp
        points.append(
            RoCDataPoint(
                timestamp=stamp,
                time_decimal=stamp.hour + stamp.minute / 60,
                time_label=f"{stamp.hour:02d}:{stamp.minute:02d}",
                roc=roc,
                roc_raw=roc_raw,
                glucose_value=current.value,
                category=categorize_roc(roc),
            )
        )
    return points


def calculate_roc_stats(points: Sequence[RoCDataPoint]) -> RoCStats:
    """Spread of absolute rates and the share of points in each category."""

    if not points:
        return RoCStats()

    rates = np.fromiter((point.roc for point in points), dtype=float, count=len(points))
    total = len(points)
    good = sum(1 for point in points if point.category == RoCCategory.GOOD)
    medium = sum(1 for point in points if point.category == RoCCategory.MEDIUM)
    bad = total - good - medium

    return RoCStats(
        min_roc=float(rates.min()),
        max_roc=float(rates.max()),
        sd_roc=float(np.std(rates, ddof=0)),
        good_percentage=calculate_percentage(good, total),
        medium_percentage=calculate_percentage(medium, total),
        bad_percentage=calculate_percentage(bad, total),
        good_count=good,
        medium_count=medium,
        bad_count=bad,
        total_count=total,
    )
