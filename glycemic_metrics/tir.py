"""Time-in-Range over trailing day windows and hour-of-day buckets."""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Sequence

import numpy as np

from .constants import DEFAULT_TIR_PERIODS, HOUR_GROUP_SIZES
from .frames import readings_frame
from .grouping import filter_readings_to_last_n_days
from .models import (
    GlucoseReading,
    GlucoseThresholds,
    HourlyTIRStats,
    RangeCategoryMode,
    TimePeriodTIRStats,
)
from .ranges import calculate_glucose_range_stats, range_stats_from_values

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


def data_span_days(readings: Sequence[GlucoseReading], reference: datetime | None = None) -> int:
    """Whole days (rounded up) between the earliest reading and the reference."""

    if not readings:
        return 0
    earliest = min(reading.timestamp for reading in readings)
    latest = reference if reference is not None else max(reading.timestamp for reading in readings)
    return math.ceil((latest - earliest).total_seconds() / _SECONDS_PER_DAY)


def calculate_tir_by_time_periods(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
    reference: datetime | None = None,
    periods: Sequence[int] = DEFAULT_TIR_PERIODS,
) -> list[TimePeriodTIRStats]:
    """Return TIR stats for each trailing window the data actually spans.

    Windows longer than the data span are left out rather than zero-filled.
    """

    if not readings:
        return []

    anchor = reference if reference is not None else max(reading.timestamp for reading in readings)
    span = data_span_days(readings, anchor)
    applicable = [days for days in periods if days <= span]
    skipped = [days for days in periods if days > span]
    if skipped:
        logger.debug("Omitting TIR windows %s; data spans %d day(s)", skipped, span)

    return [
        TimePeriodTIRStats(
            period=f"{days} days",
            days=days,
            stats=calculate_glucose_range_stats(
                filter_readings_to_last_n_days(readings, days, anchor),
                thresholds,
                mode,
            ),
        )
        for days in applicable
    ]


def calculate_hourly_tir(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
) -> list[HourlyTIRStats]:
    """Return 24 hour-of-day buckets labelled ``"HH:00"``, all days combined."""

    frame = readings_frame(readings)
    values = frame["value"].to_numpy(dtype=float)
    hours = frame["hour"].to_numpy(dtype=int)
    return [
        HourlyTIRStats(
            hour=hour,
            hour_label=f"{hour:02d}:00",
            stats=range_stats_from_values(values[hours == hour], thresholds, mode),
        )
        for hour in range(24)
    ]


def calculate_hourly_tir_grouped(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
    group_size: int = 1,
) -> list[HourlyTIRStats]:
    """Return hour-of-day buckets merged into bins of ``group_size`` hours.

    Bins are labelled ``"HH:00-HH:59"``. A group size of 1 returns exactly
    :func:`calculate_hourly_tir`.
    """

    if group_size not in HOUR_GROUP_SIZES:
        raise ValueError(f"group_size must be one of {HOUR_GROUP_SIZES}, got {group_size}")
    if group_size == 1:
        return calculate_hourly_tir(readings, thresholds, mode)

    frame = readings_frame(readings)
    values = frame["value"].to_numpy(dtype=float)
    groups = np.floor_divide(frame["hour"].to_numpy(dtype=int), group_size)

    results: list[HourlyTIRStats] = []
    for index in range(24 // group_size):
        start_hour = index * group_size
        end_hour = start_hour + group_size - 1
        results.append(
            HourlyTIRStats(
                hour=start_hour,
                hour_label=f"{start_hour:02d}:00-{end_hour:02d}:59",
                stats=range_stats_from_values(values[groups == index], thresholds, mode),
            )
        )
    return results
