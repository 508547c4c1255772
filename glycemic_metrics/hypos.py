"""Detection of hypoglycaemia episodes.

An episode starts with three consecutive readings below the threshold and
ends with three consecutive readings that are both at or above the threshold
and at least ``HYPO_RECOVERY_OFFSET`` mmol/L above the episode's nadir.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Sequence

from .constants import CONSECUTIVE_READINGS_REQUIRED, HYPO_RECOVERY_OFFSET
from .frames import sorted_by_time
from .models import GlucoseReading, GlucoseThresholds, HypoPeriod, HypoStats


def _minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def _build_period(
    readings: Sequence[GlucoseReading],
    start_index: int,
    end_index: int,
    nadir_index: int,
    is_severe: bool,
) -> HypoPeriod:
    start_time = readings[start_index].timestamp
    end_time = readings[end_index].timestamp
    nadir_time = readings[nadir_index].timestamp
    return HypoPeriod(
        start_time=start_time,
        end_time=end_time,
        duration_minutes=_minutes_between(start_time, end_time),
        nadir=readings[nadir_index].value,
        nadir_time=nadir_time,
        is_severe=is_severe,
        nadir_index=nadir_index,
        nadir_time_decimal=nadir_time.hour + nadir_time.minute / 60,
    )


def detect_hypo_periods(
    readings: Sequence[GlucoseReading],
    threshold: float,
    is_severe: bool = False,
) -> list[HypoPeriod]:
    """Return hypo episodes below ``threshold``.

    Readings are put in time order first; ``nadir_index`` refers to that
    order. An episode still open at the end of the data closes on the last
    reading.
    """

    ordered = sorted_by_time(readings)
    required = CONSECUTIVE_READINGS_REQUIRED
    if len(ordered) < required:
        return []

    periods: list[HypoPeriod] = []
    in_hypo = False
    start_index = -1
    nadir_index = -1
    below_count = 0
    recovered_count = 0

    for index, reading in enumerate(ordered):
        if not in_hypo:
            if reading.value < threshold:
                below_count += 1
                if below_count >= required:
                    in_hypo = True
                    start_index = index - (required - 1)
                    nadir_index = index
                    for earlier in range(start_index, index):
                        if ordered[earlier].value < ordered[nadir_index].value:
                            nadir_index = earlier
                    recovered_count = 0
            else:
                below_count = 0
            continue

        if reading.value < ordered[nadir_index].value:
            nadir_index = index

        recovery_level = max(threshold, ordered[nadir_index].value + HYPO_RECOVERY_OFFSET)
        if reading.value >= recovery_level:
            recovered_count += 1
            if recovered_count >= required:
                end_index = index - (required - 1)
                periods.append(_build_period(ordered, start_index, end_index, nadir_index, is_severe))
                in_hypo = False
                below_count = 0
                recovered_count = 0
        else:
            recovered_count = 0

    if in_hypo:
        periods.append(_build_period(ordered, start_index, len(ordered) - 1, nadir_index, is_severe))

    return periods


def calculate_hypo_stats(readings: Sequence[GlucoseReading], thresholds: GlucoseThresholds) -> HypoStats:
    """Summarise episodes below ``low``; an episode is severe when its nadir is below ``very_low``."""

    periods = [
        replace(period, is_severe=period.nadir < thresholds.very_low)
        for period in detect_hypo_periods(readings, thresholds.low)
    ]
    severe = sum(1 for period in periods if period.is_severe)

    return HypoStats(
        severe_count=severe,
        non_severe_count=len(periods) - severe,
        total_count=len(periods),
        lowest_value=min((period.nadir for period in periods), default=None),
        longest_duration_minutes=max((period.duration_minutes for period in periods), default=0.0),
        total_duration_minutes=sum(period.duration_minutes for period in periods),
        hypo_periods=tuple(periods),
    )

