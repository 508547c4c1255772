"""Insulin totals and insulin-on-board (IOB) under linear or exponential decay."""
from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Sequence

import numpy as np

from .constants import DEFAULT_INSULIN_DURATION_HOURS
from .models import (
    DailyInsulinSummary,
    HourlyIOBPoint,
    InsulinReading,
    InsulinTimelinePoint,
    InsulinType,
    IOBBreakdown,
    IOBDataPoint,
    IOBModel,
)
from .rounding import round_half_up

_SECONDS_PER_HOUR = 60 * 60


def _require_positive_duration(duration_hours: float) -> None:
    if duration_hours <= 0:
        raise ValueError(f"duration_hours must be positive, got {duration_hours}")


def _elapsed_hours(reading: InsulinReading, target_time: datetime) -> float:
    return (target_time - reading.timestamp).total_seconds() / _SECONDS_PER_HOUR


def _remaining_fraction(reading: InsulinReading, target_time: datetime, duration_hours: float) -> float:
    """Share of a dose still active at ``target_time``; 0 for future or expired doses."""

    if reading.timestamp > target_time:
        return 0.0
    elapsed_hours = _elapsed_hours(reading, target_time)
    if elapsed_hours >= duration_hours:
        return 0.0
    return 1 - elapsed_hours / duration_hours


def _exponential_fraction(elapsed_hours: float, duration_hours: float) -> float:
    """Exponential decay with a half-life of half the action duration, cut off at the duration."""

    if elapsed_hours < 0 or elapsed_hours >= duration_hours:
        return 0.0
    decay = math.log(2) / (duration_hours / 2)
    return math.exp(-decay * elapsed_hours)


def _linear_split(
    readings: Sequence[InsulinReading],
    target_time: datetime,
    duration_hours: float,
) -> tuple[float, float]:
    basal = bolus = 0.0
    for reading in readings:
        active = reading.dose * _remaining_fraction(reading, target_time, duration_hours)
        if reading.insulin_type == InsulinType.BASAL:
            basal += active
        else:
            bolus += active
    return basal, bolus


def _exponential_split(
    readings: Sequence[InsulinReading],
    target_time: datetime,
    duration_hours: float,
) -> tuple[float, float]:
    """Bolus doses decay individually; basal is summed into whole-hour buckets
    before ``target_time`` and each bucket decays from its midpoint."""

    basal_by_hour: dict[int, float] = defaultdict(float)
    bolus = 0.0
    for reading in readings:
        elapsed_hours = _elapsed_hours(reading, target_time)
        if elapsed_hours < 0 or elapsed_hours > duration_hours:
            continue
        if reading.insulin_type == InsulinType.BASAL:
            bucket = math.floor(elapsed_hours)
            if bucket < duration_hours:
                basal_by_hour[bucket] += reading.dose
        else:
            bolus += reading.dose * _exponential_fraction(elapsed_hours, duration_hours)

    basal = sum(dose * _exponential_fraction(bucket + 0.5, duration_hours) for bucket, dose in basal_by_hour.items())
    return basal, bolus


def calculate_iob(
    readings: Sequence[InsulinReading],
    target_time: datetime,
    duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS,
) -> float:
    """Active insulin at ``target_time``, rounded to two decimals.

    Each dose delivered at or before ``target_time`` contributes
    ``dose * (1 - elapsed / duration)`` until it expires.
    """

    _require_positive_duration(duration_hours)
    total = sum(reading.dose * _remaining_fraction(reading, target_time, duration_hours) for reading in readings)
    return round_half_up(total, 2)


def calculate_iob_breakdown(
    readings: Sequence[InsulinReading],
    target_time: datetime,
    duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS,
    model: IOBModel = IOBModel.LINEAR,
) -> IOBBreakdown:
    """Active insulin at ``target_time`` split into basal and bolus parts.

    ``IOBModel.LINEAR`` is the same curve as :func:`calculate_iob`.
    ``IOBModel.EXPONENTIAL`` uses a half-life of ``duration_hours / 2`` and
    buckets basal deliveries by hour.
    """

    _require_positive_duration(duration_hours)
    if model == IOBModel.EXPONENTIAL:
        basal, bolus = _exponential_split(readings, target_time, duration_hours)
    else:
        basal, bolus = _linear_split(readings, target_time, duration_hours)
    return IOBBreakdown(
        basal_iob=round_half_up(basal, 2),
        bolus_iob=round_half_up(bolus, 2),
        total_iob=round_half_up(basal + bolus, 2),
    )


def aggregate_insulin_by_date(readings: Sequence[InsulinReading]) -> list[DailyInsulinSummary]:
    """Daily basal, bolus and total insulin, oldest date first."""

    totals: dict[date, dict[InsulinType, float]] = defaultdict(lambda: {InsulinType.BASAL: 0.0, InsulinType.BOLUS: 0.0})
    for reading in readings:
        totals[reading.timestamp.date()][reading.insulin_type] += reading.dose

    return [
        DailyInsulinSummary(
            date=day,
            basal_total=round_half_up(by_type[InsulinType.BASAL], 1),
            bolus_total=round_half_up(by_type[InsulinType.BOLUS], 1),
            total_insulin=round_half_up(by_type[InsulinType.BASAL] + by_type[InsulinType.BOLUS], 1),
        )
        for day, by_type in sorted(totals.items())
    ]


def _basal_and_bolus(readings: Sequence[InsulinReading]) -> tuple[float, float]:
    """Average basal (a sampled rate) and summed bolus (discrete doses)."""

    basal = [reading.dose for reading in readings if reading.insulin_type == InsulinType.BASAL]
    bolus = [reading.dose for reading in readings if reading.insulin_type == InsulinType.BOLUS]
    basal_rate = float(np.mean(basal)) if basal else 0.0
    return basal_rate, float(sum(bolus))


def prepare_insulin_timeline_data(readings: Sequence[InsulinReading], day: date) -> list[InsulinTimelinePoint]:
    """Hourly basal rate and bolus total for one calendar date."""

    by_hour: dict[int, list[InsulinReading]] = defaultdict(list)
    for reading in readings:
        if reading.timestamp.date() == day:
            by_hour[reading.timestamp.hour].append(reading)

    points: list[InsulinTimelinePoint] = []
    for hour in range(24):
        basal_rate, bolus_total = _basal_and_bolus(by_hour.get(hour, []))
        points.append(
            InsulinTimelinePoint(
                hour=hour,
                time_label=f"{hour:02d}:00",
                basal_rate=round_half_up(basal_rate, 2),
                bolus_total=round_half_up(bolus_total, 1),
            )
        )
    return points


def prepare_hourly_iob_data(
    readings: Sequence[InsulinReading],
    day: date,
    duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS,
    *,
    tz: tzinfo | None = None,
) -> list[HourlyIOBPoint]:
    """Per-hour insulin delivered and IOB at the start of each hour of ``day``.

    Pass ``tz`` when the readings carry timezone-aware timestamps.
    """

    _require_positive_duration(duration_hours)
    points: list[HourlyIOBPoint] = []
    for hour in range(24):
        hour_start = datetime.combine(day, time(hour), tzinfo=tz)
        hour_end = hour_start + timedelta(hours=1)
        in_hour = [reading for reading in readings if hour_start <= reading.timestamp < hour_end]
        basal, bolus = _basal_and_bolus(in_hour)
        points.append(
            HourlyIOBPoint(
                hour=hour,
                time_label=f"{hour:02d}:00",
                basal_in_hour=round_half_up(basal, 1),
                bolus_in_hour=round_half_up(bolus, 1),
                active_iob=calculate_iob(readings, hour_start, duration_hours),
            )
        )
    return points


def calculate_daily_iob(
    readings: Sequence[InsulinReading],
    day: date,
    duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS,
    interval_minutes: int = 15,
    *,
    tz: tzinfo | None = None,
    model: IOBModel = IOBModel.LINEAR,
) -> list[IOBDataPoint]:
    """IOB curve for ``day`` sampled every ``interval_minutes``, 00:00 through 24:00."""

    _require_positive_duration(duration_hours)
    if interval_minutes <= 0:
        raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")

    start_of_day = datetime.combine(day, time.min, tzinfo=tz)
    lookback_start = start_of_day - timedelta(hours=duration_hours)
    end_of_day = start_of_day + timedelta(days=1)
    relevant = [reading for reading in readings if lookback_start <= reading.timestamp <= end_of_day]

    points: list[IOBDataPoint] = []
    for step in range((24 * 60) // interval_minutes + 1):
        current = start_of_day + timedelta(minutes=step * interval_minutes)
        breakdown = calculate_iob_breakdown(relevant, current, duration_hours, model)
        points.append(
            IOBDataPoint(
                time=current,
                time_label=current.strftime("%H:%M"),
                basal_iob=breakdown.basal_iob,
                bolus_iob=breakdown.bolus_iob,
                total_iob=breakdown.total_iob,
            )
        )
    return points
