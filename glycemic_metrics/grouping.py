"""Partition readings by calendar date, weekday and Monday-anchored week."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Final, Sequence

from .frames import readings_frame
from .models import (
    DailyReport,
    DayOfWeekReport,
    GlucoseReading,
    GlucoseThresholds,
    RangeCategoryMode,
    WeeklyReport,
)
from .ranges import range_stats_from_values

WEEKDAY_NAMES: Final[tuple[str, ...]] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
WORKDAY: Final[str] = "Workday"
WEEKEND: Final[str] = "Weekend"

_MONTH_ABBREVIATIONS: Final[tuple[str, ...]] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def get_day_of_week(value: date | datetime) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def is_workday(day: str) -> bool:
    return day in WEEKDAY_NAMES[:5]


def get_week_start(value: date | datetime) -> date:
    """Return the Monday of the week containing ``value``."""

    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=value.weekday())


def get_week_end(value: date | datetime) -> date:
    """Return the Sunday of the week containing ``value``."""

    return get_week_start(value) + timedelta(days=6)


def format_week_range(start: date, end: date) -> str:
    """Format a week as ``"Oct 6-12"`` or ``"Sep 29-Oct 5"`` across months."""

    start_month = _MONTH_ABBREVIATIONS[start.month - 1]
    if start.month == end.month:
        return f"{start_month} {start.day}-{end.day}"
    end_month = _MONTH_ABBREVIATIONS[end.month - 1]
    return f"{start_month} {start.day}-{end_month} {end.day}"


def group_by_date(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
) -> list[DailyReport]:
    """Return one report per calendar date, oldest first."""

    frame = readings_frame(readings)
    if frame.empty:
        return []
    return [
        DailyReport(date=day, stats=range_stats_from_values(group["value"].to_numpy(), thresholds, mode))
        for day, group in frame.groupby("date", sort=True)
    ]


def group_by_day_of_week(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
) -> list[DayOfWeekReport]:
    """Return Monday..Sunday reports followed by the Workday and Weekend unions.

    The seven weekday reports are always present, empty days included. The
    two unions overlap the weekday partitions and must not be summed with them.
    """

    frame = readings_frame(readings)
    values = frame["value"].to_numpy(dtype=float)
    weekdays = frame["weekday"].to_numpy(dtype=int)

    reports = [
        DayOfWeekReport(day=name, stats=range_stats_from_values(values[weekdays == index], thresholds, mode))
        for index, name in enumerate(WEEKDAY_NAMES)
    ]
    reports.append(
        DayOfWeekReport(day=WORKDAY, stats=range_stats_from_values(values[weekdays < 5], thresholds, mode))
    )
    reports.append(
        DayOfWeekReport(day=WEEKEND, stats=range_stats_from_values(values[weekdays >= 5], thresholds, mode))
    )
    return reports


def group_by_week(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = RangeCategoryMode.THREE,
) -> list[WeeklyReport]:
    """Return one report per Monday-anchored week, oldest first."""

    frame = readings_frame(readings)
    if frame.empty:
        return []
    frame["week_start"] = frame["date"].map(get_week_start)

    reports: list[WeeklyReport] = []
    for week_start, group in frame.groupby("week_start", sort=True):
        week_end = week_start + timedelta(days=6)
        reports.append(
            WeeklyReport(
                week_label=format_week_range(week_start, week_end),
                week_start=week_start,
                week_end=week_end,
                stats=range_stats_from_values(group["value"].to_numpy(), thresholds, mode),
            )
        )
    return reports


def get_unique_dates(readings: Sequence[GlucoseReading]) -> list[date]:
    """Return the distinct calendar dates present, oldest first."""

    return sorted({reading.timestamp.date() for reading in readings})


def filter_readings_by_date(readings: Sequence[GlucoseReading], day: date) -> list[GlucoseReading]:
    return [reading for reading in readings if reading.timestamp.date() == day]


def filter_readings_to_last_n_days(
    readings: Sequence[GlucoseReading],
    days: int,
    reference: datetime | None = None,
) -> list[GlucoseReading]:
    """Keep readings from midnight ``days`` days before the reference through the end of its day.

    The reference defaults to the latest reading timestamp.
    """

    if not readings:
        return []
    if reference is None:
        reference = max(reading.timestamp for reading in readings)

    start = datetime.combine(reference.date() - timedelta(days=days), time.min, tzinfo=reference.tzinfo)
    end = datetime.combine(reference.date(), time.max, tzinfo=reference.tzinfo)
    return [reading for reading in readings if start <= reading.timestamp <= end]

