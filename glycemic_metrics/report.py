"""Assemble every glycemic metric for one reading set into a single report."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from .agp import calculate_agp_stats
from .constants import CV_TARGET_THRESHOLD, MIN_DAYS_FOR_RELIABLE_HBA1C
from .frames import localize_readings, localize_timestamp
from .grouping import group_by_date, group_by_day_of_week, group_by_week
from .hypos import calculate_hypo_stats
from .insulin import aggregate_insulin_by_date
from .metrics import (
    calculate_average_glucose,
    calculate_bedtime_average,
    calculate_bgri,
    calculate_cv,
    calculate_days_with_data,
    calculate_estimated_hba1c,
    calculate_flux,
    calculate_j_index,
    calculate_median_glucose,
    calculate_quartiles,
    calculate_standard_deviation,
    calculate_wakeup_average,
    convert_hba1c_to_mmol_mol,
    count_high_low_incidents,
    count_unicorns,
)
from .models import (
    AGPTimeSlotStats,
    BGRIResult,
    DailyInsulinSummary,
    DailyReport,
    DayOfWeekReport,
    FiveCategoryStats,
    FluxResult,
    GlucoseRangeStats,
    GlucoseReading,
    HighLowIncidents,
    HourlyTIRStats,
    HypoStats,
    InsulinReading,
    QuartileStats,
    RoCStats,
    ThreeCategoryStats,
    TimePeriodTIRStats,
    WeeklyReport,
)
from .ranges import calculate_glucose_range_stats, calculate_percentage, convert_percentage_to_time
from .roc import calculate_roc, calculate_roc_stats
from .settings import AnalysisSettings
from .tir import calculate_hourly_tir_grouped, calculate_tir_by_time_periods

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlucoseReport:
    """Everything derived from one reading set under one set of settings."""

    settings: AnalysisSettings
    reading_count: int
    first_reading: Optional[datetime]
    last_reading: Optional[datetime]
    days_with_data: int
    range_stats: GlucoseRangeStats
    range_percentages: Mapping[str, float]
    range_durations: Mapping[str, str]
    daily: Sequence[DailyReport]
    weekly: Sequence[WeeklyReport]
    day_of_week: Sequence[DayOfWeekReport]
    tir_periods: Sequence[TimePeriodTIRStats]
    hourly: Sequence[HourlyTIRStats]
    average_glucose: Optional[float]
    median_glucose: Optional[float]
    standard_deviation: Optional[float]
    cv: Optional[float]
    cv_within_target: Optional[bool]
    estimated_hba1c: Optional[float]
    estimated_hba1c_mmol_mol: Optional[float]
    hba1c_reliable: bool
    quartiles: Optional[QuartileStats]
    bgri: Optional[BGRIResult]
    j_index: Optional[float]
    flux: Optional[FluxResult]
    unicorns: int
    incidents: HighLowIncidents
    wakeup_average: Optional[float]
    bedtime_average: Optional[float]
    hypos: HypoStats
    rate_of_change: RoCStats
    agp: Sequence[AGPTimeSlotStats] = field(default_factory=list)
    insulin: Sequence[DailyInsulinSummary] = field(default_factory=list)


def build_glucose_report(
    readings: Sequence[GlucoseReading],
    settings: AnalysisSettings | None = None,
    insulin_readings: Sequence[InsulinReading] = (),
    reference: datetime | None = None,
) -> GlucoseReport:
    """Compute the full report from scratch.

    Timestamps are first converted to ``settings.local_timezone`` when one is
    configured, so every calendar key is the wearer's local date and hour.
    ``reference`` anchors the trailing TIR windows and defaults to the latest
    reading. It is moved into the same timezone as the readings; a naive
    reference is read as local wall-clock time.
    """

    settings = settings or AnalysisSettings()
    readings = localize_readings(readings, settings.local_timezone)
    insulin_readings = localize_readings(insulin_readings, settings.local_timezone)
    if reference is not None and settings.local_timezone is not None:
        reference = localize_timestamp(reference, settings.local_timezone)
        if readings and readings[0].timestamp.tzinfo is None:
            reference = reference.replace(tzinfo=None)
    if not readings:
        logger.debug("Building report from an empty reading set")

    thresholds = settings.thresholds
    mode = settings.mode

    range_stats = calculate_glucose_range_stats(readings, thresholds, mode)
    counts = range_stats.counts()
    average = calculate_average_glucose(readings)
    cv = calculate_cv(readings)
    estimated_hba1c = calculate_estimated_hba1c(average) if average is not None else None
    days_with_data = calculate_days_with_data(readings)
    timestamps = [reading.timestamp for reading in readings]

    return GlucoseReport(
        settings=settings,
        reading_count=len(readings),
        first_reading=min(timestamps, default=None),
        last_reading=max(timestamps, default=None),
        days_with_data=days_with_data,
        range_stats=range_stats,
        range_percentages={
            category.value: calculate_percentage(count, range_stats.total) for category, count in counts.items()
        },
        range_durations={
            category.value: convert_percentage_to_time(range_stats.total, count) for category, count in counts.items()
        },
        daily=group_by_date(readings, thresholds, mode),
        weekly=group_by_week(readings, thresholds, mode),
        day_of_week=group_by_day_of_week(readings, thresholds, mode),
        tir_periods=calculate_tir_by_time_periods(readings, thresholds, mode, reference, settings.tir_periods),
        hourly=calculate_hourly_tir_grouped(readings, thresholds, mode, settings.hour_group_size),
        average_glucose=average,
        median_glucose=calculate_median_glucose(readings),
        standard_deviation=calculate_standard_deviation(readings),
        cv=cv,
        cv_within_target=cv <= CV_TARGET_THRESHOLD if cv is not None else None,
        estimated_hba1c=estimated_hba1c,
        estimated_hba1c_mmol_mol=(
            convert_hba1c_to_mmol_mol(estimated_hba1c) if estimated_hba1c is not None else None
        ),
        hba1c_reliable=days_with_data >= MIN_DAYS_FOR_RELIABLE_HBA1C,
        quartiles=calculate_quartiles(readings),
        bgri=calculate_bgri(readings),
        j_index=calculate_j_index(readings),
        flux=calculate_flux(readings),
        unicorns=count_unicorns(readings),
        incidents=count_high_low_incidents(readings, thresholds),
        wakeup_average=calculate_wakeup_average(readings),
        bedtime_average=calculate_bedtime_average(readings),
        hypos=calculate_hypo_stats(readings, thresholds),
        rate_of_change=calculate_roc_stats(calculate_roc(readings)),
        agp=calculate_agp_stats(readings),
        insulin=aggregate_insulin_by_date(insulin_readings),
    )


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        data = {item.name: _to_jsonable(getattr(value, item.name)) for item in fields(value)}
        if isinstance(value, (ThreeCategoryStats, FiveCategoryStats)):
            data["mode"] = int(value.mode)
        return data
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(_to_jsonable(key)): _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


def report_to_dict(report: GlucoseReport) -> dict[str, Any]:
    """Return the report as plain JSON-serialisable data.

    Dates and datetimes become ISO-8601 strings and enums their values. Every
    range stats object, nested ones included, carries an extra ``mode`` key so
    consumers can tell the two shapes apart.
    """

    return _to_jsonable(report)
