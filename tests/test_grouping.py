from __future__ import annotations

from datetime import date, datetime, timedelta
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from glycemic_metrics.grouping import (
    WEEKDAY_NAMES,
    filter_readings_by_date,
    filter_readings_to_last_n_days,
    format_week_range,
    get_unique_dates,
    get_week_end,
    get_week_start,
    group_by_date,
    group_by_day_of_week,
    group_by_week,
    is_workday,
)
from glycemic_metrics.models import GlucoseReading, GlucoseThresholds

THRESHOLDS = GlucoseThresholds()


def _daily_readings(start: date, days: int, per_day: int = 4, value: float = 6.0) -> list[GlucoseReading]:
    readings: list[GlucoseReading] = []
    for offset in range(days):
        midnight = datetime.combine(start + timedelta(days=offset), datetime.min.time())
        for slot in range(per_day):
            readings.append(GlucoseReading(timestamp=midnight + timedelta(hours=6 * slot), value=value))
    return readings


def test_group_by_date_orders_dates_and_counts_each_reading():
    readings = _daily_readings(date(2024, 3, 1), 3)
    readings.reverse()

    reports = group_by_date(readings, THRESHOLDS)

    assert [report.date for report in reports] == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 3)]
    assert all(report.stats.total == 4 for report in reports)
    assert sum(report.stats.total for report in reports) == len(readings)


def test_group_by_date_empty():
    assert group_by_date([], THRESHOLDS) == []


def test_group_by_day_of_week_includes_workday_and_weekend_unions():
    # 2024-01-01 is a Monday; two full weeks of data.
    readings = _daily_readings(date(2024, 1, 1), 14, per_day=2)

    reports = group_by_day_of_week(readings, THRESHOLDS)

    assert [report.day for report in reports] == [*WEEKDAY_NAMES, "Workday", "Weekend"]
    by_day = {report.day: report.stats.total for report in reports}
    assert all(by_day[name] == 4 for name in WEEKDAY_NAMES)
    assert by_day["Workday"] == sum(by_day[name] for name in WEEKDAY_NAMES[:5])
    assert by_day["Weekend"] == by_day["Saturday"] + by_day["Sunday"]


def test_group_by_day_of_week_keeps_empty_days():
    readings = _daily_readings(date(2024, 1, 1), 1)

    reports = group_by_day_of_week(readings, THRESHOLDS)

    assert len(reports) == 9
    assert reports[1].stats.total == 0
    assert reports[-1].stats.total == 0


def test_group_by_week_single_iso_week_is_one_partition():
    readings = _daily_readings(date(2024, 1, 1), 7)

    reports = group_by_week(readings, THRESHOLDS)

    assert len(reports) == 1
    report = reports[0]
    assert report.week_start == date(2024, 1, 1)
    assert report.week_end == date(2024, 1, 7)
    assert report.week_label == "Jan 1-7"
    assert report.stats.total == len(readings)


def test_group_by_week_splits_on_monday_and_labels_month_change():
    readings = _daily_readings(date(2024, 1, 28), 3)

    reports = group_by_week(readings, THRESHOLDS)

    assert [report.week_start for report in reports] == [date(2024, 1, 22), date(2024, 1, 29)]
    assert reports[1].week_label == "Jan 29-Feb 4"
    assert [report.stats.total for report in reports] == [4, 8]


def test_week_helpers():
    wednesday = date(2024, 5, 15)

    assert get_week_start(wednesday) == date(2024, 5, 13)
    assert get_week_end(datetime(2024, 5, 15, 12)) == date(2024, 5, 19)
    assert format_week_range(date(2024, 9, 30), date(2024, 10, 6)) == "Sep 30-Oct 6"
    assert is_workday("Friday")
    assert not is_workday("Sunday")
    assert not is_workday("Weekend")


def test_unique_dates_and_filter_by_date():
    readings = _daily_readings(date(2024, 2, 28), 3)

    assert get_unique_dates(readings) == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
    assert len(filter_readings_by_date(readings, date(2024, 2, 29))) == 4


def test_filter_to_last_n_days_uses_midnight_boundary():
    reference = datetime(2024, 1, 10, 12, 0)
    readings = [
        GlucoseReading(timestamp=datetime(2024, 1, 6, 23, 59), value=5.0),
        GlucoseReading(timestamp=datetime(2024, 1, 7, 0, 0), value=5.0),
        GlucoseReading(timestamp=datetime(2024, 1, 10, 23, 0), value=5.0),
        GlucoseReading(timestamp=datetime(2024, 1, 11, 0, 0), value=5.0),
    ]

    kept = filter_readings_to_last_n_days(readings, 3, reference)

    assert [reading.timestamp for reading in kept] == [datetime(2024, 1, 7, 0, 0), datetime(2024, 1, 10, 23, 0)]


def test_grouping_leaves_input_untouched():
    readings = _daily_readings(date(2024, 1, 1), 2)
    snapshot = list(readings)

    group_by_date(readings, THRESHOLDS)
    group_by_week(readings, THRESHOLDS)
    group_by_day_of_week(readings, THRESHOLDS)

    assert readings == snapshot
