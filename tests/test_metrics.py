from __future__ import annotations

import math
from datetime import datetime, timedelta
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from glycemic_metrics.constants import MMOL_TO_MGDL
from glycemic_metrics.metrics import (
    calculate_average_glucose,
    calculate_bedtime_average,
    calculate_bgri,
    calculate_cv,
    calculate_days_with_data,
    calculate_estimated_hba1c,
    calculate_flux,
    calculate_hbgi,
    calculate_j_index,
    calculate_lbgi,
    calculate_median_glucose,
    calculate_percentile,
    calculate_quartiles,
    calculate_standard_deviation,
    calculate_wakeup_average,
    convert_hba1c_to_mmol_mol,
    count_high_low_incidents,
    count_unicorns,
    flux_grade_for_cv,
)
from glycemic_metrics.models import FluxGrade, GlucoseReading, GlucoseThresholds, HighLowIncidents

THRESHOLDS = GlucoseThresholds()


def _readings(values: list[float], start: datetime = datetime(2024, 1, 1, 12, 0)) -> list[GlucoseReading]:
    return [GlucoseReading(timestamp=start + timedelta(minutes=5 * idx), value=value) for idx, value in enumerate(values)]


def _at(hour: int, minute: int, value: float) -> GlucoseReading:
    return GlucoseReading(timestamp=datetime(2024, 1, 1, hour, minute), value=value)


def test_empty_input_returns_none():
    assert calculate_average_glucose([]) is None
    assert calculate_median_glucose([]) is None
    assert calculate_quartiles([]) is None
    assert calculate_bgri([]) is None
    assert calculate_flux([]) is None


def test_single_reading_has_no_spread_metrics():
    readings = _readings([6.0])

    assert calculate_standard_deviation(readings) is None
    assert calculate_cv(readings) is None
    assert calculate_j_index(readings) is None
    assert calculate_average_glucose(readings) == 6.0


def test_median_averages_the_middle_pair():
    assert calculate_median_glucose(_readings([10.0, 4.0, 8.0, 6.0])) == pytest.approx(7.0)
    assert calculate_median_glucose(_readings([9.0, 4.0, 6.0])) == pytest.approx(6.0)


def test_standard_deviation_is_sample_sd_and_exactly_zero_when_flat():
    assert calculate_standard_deviation(_readings([4.0, 6.0])) == pytest.approx(math.sqrt(2))
    assert calculate_standard_deviation(_readings([7.3, 7.3, 7.3])) == 0.0


def test_cv_of_two_readings():
    assert calculate_cv(_readings([4.0, 6.0])) == pytest.approx(28.28, abs=0.01)


def test_cv_none_for_zero_mean():
    assert calculate_cv(_readings([0.0, 0.0])) is None


def test_estimated_hba1c_and_ifcc_conversion():
    assert calculate_estimated_hba1c(5.4) == pytest.approx(5.03, abs=0.01)
    assert convert_hba1c_to_mmol_mol(7.0) == pytest.approx(53.0, abs=0.01)


def test_days_with_data_counts_distinct_dates():
    readings = [_at(1, 0, 5.0), _at(23, 0, 5.0), GlucoseReading(datetime(2024, 1, 3, 8, 0), 5.0)]

    assert calculate_days_with_data(readings) == 2
    assert calculate_days_with_data([]) == 0


def test_quartiles_interpolate_linearly():
    quartiles = calculate_quartiles(_readings([8.0, 4.0, 6.0, 5.0, 7.0]))

    assert quartiles is not None
    assert (quartiles.q25, quartiles.q50, quartiles.q75) == pytest.approx((5.0, 6.0, 7.0))
    assert (quartiles.min, quartiles.max) == (4.0, 8.0)


def test_percentile_helpers():
    assert calculate_percentile([], 50) == 0.0
    assert calculate_percentile([4.0, 5.0, 6.0, 7.0, 8.0], 10) == pytest.approx(4.4)
    assert calculate_percentile([3.0], 90) == 3.0


def test_bgri_is_sum_of_lbgi_and_hbgi():
    readings = _readings([3.0, 5.5, 15.0, 8.0])

    result = calculate_bgri(readings)

    assert result is not None
    assert result.lbgi > 0
    assert result.hbgi > 0
    assert result.bgri == pytest.approx(result.lbgi + result.hbgi)
    assert calculate_lbgi(readings) == pytest.approx(result.lbgi)
    assert calculate_hbgi(readings) == pytest.approx(result.hbgi)


def test_bgri_skips_non_positive_readings():
    with_invalid = calculate_bgri(_readings([0.0, -1.0, 5.5, 15.0]))
    valid_only = calculate_bgri(_readings([5.5, 15.0]))

    assert with_invalid == valid_only
    assert calculate_bgri(_readings([0.0, -2.0])) is None


def test_j_index_uses_mg_dl_mean_and_sd():
    expected = 0.001 * ((5.0 + math.sqrt(2)) * MMOL_TO_MGDL) ** 2

    assert calculate_j_index(_readings([4.0, 6.0])) == pytest.approx(expected)


def test_j_index_is_none_for_zero_mean():
    assert calculate_j_index(_readings([-1.0, 1.0])) is None


def test_incidents_count_entries_not_readings():
    readings = _readings([6.0, 11.0, 11.5, 12.0, 11.2, 11.8])

    assert count_high_low_incidents(readings, THRESHOLDS) == HighLowIncidents(high_count=1)


def test_incidents_repeated_entries_and_step_downs():
    readings = _readings([6.0, 11.0, 6.0, 11.0, 14.5, 11.0, 6.0, 3.5, 2.5, 3.5])

    incidents = count_high_low_incidents(readings, THRESHOLDS)

    assert incidents == HighLowIncidents(high_count=2, low_count=1, very_high_count=1, very_low_count=1)


def test_very_high_followed_by_low_counts_only_the_low():
    readings = _readings([6.0, 14.5, 3.5])

    incidents = count_high_low_incidents(readings, THRESHOLDS)

    assert incidents == HighLowIncidents(low_count=1, very_high_count=1)


def test_first_reading_is_never_an_incident():
    assert count_high_low_incidents(_readings([2.5, 2.4]), THRESHOLDS) == HighLowIncidents()


def test_incidents_follow_time_order():
    readings = _readings([6.0, 11.0])
    readings.reverse()

    assert count_high_low_incidents(readings, THRESHOLDS) == HighLowIncidents(high_count=1)


def test_unicorns_match_either_target():
    assert count_unicorns(_readings([5.0, 5.55, 5.6])) == 2
    assert count_unicorns(_readings([5.04, 4.9, 6.0])) == 1
    assert count_unicorns([]) == 0


def test_flux_grades():
    steady = calculate_flux(_readings([6.0, 6.0, 6.0]))
    moderate = calculate_flux(_readings([4.0, 6.0]))
    wild = calculate_flux(_readings([2.0, 20.0]))

    assert steady is not None and steady.grade is FluxGrade.A_PLUS
    assert steady.score == 0.0
    assert moderate is not None and moderate.grade is FluxGrade.B
    assert wild is not None and wild.grade is FluxGrade.F


@pytest.mark.parametrize(
    ("values", "grade"),
    [
        ([8.4, 11.6], FluxGrade.A),
        ([7.4, 12.6], FluxGrade.C),
        ([6.8, 13.2], FluxGrade.D),
    ],
)
def test_flux_grades_between_breakpoints(values, grade):
    result = calculate_flux(_readings(values))

    assert result is not None and result.grade is grade


@pytest.mark.parametrize(
    ("cv", "grade"),
    [
        (20.0, FluxGrade.A_PLUS),
        (20.01, FluxGrade.A),
        (26.0, FluxGrade.A),
        (26.01, FluxGrade.B),
        (33.0, FluxGrade.B),
        (33.01, FluxGrade.C),
        (40.0, FluxGrade.C),
        (40.01, FluxGrade.D),
        (50.0, FluxGrade.D),
        (50.01, FluxGrade.F),
    ],
)
def test_flux_breakpoints_are_inclusive(cv, grade):
    assert flux_grade_for_cv(cv)[0] is grade


def test_wakeup_and_bedtime_windows():
    readings = [
        _at(5, 59, 50.0),
        _at(6, 0, 5.0),
        _at(8, 59, 7.0),
        _at(9, 0, 50.0),
        _at(20, 59, 50.0),
        _at(21, 0, 8.0),
        _at(23, 59, 10.0),
    ]

    assert calculate_wakeup_average(readings) == pytest.approx(6.0)
    assert calculate_bedtime_average(readings) == pytest.approx(9.0)
    assert calculate_wakeup_average([_at(12, 0, 5.0)]) is None
