"""Clinical glycemic metrics.

Every function takes a plain sequence of :class:`GlucoseReading` values in
mmol/L and returns ``None`` (never NaN) when there are too few readings for
the metric. Functions are independent of each other and keep no state.

References:

* eA1c (ADA / Nathan 2008): ``HbA1c % = (mean mmol/L + 2.59) / 1.59``
* IFCC conversion: ``mmol/mol = (HbA1c % - 2.15) * 10.929``
* LBGI/HBGI (Kovatchev): ``f(BG) = 1.509 * (ln(BG mg/dL) ** 1.084 - 5.381)``,
  risk ``10 * f(BG) ** 2`` split by the sign of ``f``
* J-Index (Wojcicki 1995): ``0.001 * (mean + SD) ** 2`` in mg/dL
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from .constants import (
    BEDTIME_HOURS,
    MMOL_TO_MGDL,
    UNICORN_100_MGDL_IN_MMOL,
    UNICORN_MMOL,
    UNICORN_TOLERANCE_100_MGDL,
    UNICORN_TOLERANCE_MMOL,
    WAKEUP_HOURS,
)
from .frames import glucose_values, sorted_by_time
from .models import (
    BGRIResult,
    FluxGrade,
    FluxResult,
    GlucoseCategory,
    GlucoseReading,
    GlucoseThresholds,
    HighLowIncidents,
    QuartileStats,
    RangeCategoryMode,
)
from .ranges import categorize_glucose

logger = logging.getLogger(__name__)

# Upper CV% bound for each grade, checked in order.
FLUX_BREAKPOINTS: tuple[tuple[float, FluxGrade, str], ...] = (
    (20.0, FluxGrade.A_PLUS, "Extremely steady glucose values"),
    (26.0, FluxGrade.A, "Very steady glucose values"),
    (33.0, FluxGrade.B, "Reasonably steady glucose values"),
    (40.0, FluxGrade.C, "Moderate glucose variability"),
    (50.0, FluxGrade.D, "High glucose variability"),
)
_FLUX_FALLBACK = (FluxGrade.F, "Very high glucose variability")


def calculate_average_glucose(readings: Sequence[GlucoseReading]) -> Optional[float]:
    if not readings:
        return None
    return float(np.mean(glucose_values(readings)))


def calculate_median_glucose(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Middle value; the mean of the two middle values for an even count."""

    if not readings:
        return None
    return float(np.median(glucose_values(readings)))


def _sample_sd(values: np.ndarray) -> float:
    # Identical values must give exactly 0, not a rounding residue.
    if np.ptp(values) == 0:
        return 0.0
    return float(np.std(values, ddof=1))


def calculate_standard_deviation(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Sample standard deviation (n - 1); ``None`` for fewer than two readings."""

    if len(readings) < 2:
        return None
    return _sample_sd(glucose_values(readings))


def calculate_cv(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Coefficient of variation, ``SD / mean * 100``.

    36% or lower is considered stable control (see ``CV_TARGET_THRESHOLD``).
    Returns ``None`` for fewer than two readings or a zero mean.
    """

    if len(readings) < 2:
        return None
    values = glucose_values(readings)
    mean = float(np.mean(values))
    if mean == 0:
        return None
    return _sample_sd(values) / mean * 100


def calculate_estimated_hba1c(average_glucose_mmol: float) -> float:
    """Estimated HbA1c (% NGSP) from mean glucose in mmol/L."""

    return (average_glucose_mmol + 2.59) / 1.59


def convert_hba1c_to_mmol_mol(hba1c_percent: float) -> float:
    """Convert HbA1c from % (NGSP) to mmol/mol (IFCC)."""

    return (hba1c_percent - 2.15) * 10.929


def calculate_days_with_data(readings: Sequence[GlucoseReading]) -> int:
    return len({reading.timestamp.date() for reading in readings})


def calculate_percentile(sorted_values: Sequence[float] | np.ndarray, percentile: float) -> float:
    """Linear-interpolated percentile (0-100) of already sorted values; 0 when empty."""

    values = np.asarray(sorted_values, dtype=float)
    if values.size == 0:
        return 0.0
    index = percentile / 100 * (values.size - 1)
    lower = int(np.floor(index))
    upper = int(np.ceil(index))
    if lower == upper:
        return float(values[lower])
    return float(values[lower] + (values[upper] - values[lower]) * (index - lower))


def calculate_quartiles(readings: Sequence[GlucoseReading]) -> Optional[QuartileStats]:
    if not readings:
        return None
    values = np.sort(glucose_values(readings))
    return QuartileStats(
        q25=calculate_percentile(values, 25),
        q50=calculate_percentile(values, 50),
        q75=calculate_percentile(values, 75),
        min=float(values[0]),
        max=float(values[-1]),
    )


def calculate_bgri(readings: Sequence[GlucoseReading]) -> Optional[BGRIResult]:
    """Low, high and combined blood glucose risk indices.

    Readings that cannot go through the log transform are skipped; the result
    is ``None`` only when no usable reading is left.
    """

    if not readings:
        return None

    mgdl = glucose_values(readings) * MMOL_TO_MGDL
    positive = mgdl[mgdl > 0]
    with np.errstate(invalid="ignore"):
        risk = (np.power(np.log(positive), 1.084) - 5.381) * 1.509
    risk = risk[np.isfinite(risk)]

    skipped = len(readings) - risk.size
    if skipped:
        logger.debug("Skipped %d reading(s) with no valid risk value", skipped)
    if risk.size == 0:
        return None

    weighted = 10 * np.square(risk)
    lbgi = float(np.sum(weighted[risk < 0]) / risk.size)
    hbgi = float(np.sum(weighted[risk >= 0]) / risk.size)
    return BGRIResult(lbgi=lbgi, hbgi=hbgi, bgri=lbgi + hbgi)


def calculate_lbgi(readings: Sequence[GlucoseReading]) -> Optional[float]:
    result = calculate_bgri(readings)
    return result.lbgi if result is not None else None


def calculate_hbgi(readings: Sequence[GlucoseReading]) -> Optional[float]:
    result = calculate_bgri(readings)
    return result.hbgi if result is not None else None


def calculate_j_index(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """J-Index from mean and sample SD in mg/dL.

    Returns ``None`` for fewer than two readings or a zero mean.
    """

    if len(readings) < 2:
        return None
    values = glucose_values(readings)
    mean = float(np.mean(values))
    if mean == 0:
        return None
    mean_mgdl = mean * MMOL_TO_MGDL
    sd_mgdl = _sample_sd(values) * MMOL_TO_MGDL
    return 0.001 * (mean_mgdl + sd_mgdl) ** 2


def count_high_low_incidents(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
) -> HighLowIncidents:
    """Count entries into each out-of-range bucket, in time order.

    Staying in a bucket counts once, at entry. Stepping down from very high to
    high (or up from very low to low) is not a new incident. The first reading
    has nothing to transition from and is never counted.
    """

    high = low = very_high = very_low = 0
    previous: GlucoseCategory | None = None
    for reading in sorted_by_time(readings):
        current = categorize_glucose(reading.value, thresholds, RangeCategoryMode.FIVE)
        if previous is not None and current != previous:
            if current == GlucoseCategory.HIGH and previous != GlucoseCategory.VERY_HIGH:
                high += 1
            elif current == GlucoseCategory.VERY_HIGH:
                very_high += 1
            elif current == GlucoseCategory.LOW and previous != GlucoseCategory.VERY_LOW:
                low += 1
            elif current == GlucoseCategory.VERY_LOW:
                very_low += 1
        previous = current

    return HighLowIncidents(
        high_count=high,
        low_count=low,
        very_high_count=very_high,
        very_low_count=very_low,
    )


def count_unicorns(readings: Sequence[GlucoseReading]) -> int:
    """Count readings landing on 5.0 mmol/L or on 100 mg/dL."""

    values = glucose_values(readings)
    on_mmol = np.abs(values - UNICORN_MMOL) < UNICORN_TOLERANCE_MMOL
    on_mgdl = np.abs(values - UNICORN_100_MGDL_IN_MMOL) < UNICORN_TOLERANCE_100_MGDL
    return int(np.sum(on_mmol | on_mgdl))


def flux_grade_for_cv(cv: float) -> tuple[FluxGrade, str]:
    """Grade and description for a CV%; each breakpoint is inclusive."""

    for upper, grade, description in FLUX_BREAKPOINTS:
        if cv <= upper:
            return grade, description
    return _FLUX_FALLBACK


def calculate_flux(readings: Sequence[GlucoseReading]) -> Optional[FluxResult]:
    """Letter grade for glucose steadiness, derived from CV%."""

    cv = calculate_cv(readings)
    if cv is None:
        return None
    grade, description = flux_grade_for_cv(cv)
    return FluxResult(grade=grade, score=cv, description=description)


def _average_in_hours(readings: Sequence[GlucoseReading], start_hour: int, end_hour: int) -> Optional[float]:
    window = [reading.value for reading in readings if start_hour <= reading.timestamp.hour < end_hour]
    if not window:
        return None
    return float(np.mean(window))


def calculate_wakeup_average(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Mean of readings taken between 06:00 and 09:00 local time."""

    return _average_in_hours(readings, *WAKEUP_HOURS)


def calculate_bedtime_average(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Mean of readings taken between 21:00 and midnight local time."""

    return _average_in_hours(readings, *BEDTIME_HOURS)
