"""Core value types for glycemic metric computations."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Mapping, Optional, Sequence, Union


class RangeCategoryMode(IntEnum):
    """Number of range buckets a reading can fall into."""

    THREE = 3
    FIVE = 5


class GlucoseCategory(str, Enum):
    """Range bucket for a single glucose reading."""

    VERY_LOW = "veryLow"
    LOW = "low"
    IN_RANGE = "inRange"
    HIGH = "high"
    VERY_HIGH = "veryHigh"


class InsulinType(str, Enum):
    BASAL = "basal"
    BOLUS = "bolus"


class IOBModel(str, Enum):
    """Insulin action curve used for insulin-on-board."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class GlucoseReading:
    """A single glucose sample; value is always mmol/L."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class InsulinReading:
    """A basal or bolus insulin delivery event."""

    timestamp: datetime
    dose: float
    insulin_type: InsulinType


@dataclass(frozen=True)
class GlucoseThresholds:
    """Range boundaries in mmol/L.

    Callers are expected to supply ``very_low < low <= high < very_high``; the
    computation functions do not re-check the ordering.
    """

    very_low: float = 3.0
    low: float = 3.9
    high: float = 10.0
    very_high: float = 13.9


@dataclass(frozen=True)
class ThreeCategoryStats:
    """Reading counts for low / in range / high."""

    low: int
    in_range: int
    high: int
    total: int

    mode = RangeCategoryMode.THREE

    def counts(self) -> Mapping[GlucoseCategory, int]:
        return {
            GlucoseCategory.LOW: self.low,
            GlucoseCategory.IN_RANGE: self.in_range,
            GlucoseCategory.HIGH: self.high,
        }

    def count(self, category: GlucoseCategory) -> int:
        return self.counts()[category]


@dataclass(frozen=True)
class FiveCategoryStats:
    """Reading counts including the very low and very high buckets."""

    very_low: int
    low: int
    in_range: int
    high: int
    very_high: int
    total: int

    mode = RangeCategoryMode.FIVE

    def counts(self) -> Mapping[GlucoseCategory, int]:
        return {
            GlucoseCategory.VERY_LOW: self.very_low,
            GlucoseCategory.LOW: self.low,
            GlucoseCategory.IN_RANGE: self.in_range,
            GlucoseCategory.HIGH: self.high,
            GlucoseCategory.VERY_HIGH: self.very_high,
        }

    def count(self, category: GlucoseCategory) -> int:
        return self.counts()[category]


GlucoseRangeStats = Union[ThreeCategoryStats, FiveCategoryStats]


@dataclass(frozen=True)
class DailyReport:
    date: date
    stats: GlucoseRangeStats


@dataclass(frozen=True)
class WeeklyReport:
    week_label: str
    week_start: date
    week_end: date
    stats: GlucoseRangeStats


@dataclass(frozen=True)
class DayOfWeekReport:
    """Stats for a weekday name, or for the synthetic Workday/Weekend unions."""

    day: str
    stats: GlucoseRangeStats


@dataclass(frozen=True)
class TimePeriodTIRStats:
    period: str
    days: int
    stats: GlucoseRangeStats


@dataclass(frozen=True)
class HourlyTIRStats:
    hour: int
    hour_label: str
    stats: GlucoseRangeStats


@dataclass(frozen=True)
class QuartileStats:
    q25: float
    q50: float
    q75: float
    min: float
    max: float


@dataclass(frozen=True)
class BGRIResult:
    """Kovatchev risk indices; ``bgri`` is always ``lbgi + hbgi``."""

    lbgi: float
    hbgi: float
    bgri: float


class FluxGrade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


@dataclass(frozen=True)
class FluxResult:
    grade: FluxGrade
    score: float
    description: str


@dataclass(frozen=True)
class HighLowIncidents:
    """Number of entries into each out-of-range bucket."""

    high_count: int = 0
    low_count: int = 0
    very_high_count: int = 0
    very_low_count: int = 0


@dataclass(frozen=True)
class DailyInsulinSummary:
    date: date
    basal_total: float
    bolus_total: float
    total_insulin: float


@dataclass(frozen=True)
class InsulinTimelinePoint:
    hour: int
    time_label: str
    basal_rate: float
    bolus_total: float


@dataclass(frozen=True)
class HourlyIOBPoint:
    hour: int
    time_label: str
    basal_in_hour: float
    bolus_in_hour: float
    active_iob: float


@dataclass(frozen=True)
class IOBBreakdown:
    basal_iob: float
    bolus_iob: float
    total_iob: float


@dataclass(frozen=True)
class IOBDataPoint:
    time: datetime
    time_label: str
    basal_iob: float
    bolus_iob: float
    total_iob: float


@dataclass(frozen=True)
class HypoPeriod:
    """A detected hypoglycaemia episode."""

    start_time: datetime
    end_time: datetime
    duration_minutes: float
    nadir: float
    nadir_time: datetime
    is_severe: bool
    nadir_index: int
    nadir_time_decimal: float


@dataclass(frozen=True)
class HypoStats:
    severe_count: int
    non_severe_count: int
    total_count: int
    lowest_value: Optional[float]
    longest_duration_minutes: float
    total_duration_minutes: float
    hypo_periods: Sequence[HypoPeriod] = ()


class RoCCategory(str, Enum):
    GOOD = "good"
    MEDIUM = "medium"
    BAD = "bad"


@dataclass(frozen=True)
class RoCDataPoint:
    timestamp: datetime
    time_decimal: float
    time_label: str
    roc: float
    roc_raw: float
    glucose_value: float
    category: RoCCategory


@dataclass(frozen=True)
class RoCStats:
    min_roc: float = 0.0
    max_roc: float = 0.0
    sd_roc: float = 0.0
    good_percentage: float = 0.0
    medium_percentage: float = 0.0
    bad_percentage: float = 0.0
    good_count: int = 0
    medium_count: int = 0
    bad_count: int = 0
    total_count: int = 0


@dataclass(frozen=True)
class AGPTimeSlotStats:
    """Percentile band for one five-minute slot of the day."""

    time_slot: str
    lowest: float
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    highest: float
    count: int
