"""Glycemic metrics computation library."""

from .models import (
    BGRIResult,
    DailyReport,
    FiveCategoryStats,
    FluxGrade,
    FluxResult,
    GlucoseCategory,
    GlucoseRangeStats,
    GlucoseReading,
    GlucoseThresholds,
    HighLowIncidents,
    InsulinReading,
    InsulinType,
    IOBModel,
    QuartileStats,
    RangeCategoryMode,
    ThreeCategoryStats,
)
from .ranges import calculate_glucose_range_stats, calculate_percentage, categorize_glucose
from .report import GlucoseReport, build_glucose_report, report_to_dict
from .settings import AnalysisSettings, SettingsError, load_settings

__all__ = [
    "AnalysisSettings",
    "BGRIResult",
    "DailyReport",
    "FiveCategoryStats",
    "FluxGrade",
    "FluxResult",
    "GlucoseCategory",
    "GlucoseRangeStats",
    "GlucoseReading",
    "GlucoseReport",
    "GlucoseThresholds",
    "HighLowIncidents",
    "InsulinReading",
    "InsulinType",
    "IOBModel",
    "QuartileStats",
    "RangeCategoryMode",
    "SettingsError",
    "ThreeCategoryStats",
    "build_glucose_report",
    "calculate_glucose_range_stats",
    "calculate_percentage",
    "categorize_glucose",
    "load_settings",
    "report_to_dict",
]
