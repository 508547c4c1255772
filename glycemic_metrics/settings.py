"""Analysis settings and validation of the externally stored settings document.

The settings document uses the same camelCase keys as the user settings store::

    {
        "glucoseUnit": "mg/dL",
        "thresholds": {"veryLow": 54, "low": 70, "high": 180, "veryHigh": 250},
        "rangeCategoryMode": 5,
        "insulinDuration": 4,
        "timezone": "Europe/Berlin",
        "hourGroupSize": 2
    }

Every key is optional. Thresholds are converted to mmol/L here; the engine
only ever sees mmol/L.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, List, Literal, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .constants import DEFAULT_INSULIN_DURATION_HOURS, DEFAULT_TIR_PERIODS
from .models import GlucoseThresholds, RangeCategoryMode
from .units import GlucoseUnit, to_mmol

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR: Final[str] = "GLYCEMIC_METRICS_SETTINGS"


class SettingsError(ValueError):
    """Raised when a settings document cannot be read or is invalid."""


@dataclass(frozen=True)
class AnalysisSettings:
    """Resolved, validated inputs for a report run."""

    thresholds: GlucoseThresholds = field(default_factory=GlucoseThresholds)
    mode: RangeCategoryMode = RangeCategoryMode.THREE
    insulin_duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS
    local_timezone: Optional[str] = None
    tir_periods: tuple[int, ...] = DEFAULT_TIR_PERIODS
    hour_group_size: int = 1


class ThresholdPayload(BaseModel):
    """
    Range boundaries as stored, in the document's glucose unit.
    """
    model_config = ConfigDict(extra="ignore")

    veryLow: float = Field(gt=0, description="Very low boundary")
    low: float = Field(gt=0, description="Low boundary")
    high: float = Field(gt=0, description="High boundary")
    veryHigh: float = Field(gt=0, description="Very high boundary")


class SettingsPayload(BaseModel):
    """
    Settings document as stored by the settings service.
    """
    model_config = ConfigDict(extra="ignore")

    glucoseUnit: GlucoseUnit = Field(default="mmol/L", description="Unit of the stored thresholds")
    thresholds: Optional[ThresholdPayload] = Field(default=None, description="Range boundaries")
    rangeCategoryMode: Literal[3, 5] = Field(default=3, description="Number of range categories")
    insulinDuration: float = Field(
        default=DEFAULT_INSULIN_DURATION_HOURS,
        gt=0,
        description="Insulin action duration in hours",
    )
    timezone: Optional[str] = Field(default=None, description="IANA timezone of the wearer")
    hourGroupSize: Literal[1, 2, 3, 4, 6] = Field(default=1, description="Hours per hour-of-day bucket")
    tirPeriods: Optional[List[int]] = Field(default=None, description="Trailing TIR windows in days")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @field_validator("tirPeriods")
    @classmethod
    def _positive_periods(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is not None and any(days <= 0 for days in value):
            raise ValueError("tirPeriods must contain positive day counts")
        return value

    @model_validator(mode="after")
    def _ordered_thresholds(self) -> "SettingsPayload":
        thresholds = self.mmol_thresholds()
        if not (thresholds.very_low < thresholds.low <= thresholds.high < thresholds.very_high):
            raise ValueError("thresholds must satisfy veryLow < low <= high < veryHigh")
        return self

    def mmol_thresholds(self) -> GlucoseThresholds:
        if self.thresholds is None:
            return GlucoseThresholds()
        unit = self.glucoseUnit
        return GlucoseThresholds(
            very_low=to_mmol(self.thresholds.veryLow, unit),
            low=to_mmol(self.thresholds.low, unit),
            high=to_mmol(self.thresholds.high, unit),
            very_high=to_mmol(self.thresholds.veryHigh, unit),
        )

    def to_settings(self) -> AnalysisSettings:
        return AnalysisSettings(
            thresholds=self.mmol_thresholds(),
            mode=RangeCategoryMode(self.rangeCategoryMode),
            insulin_duration_hours=self.insulinDuration,
            local_timezone=self.timezone,
            tir_periods=tuple(self.tirPeriods) if self.tirPeriods is not None else DEFAULT_TIR_PERIODS,
            hour_group_size=self.hourGroupSize,
        )


def settings_from_mapping(data: Mapping[str, Any]) -> AnalysisSettings:
    """Validate a settings document already decoded from JSON."""

    try:
        payload = SettingsPayload.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings: {exc}") from exc
    return payload.to_settings()


def load_settings(path: Path | str | None = None) -> AnalysisSettings:
    """Load settings from ``path``, the ``GLYCEMIC_METRICS_SETTINGS`` file, or defaults."""

    if path is None:
        path = os.environ.get(SETTINGS_ENV_VAR) or None
    if path is None:
        logger.debug("No settings file configured; using defaults")
        return AnalysisSettings()

    file_path = Path(path)
    try:
        with file_path.open() as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise SettingsError(f"Settings file not found: {file_path}") from exc
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Settings file is not valid JSON: {file_path}") from exc

    if not isinstance(data, Mapping):
        raise SettingsError(f"Settings file must contain a JSON object: {file_path}")
    logger.debug("Loaded settings from %s", file_path)
    return settings_from_mapping(data)
