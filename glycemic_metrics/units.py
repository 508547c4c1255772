"""Glucose unit conversion used at the settings and input boundaries."""
from __future__ import annotations

from typing import Literal

from .constants import MMOL_TO_MGDL
from .rounding import round_half_up

GlucoseUnit = Literal["mmol/L", "mg/dL"]


def mmol_to_mgdl(value: float) -> float:
    """Convert mmol/L to mg/dL, rounded to a whole number."""

    return round_half_up(value * MMOL_TO_MGDL, 0)


def mgdl_to_mmol(value: float) -> float:
    """Convert mg/dL to mmol/L, rounded to one decimal."""

    return round_half_up(value / MMOL_TO_MGDL, 1)


def to_mmol(value: float, unit: GlucoseUnit) -> float:
    if unit == "mg/dL":
        return mgdl_to_mmol(value)
    return float(value)
