"""Command-line utility for computing a glycemic report from JSON readings.

The readings file holds a list of glucose samples::

    [
        {"timestamp": "2025-01-01T00:05:00+01:00", "value": 6.2},
        ...
    ]

An optional ``--insulin`` file lists delivery events::

    [
        {"timestamp": "2025-01-01T07:30:00+01:00", "dose": 4, "insulinType": "bolus"},
        ...
    ]

Values are read as mmol/L unless ``--unit mg/dL`` is given. The report is
written as JSON to stdout or to ``--output`` if provided.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, List, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .models import GlucoseReading, InsulinReading, InsulinType
from .report import build_glucose_report, report_to_dict
from .settings import SettingsError, load_settings
from .units import GlucoseUnit, to_mmol

logger = logging.getLogger(__name__)


class GlucoseRecord(BaseModel):
    """
    Glucose sample as exported by the device.
    """
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    timestamp: datetime = Field(description="Sample time, ISO-8601")
    value: float = Field(description="Glucose value in the file's unit")


class InsulinRecord(BaseModel):
    """
    Insulin delivery event as exported by the pump.
    """
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    timestamp: datetime = Field(description="Delivery time, ISO-8601")
    dose: float = Field(ge=0, description="Units delivered")
    insulinType: InsulinType = Field(description="basal or bolus")


_GLUCOSE_RECORDS = TypeAdapter(List[GlucoseRecord])
_INSULIN_RECORDS = TypeAdapter(List[InsulinRecord])


def _read_json(path: Path) -> Any:
    with path.open() as handle:
        return json.load(handle)


def load_glucose_readings(path: Path, unit: GlucoseUnit = "mmol/L") -> list[GlucoseReading]:
    """Read and validate a glucose JSON file; values are returned in mmol/L."""

    try:
        records = _GLUCOSE_RECORDS.validate_python(_read_json(path))
    except ValidationError as exc:
        raise ValueError(f"Invalid glucose readings in {path}: {exc}") from exc
    return [GlucoseReading(timestamp=record.timestamp, value=to_mmol(record.value, unit)) for record in records]


def load_insulin_readings(path: Path) -> list[InsulinReading]:
    try:
        records = _INSULIN_RECORDS.validate_python(_read_json(path))
    except ValidationError as exc:
        raise ValueError(f"Invalid insulin readings in {path}: {exc}") from exc
    return [
        InsulinReading(timestamp=record.timestamp, dose=record.dose, insulin_type=record.insulinType)
        for record in records
    ]


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute glycemic metrics from a JSON reading export")
    parser.add_argument("readings", type=Path, help="JSON file with glucose readings")
    parser.add_argument("--insulin", type=Path, help="Optional JSON file with insulin events")
    parser.add_argument("--settings", type=Path, help="Settings JSON file (defaults to $GLYCEMIC_METRICS_SETTINGS)")
    parser.add_argument(
        "--unit",
        choices=("mmol/L", "mg/dL"),
        default="mmol/L",
        help="Unit of the glucose values in the readings file (default: mmol/L)",
    )
    parser.add_argument("--output", type=Path, help="Optional path to write JSON output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.settings)
        readings = load_glucose_readings(args.readings, args.unit)
        insulin = load_insulin_readings(args.insulin) if args.insulin else []
    except (SettingsError, ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    logger.info("Loaded %d glucose and %d insulin readings", len(readings), len(insulin))
    report = build_glucose_report(readings, settings, insulin)

    output_text = json.dumps(report_to_dict(report), indent=2)
    if args.output:
        args.output.write_text(output_text)
    else:
        print(output_text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
