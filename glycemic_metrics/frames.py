"""Shared helpers for turning reading sequences into analysis frames."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Sequence, TypeVar

import numpy as np
import pandas as pd
from zoneinfo import ZoneInfo

from .models import GlucoseReading, InsulinReading

ReadingT = TypeVar("ReadingT", GlucoseReading, InsulinReading)

FRAME_COLUMNS = ["value", "date", "hour", "minute", "weekday"]


def glucose_values(readings: Sequence[GlucoseReading]) -> np.ndarray:
    """Return reading values as a float array, in input order."""

    return np.fromiter((reading.value for reading in readings), dtype=float, count=len(readings))


def readings_frame(readings: Sequence[GlucoseReading]) -> pd.DataFrame:
    """Return a dataframe with calendar keys derived from each reading's wall clock.

    Calendar fields are taken from the timestamps as given, so timezone-aware
    readings are bucketed in their own offset.
    """

    if not readings:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    timestamps = [reading.timestamp for reading in readings]
    frame = pd.DataFrame(
        {
            "value": glucose_values(readings),
            "date": [ts.date() for ts in timestamps],
            "hour": [ts.hour for ts in timestamps],
            "minute": [ts.minute for ts in timestamps],
            "weekday": [ts.weekday() for ts in timestamps],
        }
    )
    return frame


def sorted_by_time(readings: Sequence[GlucoseReading]) -> list[GlucoseReading]:
    return sorted(readings, key=lambda reading: reading.timestamp)


def localize_readings(readings: Sequence[ReadingT], timezone: str | None) -> list[ReadingT]:
    """Return readings with timestamps converted to the given IANA timezone.

    Naive timestamps are assumed to already be local wall-clock time and are
    returned unchanged.
    """

    if timezone is None:
        return list(readings)
    tz = ZoneInfo(timezone)
    return [
        replace(reading, timestamp=reading.timestamp.astimezone(tz))
        if reading.timestamp.tzinfo is not None
        else reading
        for reading in readings
    ]


def localize_timestamp(value: datetime, timezone: str | None) -> datetime:
    """Return ``value`` in the given IANA timezone.

    An aware value is converted; a naive one is read as wall-clock time in
    that zone.
    """

    if timezone is None:
        return value
    tz = ZoneInfo(timezone)
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)
