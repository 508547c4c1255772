"""Ambulatory glucose profile: percentile bands per five-minute slot of the day."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from .constants import AGP_SLOT_MINUTES
from .frames import readings_frame
from .metrics import calculate_percentile
from .models import AGPTimeSlotStats, GlucoseReading

_SLOTS_PER_HOUR = 60 // AGP_SLOT_MINUTES


def _slot_label(slot: int) -> str:
    hour, index = divmod(slot, _SLOTS_PER_HOUR)
    return f"{hour:02d}:{index * AGP_SLOT_MINUTES:02d}"


def calculate_agp_stats(readings: Sequence[GlucoseReading]) -> list[AGPTimeSlotStats]:
    """Return 288 slots, ``"00:00"`` through ``"23:55"``, with all days overlaid.

    Readings fall into the slot that starts at or before their minute. Slots
    without readings are all zeros with ``count == 0``.
    """

    frame = readings_frame(readings)
    values = frame["value"].to_numpy(dtype=float)
    slots = (
        frame["hour"].to_numpy(dtype=int) * _SLOTS_PER_HOUR
        + frame["minute"].to_numpy(dtype=int) // AGP_SLOT_MINUTES
    )

    stats: list[AGPTimeSlotStats] = []
    for slot in range(24 * _SLOTS_PER_HOUR):
        in_slot = np.sort(values[slots == slot])
        if in_slot.size == 0:
            stats.append(
                AGPTimeSlotStats(
                    time_slot=_slot_label(slot),
                    lowest=0.0,
                    p10=0.0,
                    p25=0.0,
                    p50=0.0,
                    p75=0.0,
                    p90=0.0,
                    highest=0.0,
                    count=0,
                )
            )
            continue
        stats.append(
            AGPTimeSlotStats(
                time_slot=_slot_label(slot),
                lowest=float(in_slot[0]),
                p10=calculate_percentile(in_slot, 10),
                p25=calculate_percentile(in_slot, 25),
                p50=calculate_percentile(in_slot, 50),
                p75=calculate_percentile(in_slot, 75),
                p90=calculate_percentile(in_slot, 90),
                highest=float(in_slot[-1]),
                count=int(in_slot.size),
            )
        )
    return stats
