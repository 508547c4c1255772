"""Fixed clinical constants shared across the metric modules."""
from __future__ import annotations

from typing import Final

MMOL_TO_MGDL: Final[float] = 18.018

# 5.0 mmol/L and 100 mg/dL are checked independently; a reading matching both
# would be counted once because the check is a single ``or``.
UNICORN_MMOL: Final[float] = 5.0
UNICORN_TOLERANCE_MMOL: Final[float] = 0.05
UNICORN_100_MGDL_IN_MMOL: Final[float] = 100 / MMOL_TO_MGDL
UNICORN_TOLERANCE_100_MGDL: Final[float] = 0.5 / MMOL_TO_MGDL

CV_TARGET_THRESHOLD: Final[float] = 36.0
MIN_DAYS_FOR_RELIABLE_HBA1C: Final[int] = 60

WAKEUP_HOURS: Final[tuple[int, int]] = (6, 9)
BEDTIME_HOURS: Final[tuple[int, int]] = (21, 24)

DEFAULT_TIR_PERIODS: Final[tuple[int, ...]] = (90, 28, 14, 7, 3)
HOUR_GROUP_SIZES: Final[tuple[int, ...]] = (1, 2, 3, 4, 6)

DEFAULT_INSULIN_DURATION_HOURS: Final[float] = 5.0

HYPO_RECOVERY_OFFSET: Final[float] = 0.6
CONSECUTIVE_READINGS_REQUIRED: Final[int] = 3

ROC_GOOD_MAX: Final[float] = 0.06
ROC_MEDIUM_MAX: Final[float] = 0.11
ROC_MAX_GAP_MINUTES: Final[float] = 30.0
ROC_MIN_GAP_MINUTES: Final[float] = 1.0

AGP_SLOT_MINUTES: Final[int] = 5
