"""Rounding applied once, when a result is emitted."""
from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up, e.g. ``round_half_up(0.25, 1) == 0.3``."""

    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
