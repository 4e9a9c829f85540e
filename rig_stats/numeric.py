"""Canonical rounding and unit conversion for displayed rig statistics.

Precision policy:
- Aggregation keeps raw floats (H/s, raw share counts)
- Rounding happens ONLY at the display boundary, two decimals
- Ratios with a zero denominator are "undefined" and rendered as ``""``,
  never as ``0`` or NaN
"""

from __future__ import annotations

import math
from typing import Union

HASHES_PER_MEGAHASH = 1_000_000

DISPLAY_DECIMALS = 2

# Marker for a ratio whose denominator was zero.
UNDEFINED_PERCENT = ""

Percent = Union[float, str]


def round2(value: float) -> float:
    """Round to two decimals, halves rounded up like the dashboard does.

    ``round2(33.3333) == 33.33``, ``round2(0.125) == 0.13``.
    """
    if not math.isfinite(value):
        return value
    factor = 10 ** DISPLAY_DECIMALS
    return math.floor(value * factor + 0.5) / factor


def to_mhz(hashrate: float) -> float:
    """Convert H/s to MH/s rounded for display."""
    return round2(hashrate / HASHES_PER_MEGAHASH)


def percent(numerator: float, denominator: float) -> Percent:
    """``numerator / denominator * 100`` rounded, ``""`` when undefined."""
    if denominator == 0:
        return UNDEFINED_PERCENT
    return round2(numerator / denominator * 100)