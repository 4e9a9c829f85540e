"""Anchor point resolution.

The anchor is the period index treated as "now" for a window. Wall-clock time
gives the current period; if the freshest sample in the store is exactly that
period it is used, otherwise the current (possibly incomplete) period is not
reportable yet and we back off by one.
"""

from __future__ import annotations

import math
from typing import Iterable

from .models import SampleStore


def current_period(now_ms: float, period_duration: float) -> int:
    # now_ms / period_duration / 1000, in this order.
    return int(math.floor(now_ms / period_duration / 1000 + 0.5))


def latest_index(keys: Iterable[int]) -> int:
    """Largest period index present, 0 for an empty store."""
    max_point = 0
    for key in keys:
        if key > max_point:
            max_point = key
    return max_point


def resolve_anchor(period_duration: float, sample_store: SampleStore, now_ms: float) -> int:
    """Return the anchor period index for ``sample_store`` at ``now_ms``.

    ``sample_store`` is scanned in full, not only the window slice.
    A zero ``period_duration`` means the source is not configured yet: 0.
    """
    if period_duration == 0:
        return 0

    current_point = current_period(now_ms, period_duration)
    max_point = latest_index(sample_store.keys())

    if max_point == current_point:
        return max_point
    return current_point - 1
