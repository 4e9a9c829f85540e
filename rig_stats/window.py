"""Window aggregation shared by the short and the long window.

A window is the fixed span ``[anchor - point_total + 1, anchor]`` of period
indices. Every index yields exactly one chart point; indices without a sample
are zero-filled and left out of the totals.

Averaging denominators are deliberately not uniform:

- effective hashrate and share averages divide by ``point_total``
  (missing periods count as zero)
- reported hashrate divides by the number of periods that had a sample
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .models import (
    HashrateSeries,
    PercentGuard,
    PeriodGeometry,
    SampleStore,
    ShareSeries,
    WindowSummary,
)
from .numeric import Percent, UNDEFINED_PERCENT, percent, round2, to_mhz

logger = logging.getLogger(__name__)


@dataclass
class _Totals:
    effective: float = 0.0
    reported: float = 0.0
    mined: int = 0
    valid: int = 0
    rejected: int = 0
    sample_count: int = 0


def window_keys(anchor: int, point_total: int) -> range:
    """Period indices of the window, oldest first."""
    return range(anchor - point_total + 1, anchor + 1)


def share_percent(part_total: int, mined_total: int, guard: PercentGuard) -> Percent:
    """Share percentage of ``mined_total`` under the window's guard policy."""
    if guard is PercentGuard.MINED_TOTAL:
        return percent(part_total, mined_total)
    if part_total == 0 or mined_total == 0:
        return UNDEFINED_PERCENT
    return round2(part_total / mined_total * 100)


def _nominal_average(total: float, point_total: int) -> float:
    if point_total <= 0:
        return 0.0
    return total / point_total


def aggregate_window(
    geometry: PeriodGeometry,
    sample_store: SampleStore,
    anchor: int,
    guard: PercentGuard = PercentGuard.NUMERATOR,
) -> Tuple[HashrateSeries, ShareSeries, WindowSummary]:
    """Build chart series and summary for one window.

    Pure function of its arguments: same inputs, same output.
    """
    point_total = geometry.point_total
    period_millis = geometry.period_millis

    timestamps: List[int] = []
    reported: List[float] = []
    effective: List[float] = []
    mined: List[int] = []
    valid: List[int] = []
    rejected: List[int] = []
    totals = _Totals()

    for key in window_keys(anchor, point_total):
        timestamps.append(key * period_millis)
        sample = sample_store.get(key)
        if sample is None:
            reported.append(0)
            effective.append(0)
            mined.append(0)
            valid.append(0)
            rejected.append(0)
            continue

        totals.sample_count += 1
        reported.append(to_mhz(sample.reported_hashrate))
        effective.append(to_mhz(sample.effective_hashrate))
        totals.reported += sample.reported_hashrate
        totals.effective += sample.effective_hashrate

        mined.append(sample.mined_share)
        valid.append(sample.valid_share)
        rejected.append(sample.rejected_share)
        totals.mined += sample.mined_share
        totals.valid += sample.valid_share
        totals.rejected += sample.rejected_share

    effective_avg = to_mhz(_nominal_average(totals.effective, point_total))
    reported_avg = (
        0 if totals.sample_count == 0 else to_mhz(totals.reported / totals.sample_count)
    )

    summary = WindowSummary(
        effective_avg=effective_avg,
        reported_avg=reported_avg,
        effective_pct=percent(effective_avg, reported_avg),
        mined_total=totals.mined,
        valid_total=totals.valid,
        rejected_total=totals.rejected,
        mined_avg=round2(_nominal_average(totals.mined, point_total)),
        valid_avg=round2(_nominal_average(totals.valid, point_total)),
        rejected_avg=round2(_nominal_average(totals.rejected, point_total)),
        valid_pct=share_percent(totals.valid, totals.mined, guard),
        rejected_pct=share_percent(totals.rejected, totals.mined, guard),
        sample_count=totals.sample_count,
        point_total=point_total,
        duration_in_hour=geometry.duration_in_hour,
    )

    logger.debug(
        "WINDOW anchor=%s point_total=%s samples=%s guard=%s",
        anchor, point_total, totals.sample_count, guard.value,
    )

    ts = tuple(timestamps)
    return (
        HashrateSeries(timestamps=ts, reported=tuple(reported), effective=tuple(effective)),
        ShareSeries(timestamps=ts, mined=tuple(mined), valid=tuple(valid), rejected=tuple(rejected)),
        summary,
    )
