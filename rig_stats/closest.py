"""Closest-sample snapshot: the last complete period before the short anchor."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from .models import ClosestSampleSnapshot, SampleStore
from .numeric import percent, to_mhz


def extract_closest(
    sample_store: SampleStore,
    anchor: int,
    period_duration: float,
    previous: Optional[ClosestSampleSnapshot] = None,
) -> ClosestSampleSnapshot:
    """Snapshot of ``sample_store[anchor - 1]``.

    When that period has no sample the previous snapshot is kept as is,
    only ``duration_in_min`` is refreshed.
    """
    duration_in_min = period_duration / 60
    sample = sample_store.get(anchor - 1)
    if sample is None:
        return replace(previous or ClosestSampleSnapshot(), duration_in_min=duration_in_min)

    return ClosestSampleSnapshot(
        duration_in_min=duration_in_min,
        effective_hashrate=to_mhz(sample.effective_hashrate),
        reported_hashrate=to_mhz(sample.reported_hashrate),
        effective_pct=percent(sample.effective_hashrate, sample.reported_hashrate),
        mined_share=sample.mined_share,
        valid_share=sample.valid_share,
        rejected_share=sample.rejected_share,
        valid_pct=percent(sample.valid_share, sample.mined_share),
        rejected_pct=percent(sample.rejected_share, sample.mined_share),
    )
