"""Lifetime (non-windowed) summary."""

from __future__ import annotations

from .models import OverallRaw, OverallSummary
from .numeric import percent, to_mhz


def map_overall(raw: OverallRaw) -> OverallSummary:
    """Copy lifetime counters, converting hashrates and deriving percentages.

    The effective/reported ratio is taken on the converted MH/s values.
    Block and timing metadata pass through untouched.
    """
    effective = to_mhz(raw.effective_hashrate)
    reported = to_mhz(raw.reported_hashrate)

    return OverallSummary(
        effective_hashrate=effective,
        reported_hashrate=reported,
        effective_pct=percent(effective, reported),
        mined_share=raw.mined_share,
        valid_share=raw.valid_share,
        rejected_share=raw.rejected_share,
        verified_share=raw.verified_share,
        pending_share=raw.pending_share,
        valid_pct=percent(raw.valid_share, raw.mined_share),
        rejected_pct=percent(raw.rejected_share, raw.mined_share),
        total_block_found=raw.total_block_found,
        start_time=raw.start_time,
        last_block=raw.last_block,
        last_valid_share=raw.last_valid_share,
    )
