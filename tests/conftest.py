"""Shared fixtures: telemetry samples and raw pushes."""

from typing import Any, Dict, Optional

import pytest

from rig_stats.models import TelemetrySample

# period 60s, now at exactly period index 1000
PERIOD = 60
NOW_MS = 1000 * PERIOD * 1000


def make_sample(
    hashrate: float = 60_000_000,
    reported: Optional[float] = None,
    mined: int = 10,
    valid: int = 9,
    rejected: int = 1,
) -> TelemetrySample:
    return TelemetrySample(
        reported_hashrate=hashrate if reported is None else reported,
        effective_hashrate=hashrate,
        mined_share=mined,
        valid_share=valid,
        rejected_share=rejected,
    )


def raw_sample(**overrides) -> Dict[str, Any]:
    sample = {
        "reported_hashrate": 60_000_000,
        "effective_hashrate": 60_000_000,
        "mined_share": 10,
        "valid_share": 9,
        "rejected_share": 1,
    }
    sample.update(overrides)
    return sample


def raw_overall(**overrides) -> Dict[str, Any]:
    overall = {
        "effective_hashrate": 123_456_789,
        "reported_hashrate": 130_000_000,
        "mined_share": 1000,
        "valid_share": 990,
        "rejected_share": 10,
        "verified_share": 900,
        "pending_share": 90,
        "total_block_found": 2,
        "start_time": "2017-06-01T10:00:00Z",
        "last_block": "2017-06-02T08:30:00Z",
        "last_valid_share": "2017-06-02T09:59:00Z",
    }
    overall.update(overrides)
    return overall


@pytest.fixture
def raw_push() -> Dict[str, Any]:
    """Push as it arrives over the wire: string period keys."""
    return {
        "period_duration": PERIOD,
        "short_window_duration": 300,
        "long_window_duration": 600,
        "short_window_sample": {
            "998": raw_sample(),
            "999": raw_sample(),
            "1000": raw_sample(),
        },
        "long_window_sample": {
            "995": raw_sample(),
            "1000": raw_sample(),
        },
        "overall": raw_overall(),
    }
