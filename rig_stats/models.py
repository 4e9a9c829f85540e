"""Domain models for rig statistics.

All models are frozen: a push produces a brand new snapshot that replaces the
previous one wholesale, nothing is patched in place.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .numeric import Percent, UNDEFINED_PERCENT


@dataclass(frozen=True)
class TelemetrySample:
    """Counters reported for one period of one rig."""

    reported_hashrate: float  # H/s
    effective_hashrate: float  # H/s
    mined_share: int
    valid_share: int
    rejected_share: int


# period index -> sample, owned by the Telemetry Source for one push
SampleStore = Mapping[int, TelemetrySample]


class WindowKind(str, Enum):
    SHORT = "short"
    LONG = "long"


class ScanCollection(str, Enum):
    """Which sample collection the anchor resolver scans for the latest index."""

    SHORT = "short"
    LONG = "long"


class PercentGuard(str, Enum):
    """Zero check applied before computing valid/rejected share percentages.

    NUMERATOR: undefined when the share total itself is zero (short window).
    MINED_TOTAL: undefined when no share was mined at all (long window).
    """

    NUMERATOR = "numerator"
    MINED_TOTAL = "mined_total"


@dataclass(frozen=True)
class PeriodGeometry:
    """Period/window durations, both in seconds."""

    period_duration: int
    window_duration: int

    @property
    def point_total(self) -> int:
        """Inclusive number of periods covered by the window.

        Degenerate geometry never raises: a zero period gives a single point,
        a window that is not a multiple of the period is floored.
        """
        if self.period_duration <= 0:
            return 1
        return self.window_duration // self.period_duration + 1

    @property
    def duration_in_hour(self) -> float:
        return self.window_duration / 3600

    @property
    def period_millis(self) -> int:
        return self.period_duration * 1000


@dataclass(frozen=True)
class HashrateSeries:
    """Hashrate chart series in MH/s, aligned with ``timestamps``."""

    timestamps: Tuple[int, ...]
    reported: Tuple[float, ...]
    effective: Tuple[float, ...]

    def to_chart_columns(self) -> List[list]:
        return [
            ["x", *self.timestamps],
            ["Reported Hashrate", *self.reported],
            ["Effective Hashrate", *self.effective],
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamps": list(self.timestamps),
            "reported": list(self.reported),
            "effective": list(self.effective),
            "chart": self.to_chart_columns(),
        }


@dataclass(frozen=True)
class ShareSeries:
    """Share count chart series, aligned with ``timestamps``."""

    timestamps: Tuple[int, ...]
    mined: Tuple[int, ...]
    valid: Tuple[int, ...]
    rejected: Tuple[int, ...]

    def to_chart_columns(self) -> List[list]:
        return [
            ["x", *self.timestamps],
            ["Mined Shares", *self.mined],
            ["Valid Shares", *self.valid],
            ["Rejected Shares", *self.rejected],
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamps": list(self.timestamps),
            "mined": list(self.mined),
            "valid": list(self.valid),
            "rejected": list(self.rejected),
            "chart": self.to_chart_columns(),
        }


@dataclass(frozen=True)
class WindowSummary:
    """Scalar aggregates of one window."""

    effective_avg: float
    reported_avg: float
    effective_pct: Percent

    mined_total: int
    valid_total: int
    rejected_total: int

    mined_avg: float
    valid_avg: float
    rejected_avg: float

    valid_pct: Percent
    rejected_pct: Percent

    sample_count: int
    point_total: int
    duration_in_hour: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ClosestSampleSnapshot:
    """Point-in-time values taken from a single sample."""

    duration_in_min: float = 0
    effective_hashrate: float = 0
    reported_hashrate: float = 0
    effective_pct: Percent = UNDEFINED_PERCENT
    mined_share: int = 0
    valid_share: int = 0
    rejected_share: int = 0
    valid_pct: Percent = UNDEFINED_PERCENT
    rejected_pct: Percent = UNDEFINED_PERCENT

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class OverallRaw:
    """Lifetime counters as delivered by the Telemetry Source."""

    effective_hashrate: float
    reported_hashrate: float
    mined_share: int
    valid_share: int
    rejected_share: int
    verified_share: int = 0
    pending_share: int = 0
    total_block_found: Optional[int] = None
    start_time: Optional[str] = None
    last_block: Optional[str] = None
    last_valid_share: Optional[str] = None


@dataclass(frozen=True)
class OverallSummary:
    """Lifetime counters ready for display."""

    effective_hashrate: float
    reported_hashrate: float
    effective_pct: Percent
    mined_share: int
    valid_share: int
    rejected_share: int
    verified_share: int
    pending_share: int
    valid_pct: Percent
    rejected_pct: Percent
    total_block_found: Optional[int] = None
    start_time: Optional[str] = None
    last_block: Optional[str] = None
    last_valid_share: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TelemetryPush:
    """One validated message from the Telemetry Source."""

    period_duration: int
    short_window_duration: int
    long_window_duration: int
    short_window_sample: SampleStore
    long_window_sample: SampleStore
    overall: OverallRaw

    def geometry(self, kind: WindowKind) -> PeriodGeometry:
        window = (
            self.short_window_duration
            if kind is WindowKind.SHORT
            else self.long_window_duration
        )
        return PeriodGeometry(period_duration=self.period_duration, window_duration=window)

    def samples(self, kind: WindowKind) -> SampleStore:
        return self.short_window_sample if kind is WindowKind.SHORT else self.long_window_sample


@dataclass(frozen=True)
class WindowReport:
    """Everything the Chart Sink needs for one window."""

    summary: WindowSummary
    hashrate: HashrateSeries
    shares: ShareSeries
    closest: Optional[ClosestSampleSnapshot] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "summary": self.summary.to_dict(),
            "hashrate": self.hashrate.to_dict(),
            "shares": self.shares.to_dict(),
        }
        if self.closest is not None:
            result["closest"] = self.closest.to_dict()
        return result


@dataclass(frozen=True)
class FarmStatsSnapshot:
    """Complete engine output for one push."""

    short: WindowReport
    long: WindowReport
    overall: OverallSummary
    computed_at_ms: int
    anchors: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "short": self.short.to_dict(),
            "long": self.long.to_dict(),
            "overall": self.overall.to_dict(),
            "anchors": dict(self.anchors),
            "computed_at_ms": self.computed_at_ms,
        }
