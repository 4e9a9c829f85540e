"""Per-push orchestration of the rig statistics pipeline.

Anchor (per window) → window aggregation (short, long) → closest sample on the
short anchor → overall summary → one immutable snapshot.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from .anchor import resolve_anchor
from .closest import extract_closest
from .models import (
    ClosestSampleSnapshot,
    FarmStatsSnapshot,
    PercentGuard,
    ScanCollection,
    TelemetryPush,
    WindowKind,
    WindowReport,
)
from .overall import map_overall
from .window import aggregate_window

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class WindowPolicy:
    """How one window kind resolves its anchor and guards its percentages."""

    scan_collection: ScanCollection
    percent_guard: PercentGuard


def default_policies() -> Dict[WindowKind, WindowPolicy]:
    # Both windows anchor on the short collection.
    return {
        WindowKind.SHORT: WindowPolicy(ScanCollection.SHORT, PercentGuard.NUMERATOR),
        WindowKind.LONG: WindowPolicy(ScanCollection.SHORT, PercentGuard.MINED_TOTAL),
    }


@dataclass
class FarmStatsEngine:
    """Turns telemetry pushes for one rig into display snapshots.

    The only state carried across pushes is the closest-sample snapshot,
    which survives a push whose closest period has no data.
    """

    policies: Dict[WindowKind, WindowPolicy] = field(default_factory=default_policies)
    clock: Callable[[], int] = wall_clock_ms
    _closest: Optional[ClosestSampleSnapshot] = field(default=None, init=False, repr=False)

    def resolve(self, push: TelemetryPush, kind: WindowKind, now_ms: int) -> int:
        scan = self.policies[kind].scan_collection
        store = push.samples(WindowKind(scan.value))
        return resolve_anchor(push.period_duration, store, now_ms)

    def build_window(self, push: TelemetryPush, kind: WindowKind, anchor: int) -> WindowReport:
        hashrate, shares, summary = aggregate_window(
            push.geometry(kind),
            push.samples(kind),
            anchor,
            self.policies[kind].percent_guard,
        )
        return WindowReport(summary=summary, hashrate=hashrate, shares=shares)

    def process(self, push: TelemetryPush, now_ms: Optional[int] = None) -> FarmStatsSnapshot:
        """Run the full pipeline for one push."""
        if now_ms is None:
            now_ms = self.clock()

        anchors = {kind.value: self.resolve(push, kind, now_ms) for kind in WindowKind}

        short = self.build_window(push, WindowKind.SHORT, anchors[WindowKind.SHORT.value])
        long_ = self.build_window(push, WindowKind.LONG, anchors[WindowKind.LONG.value])

        closest = extract_closest(
            push.short_window_sample,
            anchors[WindowKind.SHORT.value],
            push.period_duration,
            previous=self._closest,
        )
        self._closest = closest

        snapshot = FarmStatsSnapshot(
            short=WindowReport(
                summary=short.summary,
                hashrate=short.hashrate,
                shares=short.shares,
                closest=closest,
            ),
            long=long_,
            overall=map_overall(push.overall),
            computed_at_ms=now_ms,
            anchors=anchors,
        )

        logger.debug(
            "SNAPSHOT anchors=%s short_samples=%d long_samples=%d",
            anchors,
            short.summary.sample_count,
            long_.summary.sample_count,
        )
        return snapshot

    def reset(self) -> None:
        """Forget the carried closest snapshot (new rig context)."""
        self._closest = None
