"""Aggregation engine tests.

Covers:
1. Display rounding and undefined percentages
2. Anchor resolution
3. Window aggregation (zero fill, averages, guards, degenerate geometry)
4. Closest-sample snapshot
5. Overall summary
6. Engine orchestration and anchor scan policy

Run:
    pytest tests/test_aggregation.py -v
"""

import pytest

from rig_stats.anchor import current_period, latest_index, resolve_anchor
from rig_stats.closest import extract_closest
from rig_stats.engine import FarmStatsEngine, WindowPolicy, default_policies
from rig_stats.models import (
    ClosestSampleSnapshot,
    OverallRaw,
    PercentGuard,
    PeriodGeometry,
    ScanCollection,
    TelemetryPush,
    WindowKind,
)
from rig_stats.numeric import UNDEFINED_PERCENT, percent, round2, to_mhz
from rig_stats.overall import map_overall
from rig_stats.window import aggregate_window, share_percent, window_keys

from conftest import NOW_MS, PERIOD, make_sample


def _overall_raw(**overrides) -> OverallRaw:
    values = dict(
        effective_hashrate=123_456_789,
        reported_hashrate=130_000_000,
        mined_share=1000,
        valid_share=990,
        rejected_share=10,
        verified_share=900,
        pending_share=90,
        total_block_found=2,
        start_time="2017-06-01T10:00:00Z",
        last_block="2017-06-02T08:30:00Z",
        last_valid_share="2017-06-02T09:59:00Z",
    )
    values.update(overrides)
    return OverallRaw(**values)


def _push(short=None, long=None, period=PERIOD, short_window=300, long_window=600) -> TelemetryPush:
    return TelemetryPush(
        period_duration=period,
        short_window_duration=short_window,
        long_window_duration=long_window,
        short_window_sample=short or {},
        long_window_sample=long or {},
        overall=_overall_raw(),
    )


# =============================================================================
# ROUNDING
# =============================================================================

class TestRounding:
    """Two-decimal display rounding."""

    def test_round2_truncates_extra_decimals(self):
        assert round2(33.3333) == 33.33

    def test_round2_rounds_halves_up(self):
        assert round2(0.125) == 0.13
        assert round2(2.5) == 2.5

    def test_to_mhz(self):
        assert to_mhz(1_234_567) == 1.23
        assert to_mhz(0) == 0

    def test_percent_zero_denominator_is_undefined(self):
        result = percent(5, 0)
        assert result == ""
        assert result is UNDEFINED_PERCENT

    def test_percent_zero_numerator_is_zero(self):
        result = percent(0, 10)
        assert result == 0
        assert isinstance(result, float)


# =============================================================================
# ANCHOR
# =============================================================================

class TestAnchor:
    """Anchor point resolution against wall-clock time."""

    def test_current_period_rounds_half_up(self):
        assert current_period(NOW_MS, PERIOD) == 1000
        assert current_period(NOW_MS + 30_000, PERIOD) == 1001
        assert current_period(NOW_MS + 29_000, PERIOD) == 1000

    def test_latest_index_empty_is_zero(self):
        assert latest_index([]) == 0

    def test_uses_current_period_when_present(self):
        store = {998: make_sample(), 1000: make_sample()}
        assert resolve_anchor(PERIOD, store, NOW_MS) == 1000

    def test_backs_off_when_current_period_missing(self):
        store = {997: make_sample(), 998: make_sample()}
        assert resolve_anchor(PERIOD, store, NOW_MS) == 999

    def test_empty_store_backs_off(self):
        assert resolve_anchor(PERIOD, {}, NOW_MS) == 999

    def test_future_key_outside_window_forces_back_off(self):
        """The whole store is scanned, not only the window slice."""
        store = {1000: make_sample(), 5000: make_sample()}
        assert resolve_anchor(PERIOD, store, NOW_MS) == 999

    def test_zero_period_is_zero(self):
        assert resolve_anchor(0, {1000: make_sample()}, NOW_MS) == 0

    def test_stable_within_period(self):
        store = {1000: make_sample()}
        anchors = {resolve_anchor(PERIOD, store, NOW_MS + offset) for offset in (-29_000, 0, 29_000)}
        assert anchors == {1000}


# =============================================================================
# WINDOW AGGREGATION
# =============================================================================

class TestWindowGeometry:
    """Point count and degenerate durations."""

    def test_point_total_is_inclusive(self):
        assert PeriodGeometry(600, 86400).point_total == 145
        assert PeriodGeometry(60, 300).point_total == 6

    def test_non_divisible_window_is_floored(self):
        assert PeriodGeometry(60, 330).point_total == 6

    def test_zero_period_gives_single_point(self):
        assert PeriodGeometry(0, 300).point_total == 1

    def test_window_keys_oldest_first(self):
        assert list(window_keys(1000, 3)) == [998, 999, 1000]

    def test_duration_in_hour(self):
        assert PeriodGeometry(600, 21600).duration_in_hour == 6.0


class TestAggregateWindow:
    """Series and summary of one window."""

    def test_series_length_matches_point_total(self):
        geometry = PeriodGeometry(600, 86400)
        hashrate, shares, summary = aggregate_window(geometry, {2_000: make_sample()}, 2_000)

        assert len(hashrate.timestamps) == 145
        assert len(hashrate.reported) == 145
        assert len(hashrate.effective) == 145
        assert len(shares.mined) == 145
        assert summary.point_total == 145
        assert summary.sample_count == 1

    def test_timestamps_are_period_starts_in_millis(self):
        hashrate, _, _ = aggregate_window(PeriodGeometry(60, 120), {}, 1000)
        assert hashrate.timestamps == (998 * 60_000, 999 * 60_000, 1000 * 60_000)

    def test_missing_periods_are_zero_filled(self):
        store = {998: make_sample(), 1000: make_sample()}
        hashrate, shares, _ = aggregate_window(PeriodGeometry(60, 120), store, 1000)

        assert hashrate.effective == (60.0, 0, 60.0)
        assert hashrate.reported == (60.0, 0, 60.0)
        assert shares.mined == (10, 0, 10)
        assert shares.rejected == (1, 0, 1)

    def test_averages_use_different_denominators(self):
        """Effective divides by every point, reported by present samples only."""
        store = {998: make_sample(), 1000: make_sample()}
        _, _, summary = aggregate_window(PeriodGeometry(60, 300), store, 1000)

        assert summary.effective_avg == 20.0
        assert summary.reported_avg == 60.0
        assert summary.effective_pct == 33.33

    def test_share_totals_and_averages(self):
        store = {998: make_sample(), 1000: make_sample()}
        _, _, summary = aggregate_window(PeriodGeometry(60, 300), store, 1000)

        assert (summary.mined_total, summary.valid_total, summary.rejected_total) == (20, 18, 2)
        assert summary.mined_avg == 3.33
        assert summary.valid_avg == 3.0
        assert summary.rejected_avg == 0.33
        assert summary.valid_pct == 90.0
        assert summary.rejected_pct == 10.0

    def test_samples_outside_window_are_ignored(self):
        store = {900: make_sample(hashrate=999_000_000), 1000: make_sample()}
        hashrate, _, summary = aggregate_window(PeriodGeometry(60, 60), store, 1000)

        assert hashrate.effective == (0, 60.0)
        assert summary.sample_count == 1

    def test_empty_window(self):
        _, _, summary = aggregate_window(PeriodGeometry(60, 300), {}, 1000)

        assert summary.effective_avg == 0
        assert summary.reported_avg == 0
        assert summary.effective_pct == ""
        assert summary.valid_pct == ""
        assert summary.rejected_pct == ""

    @pytest.mark.parametrize("guard", list(PercentGuard))
    def test_no_mined_shares_is_undefined(self, guard):
        store = {1000: make_sample(mined=0, valid=0, rejected=0)}
        _, _, summary = aggregate_window(PeriodGeometry(60, 300), store, 1000, guard)

        assert summary.valid_pct == ""
        assert summary.rejected_pct == ""

    def test_guard_policies_differ_on_zero_numerator(self):
        store = {1000: make_sample(mined=5, valid=0, rejected=0)}
        geometry = PeriodGeometry(60, 300)

        _, _, short = aggregate_window(geometry, store, 1000, PercentGuard.NUMERATOR)
        _, _, long = aggregate_window(geometry, store, 1000, PercentGuard.MINED_TOTAL)

        assert short.valid_pct == ""
        assert long.valid_pct == 0

    def test_numerator_guard_with_zero_mined_does_not_raise(self):
        assert share_percent(3, 0, PercentGuard.NUMERATOR) == ""

    def test_zero_period(self):
        hashrate, shares, summary = aggregate_window(PeriodGeometry(0, 300), {}, 0)

        assert hashrate.timestamps == (0,)
        assert shares.mined == (0,)
        assert summary.point_total == 1

    def test_idempotent(self):
        store = {998: make_sample(), 1000: make_sample(hashrate=42_000_000)}
        geometry = PeriodGeometry(60, 300)

        assert aggregate_window(geometry, store, 1000) == aggregate_window(geometry, store, 1000)

    def test_chart_columns(self):
        hashrate, shares, _ = aggregate_window(PeriodGeometry(60, 60), {1000: make_sample()}, 1000)

        assert hashrate.to_chart_columns() == [
            ["x", 999 * 60_000, 1000 * 60_000],
            ["Reported Hashrate", 0, 60.0],
            ["Effective Hashrate", 0, 60.0],
        ]
        assert [column[0] for column in shares.to_chart_columns()] == [
            "x", "Mined Shares", "Valid Shares", "Rejected Shares",
        ]


# =============================================================================
# CLOSEST SAMPLE
# =============================================================================

class TestClosestSample:
    """Snapshot of the period just before the short anchor."""

    def test_reads_period_before_anchor(self):
        store = {
            999: make_sample(hashrate=50_000_000, reported=55_000_000, mined=10, valid=8, rejected=2),
            1000: make_sample(hashrate=1),
        }
        closest = extract_closest(store, 1000, 600)

        assert closest.duration_in_min == 10.0
        assert closest.effective_hashrate == 50.0
        assert closest.reported_hashrate == 55.0
        assert closest.effective_pct == 90.91
        assert (closest.mined_share, closest.valid_share, closest.rejected_share) == (10, 8, 2)
        assert closest.valid_pct == 80.0
        assert closest.rejected_pct == 20.0

    def test_miss_keeps_previous_values(self):
        previous = ClosestSampleSnapshot(
            duration_in_min=10.0,
            effective_hashrate=50.0,
            reported_hashrate=55.0,
            effective_pct=90.91,
            mined_share=10,
        )
        closest = extract_closest({1000: make_sample()}, 1000, 300, previous=previous)

        assert closest.duration_in_min == 5.0
        assert closest.effective_hashrate == 50.0
        assert closest.mined_share == 10
        assert previous.duration_in_min == 10.0

    def test_miss_without_previous_is_empty(self):
        closest = extract_closest({}, 1000, 600)

        assert closest.duration_in_min == 10.0
        assert closest.effective_hashrate == 0
        assert closest.valid_pct == ""

    def test_zero_mined_and_zero_reported_are_undefined(self):
        store = {999: make_sample(hashrate=0, reported=0, mined=0, valid=0, rejected=0)}
        closest = extract_closest(store, 1000, 600)

        assert closest.effective_pct == ""
        assert closest.valid_pct == ""
        assert closest.rejected_pct == ""


# =============================================================================
# OVERALL
# =============================================================================

class TestOverall:
    """Lifetime summary mapping."""

    def test_converts_and_derives_percentages(self):
        overall = map_overall(_overall_raw())

        assert overall.effective_hashrate == 123.46
        assert overall.reported_hashrate == 130.0
        assert overall.effective_pct == 94.97
        assert overall.valid_pct == 99.0
        assert overall.rejected_pct == 1.0

    def test_metadata_passes_through(self):
        overall = map_overall(_overall_raw())

        assert overall.verified_share == 900
        assert overall.pending_share == 90
        assert overall.total_block_found == 2
        assert overall.start_time == "2017-06-01T10:00:00Z"
        assert overall.last_block == "2017-06-02T08:30:00Z"
        assert overall.last_valid_share == "2017-06-02T09:59:00Z"

    def test_nothing_mined_or_reported(self):
        overall = map_overall(_overall_raw(reported_hashrate=0, mined_share=0, valid_share=0, rejected_share=0))

        assert overall.effective_pct == ""
        assert overall.valid_pct == ""
        assert overall.rejected_pct == ""


# =============================================================================
# ENGINE
# =============================================================================

class TestEngine:
    """End-to-end snapshot construction."""

    def test_snapshot_combines_all_parts(self):
        push = _push(
            short={998: make_sample(), 999: make_sample(), 1000: make_sample()},
            long={995: make_sample(), 1000: make_sample()},
        )
        snapshot = FarmStatsEngine().process(push, now_ms=NOW_MS)

        assert snapshot.anchors == {"short": 1000, "long": 1000}
        assert snapshot.computed_at_ms == NOW_MS
        assert snapshot.short.summary.point_total == 6
        assert snapshot.long.summary.point_total == 11
        assert snapshot.long.summary.sample_count == 2
        assert snapshot.short.closest is not None
        assert snapshot.short.closest.effective_hashrate == 60.0
        assert snapshot.long.closest is None
        assert snapshot.overall.effective_hashrate == 123.46

    def test_long_window_aggregates_long_samples(self):
        push = _push(
            short={1000: make_sample(hashrate=10_000_000)},
            long={1000: make_sample(hashrate=70_000_000)},
        )
        snapshot = FarmStatsEngine().process(push, now_ms=NOW_MS)

        assert snapshot.short.hashrate.effective[-1] == 10.0
        assert snapshot.long.hashrate.effective[-1] == 70.0

    def test_default_policy_anchors_long_window_on_short_samples(self):
        push = _push(short={1000: make_sample()}, long={2000: make_sample()})
        snapshot = FarmStatsEngine().process(push, now_ms=NOW_MS)

        assert snapshot.anchors == {"short": 1000, "long": 1000}

    def test_long_scan_policy(self):
        policies = default_policies()
        policies[WindowKind.LONG] = WindowPolicy(ScanCollection.LONG, PercentGuard.MINED_TOTAL)
        push = _push(short={1000: make_sample()}, long={2000: make_sample()})

        snapshot = FarmStatsEngine(policies=policies).process(push, now_ms=NOW_MS)

        assert snapshot.anchors == {"short": 1000, "long": 999}

    def test_closest_survives_push_without_data(self):
        engine = FarmStatsEngine()
        first = _push(short={999: make_sample(hashrate=50_000_000), 1000: make_sample()})
        engine.process(first, now_ms=NOW_MS)

        snapshot = engine.process(_push(short={1000: make_sample()}), now_ms=NOW_MS)

        assert snapshot.short.closest.effective_hashrate == 50.0

    def test_reset_forgets_closest(self):
        engine = FarmStatsEngine()
        first = _push(short={999: make_sample(hashrate=50_000_000), 1000: make_sample()})
        assert engine.process(first, now_ms=NOW_MS).short.closest.effective_hashrate == 50.0
        engine.reset()

        snapshot = engine.process(_push(short={1000: make_sample()}), now_ms=NOW_MS)

        assert snapshot.short.closest.effective_hashrate == 0

    def test_same_push_same_snapshot(self):
        engine = FarmStatsEngine()
        push = _push(short={998: make_sample(), 999: make_sample()})

        assert engine.process(push, now_ms=NOW_MS) == engine.process(push, now_ms=NOW_MS)

    def test_clock_used_when_now_not_given(self):
        engine = FarmStatsEngine(clock=lambda: NOW_MS)
        snapshot = engine.process(_push(short={1000: make_sample()}))

        assert snapshot.computed_at_ms == NOW_MS
        assert snapshot.anchors["short"] == 1000

    def test_snapshot_serializes(self):
        snapshot = FarmStatsEngine().process(_push(short={999: make_sample()}), now_ms=NOW_MS)
        data = snapshot.to_dict()

        assert set(data) == {"short", "long", "overall", "anchors", "computed_at_ms"}
        assert "closest" in data["short"]
        assert "closest" not in data["long"]
        assert data["short"]["hashrate"]["chart"][0][0] == "x"
