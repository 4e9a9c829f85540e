"""Windowed aggregation engine for mining rig telemetry."""

from .anchor import resolve_anchor
from .closest import extract_closest
from .engine import FarmStatsEngine, WindowPolicy, default_policies
from .models import (
    ClosestSampleSnapshot,
    FarmStatsSnapshot,
    HashrateSeries,
    OverallRaw,
    OverallSummary,
    PercentGuard,
    PeriodGeometry,
    ScanCollection,
    ShareSeries,
    TelemetryPush,
    TelemetrySample,
    WindowKind,
    WindowReport,
    WindowSummary,
)
from .numeric import UNDEFINED_PERCENT, percent, round2, to_mhz
from .overall import map_overall
from .window import aggregate_window

__all__ = [
    "resolve_anchor",
    "extract_closest",
    "aggregate_window",
    "map_overall",
    "FarmStatsEngine",
    "WindowPolicy",
    "default_policies",
    "ClosestSampleSnapshot",
    "FarmStatsSnapshot",
    "HashrateSeries",
    "OverallRaw",
    "OverallSummary",
    "PercentGuard",
    "PeriodGeometry",
    "ScanCollection",
    "ShareSeries",
    "TelemetryPush",
    "TelemetrySample",
    "WindowKind",
    "WindowReport",
    "WindowSummary",
    "UNDEFINED_PERCENT",
    "percent",
    "round2",
    "to_mhz",
]
