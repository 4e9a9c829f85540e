"""Prometheus collectors for the push pipeline."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

PUSHES_TOTAL = Counter(
    "rig_stats_pushes_total",
    "Telemetry pushes handled by the consumer",
    ["status"],  # processed, rejected, failed
)

PUSH_PROCESSING_SECONDS = Histogram(
    "rig_stats_push_processing_seconds",
    "Time spent running the aggregation pipeline for one push",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
)

MAILBOX_REPLACED_TOTAL = Counter(
    "rig_stats_mailbox_replaced_total",
    "Pending pushes replaced by a newer push before being processed",
)

RIG_INFO_REQUESTS_TOTAL = Counter(
    "rig_stats_rig_info_requests_total",
    "getRigInfo polls sent to the Telemetry Source",
    ["outcome"],  # sent, suppressed, expired, failed
)

CHART_CLIENTS = Gauge(
    "rig_stats_chart_clients",
    "Chart websocket clients currently connected",
)
