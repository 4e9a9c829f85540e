"""Metrics module for push processing observability."""

from .push_stats import PushStats
from .collectors import (
    CHART_CLIENTS,
    MAILBOX_REPLACED_TOTAL,
    PUSH_PROCESSING_SECONDS,
    PUSHES_TOTAL,
    RIG_INFO_REQUESTS_TOTAL,
)

__all__ = [
    "PushStats",
    "CHART_CLIENTS",
    "MAILBOX_REPLACED_TOTAL",
    "PUSH_PROCESSING_SECONDS",
    "PUSHES_TOTAL",
    "RIG_INFO_REQUESTS_TOTAL",
]
