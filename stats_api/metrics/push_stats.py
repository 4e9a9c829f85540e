"""Push processing statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class PushStats:
    """Counters for pushes seen by the consumer."""

    received: int = 0
    processed: int = 0
    rejected: int = 0
    failed: int = 0
    sink_errors: int = 0
    last_push_at: float = 0
    last_processing_ms: Optional[float] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} processed={self.processed} "
            f"rejected={self.rejected} failed={self.failed}"
        )

    def to_dict(self) -> dict:
        return {
            "received": self.received,
            "processed": self.processed,
            "rejected": self.rejected,
            "failed": self.failed,
            "sink_errors": self.sink_errors,
            "last_push_at": self.last_push_at,
            "last_processing_ms": self.last_processing_ms,
            "started_at": self.started_at.isoformat(),
            "success_rate": self._success_rate(),
        }

    def _success_rate(self) -> float:
        total = self.processed + self.rejected + self.failed
        if total == 0:
            return 1.0
        return self.processed / total
