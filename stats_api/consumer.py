"""Push consumer: the single task that runs the aggregation pipeline.

Takes the newest push from the mailbox, validates it, runs the engine and
hands the snapshot to every Chart Sink. Pushes are processed one at a time,
each to completion, so two aggregations never overlap.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Iterable, List, Mapping, Optional

from rig_stats.engine import FarmStatsEngine
from rig_stats.models import FarmStatsSnapshot

from .mailbox import Mailbox
from .metrics import PUSH_PROCESSING_SECONDS, PUSHES_TOTAL, PushStats
from .schemas import PushValidationError, parse_push
from .sinks import ChartSink

logger = logging.getLogger(__name__)


class PushConsumer:
    """Mailbox → validation → engine → sinks.

    A rejected or failing push leaves the previous snapshot in place.
    """

    def __init__(
        self,
        engine: FarmStatsEngine,
        mailbox: Mailbox[Mapping[str, Any]],
        sinks: Iterable[ChartSink] = (),
    ):
        self._engine = engine
        self._mailbox = mailbox
        self._sinks: List[ChartSink] = list(sinks)
        self._stats = PushStats()
        self._task: Optional[asyncio.Task] = None

    def add_sink(self, sink: ChartSink) -> None:
        self._sinks.append(sink)

    def start(self) -> asyncio.Task:
        """Start the consumer task on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="rig-stats-consumer")
            logger.info("[CONSUMER] Started sinks=%d", len(self._sinks))
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[CONSUMER] Stopped. %s", self._stats)

    async def run(self) -> None:
        while True:
            raw = await self._mailbox.get()
            await self.handle(raw)

    async def handle(self, raw: Mapping[str, Any]) -> Optional[FarmStatsSnapshot]:
        """Process one raw push. Returns the new snapshot, None if dropped."""
        self._stats.received += 1
        self._stats.last_push_at = time.time()

        try:
            push = parse_push(raw)
        except PushValidationError as e:
            self._stats.rejected += 1
            PUSHES_TOTAL.labels(status="rejected").inc()
            logger.warning("[CONSUMER] Push rejected, keeping previous output: %s", e)
            return None

        start = time.perf_counter()
        try:
            snapshot = self._engine.process(push)
        except Exception as e:
            self._stats.failed += 1
            PUSHES_TOTAL.labels(status="failed").inc()
            logger.exception("[CONSUMER] Aggregation failed: %s", e)
            return None
        elapsed = time.perf_counter() - start

        self._stats.processed += 1
        self._stats.last_processing_ms = round(elapsed * 1000, 3)
        PUSHES_TOTAL.labels(status="processed").inc()
        PUSH_PROCESSING_SECONDS.observe(elapsed)

        await self._publish(snapshot)
        return snapshot

    async def _publish(self, snapshot: FarmStatsSnapshot) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(snapshot)
            except Exception as e:
                self._stats.sink_errors += 1
                logger.exception(
                    "[CONSUMER] Sink %s failed: %s", type(sink).__name__, e,
                )

    @property
    def stats(self) -> dict:
        return self._stats.to_dict()
