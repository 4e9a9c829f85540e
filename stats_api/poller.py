"""Periodic ``getRigInfo`` requests towards the Telemetry Source.

One request per cadence tick at most, and none while a previous request is
still unanswered. An unanswered request expires after ``request_timeout``
seconds so a lost reply does not stop polling for good.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from .metrics import RIG_INFO_REQUESTS_TOTAL
from .schemas import RigInfoRequest
from .transports.base import TelemetrySource

logger = logging.getLogger(__name__)


class RigInfoPoller:
    """Drives the request side of a Telemetry Source.

    The poller owns the only timer of the pipeline; cancelling its task
    (e.g. when the telemetry connection closes) stops all polling.
    """

    def __init__(
        self,
        source: TelemetrySource,
        rig_id: str,
        rig_ip: str,
        *,
        interval_seconds: float = 10.0,
        request_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = source
        self._request = RigInfoRequest(rig_id=rig_id, rig_ip=rig_ip)
        self._interval = max(0.01, float(interval_seconds))
        self._request_timeout = float(request_timeout)
        self._clock = clock

        self._outstanding_since: Optional[float] = None
        self._sent = 0
        self._suppressed = 0
        self._expired = 0
        self._errors = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def outstanding(self) -> bool:
        return self._outstanding_since is not None

    def mark_answered(self) -> None:
        """Called by the transport when a push arrives."""
        self._outstanding_since = None

    async def tick(self) -> bool:
        """One cadence tick. Returns True if a request was sent."""
        if self._outstanding_since is not None:
            waited = self._clock() - self._outstanding_since
            if waited < self._request_timeout:
                self._suppressed += 1
                RIG_INFO_REQUESTS_TOTAL.labels(outcome="suppressed").inc()
                return False
            self._expired += 1
            RIG_INFO_REQUESTS_TOTAL.labels(outcome="expired").inc()
            logger.warning(
                "[POLLER] Request unanswered after %.1fs, sending a new one", waited,
            )

        await self._source.send_request(self._request)
        self._outstanding_since = self._clock()
        self._sent += 1
        RIG_INFO_REQUESTS_TOTAL.labels(outcome="sent").inc()
        return True

    async def run(self) -> None:
        logger.info(
            "[POLLER] Started rig=%s interval=%.1fs source=%s",
            self._request.rig_id, self._interval, self._source.transport_name,
        )
        while True:
            try:
                await self.tick()
            except Exception as e:
                self._errors += 1
                RIG_INFO_REQUESTS_TOTAL.labels(outcome="failed").inc()
                logger.exception("[POLLER] Request failed rig=%s: %s", self._request.rig_id, e)
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="rig-info-poller")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.exception("[POLLER] Task ended with error: %s", e)
        self._task = None
        logger.info("[POLLER] Stopped. %s", self.stats)

    @property
    def stats(self) -> dict:
        return {
            "sent": self._sent,
            "suppressed": self._suppressed,
            "expired": self._expired,
            "errors": self._errors,
            "outstanding": self.outstanding,
        }
