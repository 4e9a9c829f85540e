"""Chart Sinks: consumers of finished snapshots."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Set

from fastapi import WebSocket

from rig_stats.models import FarmStatsSnapshot

from .metrics import CHART_CLIENTS

logger = logging.getLogger(__name__)


class ChartSink(Protocol):
    """Anything that receives a snapshot after every processed push.

    Implementations must not mutate the snapshot; it is shared.
    """

    async def publish(self, snapshot: FarmStatsSnapshot) -> None:
        ...


class LatestSnapshotStore:
    """Holds the most recent snapshot.

    Readers take ``latest`` once and work on that reference; a new push swaps
    the whole snapshot, so a reader never sees a half-updated one.
    """

    def __init__(self) -> None:
        self._latest: Optional[FarmStatsSnapshot] = None

    async def publish(self, snapshot: FarmStatsSnapshot) -> None:
        self._latest = snapshot

    @property
    def latest(self) -> Optional[FarmStatsSnapshot]:
        return self._latest


class WebSocketChartBroadcaster:
    """Fans snapshots out to connected dashboard websockets."""

    def __init__(self, send_timeout: float = 5.0) -> None:
        self._clients: Set[WebSocket] = set()
        self._send_timeout = send_timeout

    def register(self, websocket: WebSocket) -> None:
        self._clients.add(websocket)
        CHART_CLIENTS.set(len(self._clients))
        logger.info("[CHARTS] Client registered total=%d", len(self._clients))

    def unregister(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        CHART_CLIENTS.set(len(self._clients))
        logger.info("[CHARTS] Client unregistered total=%d", len(self._clients))

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def publish(self, snapshot: FarmStatsSnapshot) -> None:
        if not self._clients:
            return

        message = {"type": "snapshot", "data": snapshot.to_dict()}
        clients = list(self._clients)
        # Sends run concurrently; a client stuck past the timeout is dropped.
        results = await asyncio.gather(
            *(
                asyncio.wait_for(websocket.send_json(message), self._send_timeout)
                for websocket in clients
            ),
            return_exceptions=True,
        )

        for websocket, result in zip(clients, results):
            if isinstance(result, Exception):
                logger.warning("[CHARTS] Send failed, dropping client: %s", result)
                self.unregister(websocket)
