from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, status

from common.config import Settings, get_settings
from rig_stats.engine import FarmStatsEngine, WindowPolicy
from rig_stats.models import PercentGuard, ScanCollection, WindowKind

from .consumer import PushConsumer
from .endpoints import health_router, stats_router
from .mailbox import Mailbox
from .sinks import LatestSnapshotStore, WebSocketChartBroadcaster
from .transports.websocket import serve_telemetry

logger = logging.getLogger(__name__)


def build_policies(settings: Settings) -> Dict[WindowKind, WindowPolicy]:
    return {
        WindowKind.SHORT: WindowPolicy(
            ScanCollection(settings.short_anchor_scan), PercentGuard.NUMERATOR,
        ),
        WindowKind.LONG: WindowPolicy(
            ScanCollection(settings.long_anchor_scan), PercentGuard.MINED_TOTAL,
        ),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)

    mailbox: Mailbox = Mailbox()
    snapshots = LatestSnapshotStore()
    broadcaster = WebSocketChartBroadcaster()
    consumer = PushConsumer(
        FarmStatsEngine(policies=build_policies(settings)),
        mailbox,
        sinks=[snapshots, broadcaster],
    )

    app.state.settings = settings
    app.state.mailbox = mailbox
    app.state.snapshots = snapshots
    app.state.broadcaster = broadcaster
    app.state.consumer = consumer

    consumer.start()
    logger.info(
        "[APP] Rig stats service started rig=%s refresh=%.1fs anchor_scan=%s/%s",
        settings.rig_id or "-",
        settings.refresh_seconds,
        settings.short_anchor_scan,
        settings.long_anchor_scan,
    )
    try:
        yield
    finally:
        await consumer.stop()


app = FastAPI(title="Rig Stats Service", version="0.1.0", lifespan=lifespan)
app.include_router(health_router)
app.include_router(stats_router)


@app.websocket("/ws/telemetry")
async def telemetry_ws(websocket: WebSocket):
    await serve_telemetry(websocket, websocket.app.state.mailbox, websocket.app.state.settings)


@app.websocket("/ws/charts")
async def charts_ws(websocket: WebSocket):
    """Dashboard clients: latest snapshot on connect, then one per push."""
    state = websocket.app.state
    if not state.settings.charts_ws_enabled:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Charts transport disabled")
        return

    await websocket.accept()
    broadcaster: WebSocketChartBroadcaster = state.broadcaster
    broadcaster.register(websocket)
    try:
        latest = state.snapshots.latest
        if latest is not None:
            await websocket.send_json({"type": "snapshot", "data": latest.to_dict()})
        while True:
            # Clients only listen; reading keeps the disconnect observable.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("[CHARTS] Client disconnected")
    finally:
        broadcaster.unregister(websocket)
