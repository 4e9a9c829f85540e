"""WebSocket transport for the Telemetry Source.

The rig statistics server connects here, receives ``getRigInfo`` polls and
answers each with a push.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, Dict, Mapping

from fastapi import WebSocket, WebSocketDisconnect, status

from common.config import Settings

from ...mailbox import Mailbox
from ...metrics import MAILBOX_REPLACED_TOTAL
from ...poller import RigInfoPoller
from ...schemas import RigInfoRequest
from ..base import MalformedTelemetryMessage, TelemetrySource, TelemetrySourceClosed

logger = logging.getLogger(__name__)


class WebSocketTelemetrySource(TelemetrySource):
    """Telemetry Source backed by an accepted FastAPI websocket."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket
        self._requests_sent = 0
        self._messages_received = 0
        self._malformed = 0

    async def send_request(self, request: RigInfoRequest) -> None:
        await self._websocket.send_json(request.to_message())
        self._requests_sent += 1

    async def receive(self) -> Mapping[str, Any]:
        try:
            text = await self._websocket.receive_text()
        except WebSocketDisconnect as e:
            raise TelemetrySourceClosed(f"code={e.code}") from e
        self._messages_received += 1
        try:
            return json.loads(text)
        except ValueError as e:
            self._malformed += 1
            raise MalformedTelemetryMessage(str(e)) from e

    async def close(self) -> None:
        await self._websocket.close(code=status.WS_1000_NORMAL_CLOSURE)

    @property
    def transport_name(self) -> str:
        return "websocket"

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "requests_sent": self._requests_sent,
            "messages_received": self._messages_received,
            "malformed": self._malformed,
        }


async def serve_telemetry(
    websocket: WebSocket,
    mailbox: Mailbox[Mapping[str, Any]],
    settings: Settings,
) -> None:
    """WebSocket endpoint body for a Telemetry Source.

    Protocol:
    1. Server → {type: "connected", session_id, rig_id}
    2. Server → {action: "getRigInfo", rigId, rigIp}   (every cadence tick)
    3. Source → push object                            (answer to a poll)
    4. Source → {type: "disconnect"}

    The rig is chosen with the ``rigId`` / ``rigIp`` query parameters,
    falling back to RIG_STATS_RIG_ID / RIG_STATS_RIG_IP.
    Feature flag: FF_TELEMETRY_WS_ENABLED (default: true)
    """
    if not settings.telemetry_ws_enabled:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Telemetry transport disabled")
        return

    await websocket.accept()

    session_id = str(uuid.uuid4())
    rig_id = websocket.query_params.get("rigId") or settings.rig_id
    rig_ip = websocket.query_params.get("rigIp") or settings.rig_ip

    source = WebSocketTelemetrySource(websocket)
    poller = RigInfoPoller(
        source,
        rig_id,
        rig_ip,
        interval_seconds=settings.refresh_seconds,
        request_timeout=settings.request_timeout_seconds,
    )

    await websocket.send_json({"type": "connected", "session_id": session_id, "rig_id": rig_id})
    logger.info("[WS_TELEMETRY] Session connected: session=%s rig=%s", session_id, rig_id)

    poller.start()
    try:
        while True:
            try:
                message = await source.receive()
            except MalformedTelemetryMessage as e:
                logger.warning("[WS_TELEMETRY] Undecodable frame: session=%s error=%s", session_id, e)
                await websocket.send_json({"type": "error", "error": "Invalid JSON"})
                continue

            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "error": "Push must be a JSON object"})
                continue

            if message.get("type") == "disconnect":
                logger.info("[WS_TELEMETRY] Source requested disconnect: session=%s", session_id)
                await source.close()
                break

            poller.mark_answered()
            if mailbox.put(message):
                MAILBOX_REPLACED_TOTAL.inc()

    except TelemetrySourceClosed:
        logger.info("[WS_TELEMETRY] Source disconnected: session=%s", session_id)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.exception("[WS_TELEMETRY] Session error: session=%s error=%s", session_id, e)
        try:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        except RuntimeError:
            logger.debug("[WS_TELEMETRY] Socket already closed: session=%s", session_id)
    finally:
        await poller.stop()
        logger.info(
            "[WS_TELEMETRY] Session closed: session=%s poller=%s source=%s",
            session_id, poller.stats, source.stats,
        )
