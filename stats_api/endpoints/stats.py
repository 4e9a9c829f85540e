"""Snapshot and push endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status

from ..metrics import MAILBOX_REPLACED_TOTAL
from ..schemas import TelemetryPushIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/latest")
def latest_snapshot(request: Request):
    """Most recent snapshot, 404 until the first push was processed."""
    snapshot = request.app.state.snapshots.latest
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No snapshot yet")
    return snapshot.to_dict()


@router.post("/push", status_code=status.HTTP_202_ACCEPTED)
async def submit_push(push: TelemetryPushIn, request: Request):
    """Hand a push to the consumer.

    The body is validated here (422 on malformed pushes); processing is
    asynchronous and a newer push may replace this one before it runs.
    """
    replaced = request.app.state.mailbox.put(push.model_dump())
    if replaced:
        MAILBOX_REPLACED_TOTAL.inc()
    logger.debug("[HTTP] Push accepted replaced_pending=%s", replaced)
    return {"accepted": True, "replaced_pending": replaced}
