"""Health and metrics endpoints."""

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe: ok while the process is up."""
    return {"status": "ok"}


@router.get("/metrics")
def metrics(request: Request):
    """Consumer, mailbox and chart sink counters."""
    state = request.app.state
    return {
        "consumer": state.consumer.stats,
        "mailbox": state.mailbox.get_stats(),
        "chart_clients": state.broadcaster.client_count,
    }


@router.get("/metrics/prometheus")
def prometheus_metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
