from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env next to the repository root, shared by the API and the jobs.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class Settings:
    rig_id: str
    rig_ip: str

    # Poll cadence towards the Telemetry Source.
    refresh_seconds: float
    request_timeout_seconds: float

    # Collection scanned for the anchor of each window ("short" | "long").
    short_anchor_scan: str
    long_anchor_scan: str

    telemetry_ws_enabled: bool
    charts_ws_enabled: bool

    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("RIG_STATS_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    rig_id = os.getenv("RIG_STATS_RIG_ID", "")
    rig_ip = os.getenv("RIG_STATS_RIG_IP", "")

    refresh_seconds = float(os.getenv("RIG_STATS_REFRESH_SECONDS", "10"))
    request_timeout_seconds = float(os.getenv("RIG_STATS_REQUEST_TIMEOUT_SECONDS", "30"))

    # The long window anchors on the short collection unless told otherwise.
    short_anchor_scan = os.getenv("RIG_STATS_SHORT_ANCHOR_SCAN", "short").strip().lower()
    long_anchor_scan = os.getenv("RIG_STATS_LONG_ANCHOR_SCAN", "short").strip().lower()

    return Settings(
        rig_id=rig_id,
        rig_ip=rig_ip,
        refresh_seconds=refresh_seconds,
        request_timeout_seconds=request_timeout_seconds,
        short_anchor_scan=short_anchor_scan,
        long_anchor_scan=long_anchor_scan,
        telemetry_ws_enabled=_flag("FF_TELEMETRY_WS_ENABLED", "true"),
        charts_ws_enabled=_flag("FF_CHARTS_WS_ENABLED", "true"),
        log_level=os.getenv("RIG_STATS_LOG_LEVEL", "INFO").upper(),
    )
