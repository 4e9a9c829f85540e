"""Telemetry Source transports."""

from .base import MalformedTelemetryMessage, TelemetrySource, TelemetrySourceClosed

__all__ = ["MalformedTelemetryMessage", "TelemetrySource", "TelemetrySourceClosed"]
