from .handler import WebSocketTelemetrySource, serve_telemetry

__all__ = ["WebSocketTelemetrySource", "serve_telemetry"]
