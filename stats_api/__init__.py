"""Rig stats service: telemetry transports, push pipeline and HTTP API."""
