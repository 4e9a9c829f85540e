"""TelemetrySource - base interface for telemetry transports.

A Telemetry Source delivers pushes for one rig and accepts the poll requests
that trigger them. The engine never talks to it directly: pushes go through
the mailbox, requests come from the poller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping

from ..schemas import RigInfoRequest


class TelemetrySource(ABC):
    """Common interface for every telemetry transport."""

    @abstractmethod
    async def send_request(self, request: RigInfoRequest) -> None:
        """Send a ``getRigInfo`` poll upstream."""

    @abstractmethod
    async def receive(self) -> Mapping[str, Any]:
        """Wait for the next raw push.

        Raises:
            TelemetrySourceClosed: the source went away
            MalformedTelemetryMessage: the frame could not be decoded
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""

    @property
    @abstractmethod
    def transport_name(self) -> str:
        """Transport name: websocket, ..."""

    @property
    def stats(self) -> Dict[str, Any]:
        return {}


class TelemetrySourceClosed(Exception):
    """The Telemetry Source connection is gone."""


class MalformedTelemetryMessage(ValueError):
    """A frame from the Telemetry Source is not valid JSON."""
