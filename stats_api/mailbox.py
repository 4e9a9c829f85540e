"""Single-slot mailbox between the Telemetry Source and the consumer.

At most one push is pending. A push arriving while another is still pending
replaces it (the older one is stale by definition), so a slow aggregation
never builds up a backlog.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MailboxStats:
    """Mailbox counters."""
    delivered: int = 0
    taken: int = 0
    replaced: int = 0
    last_delivered_at: float = 0


class Mailbox(Generic[T]):
    """Bounded (size 1) drop-oldest mailbox for asyncio.

    Usage:
        mailbox = Mailbox[dict]()

        # Producer (transport)
        mailbox.put(push)

        # Consumer (single task)
        push = await mailbox.get()
    """

    def __init__(self) -> None:
        self._item: Optional[T] = None
        self._has_item = False
        self._event = asyncio.Event()
        self._stats = MailboxStats()

    def put(self, item: T) -> bool:
        """Deliver an item without blocking.

        Returns:
            True if a pending item was replaced
        """
        replaced = self._has_item
        if replaced:
            self._stats.replaced += 1
            logger.debug("[MAILBOX] Pending push replaced by a newer one")

        self._item = item
        self._has_item = True
        self._stats.delivered += 1
        self._stats.last_delivered_at = time.time()
        self._event.set()
        return replaced

    async def get(self) -> T:
        """Wait for the pending item and take it."""
        while not self._has_item:
            self._event.clear()
            await self._event.wait()
        return self._take()

    def get_nowait(self) -> Optional[T]:
        """Take the pending item, None when empty."""
        if not self._has_item:
            return None
        return self._take()

    def _take(self) -> T:
        item = self._item
        self._item = None
        self._has_item = False
        self._event.clear()
        self._stats.taken += 1
        return item  # type: ignore[return-value]

    @property
    def pending(self) -> bool:
        return self._has_item

    def get_stats(self) -> dict:
        return {
            "delivered": self._stats.delivered,
            "taken": self._stats.taken,
            "replaced": self._stats.replaced,
            "pending": self._has_item,
            "last_delivered_at": self._stats.last_delivered_at,
        }
