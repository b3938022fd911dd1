"""
Connection - the hub's view of one viewer's duplex channel.

The hub only ever calls deliver(), which enqueues onto a bounded outbox
without awaiting. A transport adapter (see workermap.api.routes.realtime)
drains the outbox with next_event().
"""

import asyncio
import logging
import uuid

from workermap.hub.events import HubEvent
from workermap.hub.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class Connection:
    """
    A subscriber attached to the hub.

    Holds the connection's own rate limiter and an outbox of pending events.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        *,
        connection_id: str | None = None,
        outbox_size: int = 1000,
    ) -> None:
        self.connection_id = connection_id or uuid.uuid4().hex[:12]
        self.limiter = limiter
        self._outbox: asyncio.Queue[HubEvent | None] = asyncio.Queue(maxsize=outbox_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: HubEvent) -> bool:
        """
        Enqueue an event without blocking.

        Returns:
            False if the connection is closed or its outbox is full
        """
        if self._closed:
            return False
        try:
            self._outbox.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Outbox full, dropping slow connection",
                extra={"connection_id": self.connection_id},
            )
            self.close()
            return False
        return True

    async def next_event(self) -> HubEvent | None:
        """Wait for the next event; None once the connection is closed and drained."""
        if self._closed and self._outbox.empty():
            return None
        return await self._outbox.get()

    def drain(self) -> list[HubEvent]:
        """Pop every queued event without waiting."""
        events: list[HubEvent] = []
        while not self._outbox.empty():
            event = self._outbox.get_nowait()
            if event is not None:
                events.append(event)
        return events

    def close(self) -> None:
        """Stop accepting events and wake any waiting reader."""
        if self._closed:
            return
        self._closed = True
        try:
            self._outbox.put_nowait(None)
        except asyncio.QueueFull:
            # Reader is behind; next_event() returns None once it empties the queue.
            pass

    def __repr__(self) -> str:
        return f"Connection(id={self.connection_id!r}, closed={self._closed})"
