"""
Publish/subscribe hub for realtime change notifications.

Each WebSocket observer subscribes from its own event loop and receives a
bounded ``asyncio.Queue``.  ``publish`` may be called from any thread (sync
FastAPI endpoints run in a worker pool) and never blocks:

- the event is handed to each subscriber's loop with ``call_soon_threadsafe``;
- a subscriber whose queue is full misses the event;
- a subscriber whose loop is closed is dropped.

Delivery is best effort; nothing here raises into the publisher.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from functools import lru_cache
from itertools import count
from typing import Any

from app.config import get_settings

logger = logging.getLogger(__name__)

_subscriber_ids = count(1)


@dataclass(eq=False)
class Subscription:
    """One observer's mailbox."""

    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue
    id: int = field(default_factory=lambda: next(_subscriber_ids))
    dropped: int = 0

    def offer(self, event: dict[str, Any]) -> None:
        # Runs on the subscriber's own loop.
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Subscriber %d is lagging; dropped %r (%d dropped so far)",
                self.id,
                event.get("type"),
                self.dropped,
            )

    async def get(self) -> dict[str, Any]:
        return await self.queue.get()


class BroadcastHub:
    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register an observer; must be called from within its running loop."""
        subscription = Subscription(
            loop=asyncio.get_running_loop(),
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        with self._lock:
            self._subscribers.add(subscription)
        logger.info("Subscriber %d connected", subscription.id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            removed = subscription in self._subscribers
            self._subscribers.discard(subscription)
        if removed:
            logger.info("Subscriber %d disconnected", subscription.id)

    def publish(self, event: dict[str, Any]) -> int:
        """Queue *event* for every subscriber.

        Returns:
            Number of subscribers the event was handed to.
        """
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.loop.call_soon_threadsafe(subscription.offer, event)
            except RuntimeError:
                # Event loop closed: the observer is gone.
                logger.info("Dropping subscriber %d (event loop closed)", subscription.id)
                self.unsubscribe(subscription)
                continue
            delivered += 1
        return delivered


@lru_cache
def get_hub() -> BroadcastHub:
    return BroadcastHub(queue_size=get_settings().BROADCAST_QUEUE_SIZE)
