"""Local subscriber channels and the destination -> subscribers registry."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator
from typing import Any

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


class Subscription:
    """One local subscriber's inbox for a single destination.

    Backed by a bounded queue. When a slow consumer lets it fill up, the
    oldest message is dropped so the newest price always gets through.
    """

    def __init__(self, destination: str, max_pending: int = 100) -> None:
        self.id = f"local-{next(_ids)}"
        self.destination = destination
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_pending)
        self.dropped = 0

    def deliver(self, payload: dict[str, Any]) -> None:
        """Enqueue without blocking. Must be called on the event loop thread."""
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.debug("Subscriber %s lagging on %s; dropped oldest message", self.id, self.destination)
        self._queue.put_nowait(payload)

    async def get(self) -> dict[str, Any]:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self

    async def __anext__(self) -> dict[str, Any]:
        return await self._queue.get()

    def __repr__(self) -> str:
        return f"Subscription(id={self.id!r}, destination={self.destination!r})"


class SubscriberRegistry:
    """destination -> set of local Subscriptions. Event-loop confined."""

    def __init__(self, max_pending: int = 100) -> None:
        self._subscribers: dict[str, set[Subscription]] = {}
        self._max_pending = max_pending

    def add(self, destination: str) -> Subscription:
        """Register a new subscription for `destination`."""
        subscription = Subscription(destination, max_pending=self._max_pending)
        self._subscribers.setdefault(destination, set()).add(subscription)
        return subscription

    def remove(self, subscription: Subscription) -> bool:
        """Drop a subscription. Returns True if it was the destination's last one."""
        subscribers = self._subscribers.get(subscription.destination)
        if not subscribers:
            return False
        subscribers.discard(subscription)
        if subscribers:
            return False
        del self._subscribers[subscription.destination]
        return True

    def deliver(self, destination: str, payload: dict[str, Any]) -> int:
        """Fan `payload` out to every subscriber of `destination`. Returns the count."""
        subscribers = self._subscribers.get(destination, ())
        for subscription in list(subscribers):
            subscription.deliver(payload)
        return len(subscribers)

    def destinations(self) -> list[str]:
        return list(self._subscribers)

    def count(self, destination: str | None = None) -> int:
        if destination is not None:
            return len(self._subscribers.get(destination, ()))
        return sum(len(s) for s in self._subscribers.values())

    def __contains__(self, destination: str) -> bool:
        return destination in self._subscribers
