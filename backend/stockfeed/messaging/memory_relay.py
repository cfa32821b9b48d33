"""Single-process relay: fan-out happens in this process only."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import RelayUnavailable
from .channels import SubscriberRegistry, Subscription
from .destinations import validate_destination
from .interface import MessageRelay, RelayState

logger = logging.getLogger(__name__)


class InMemoryRelay(MessageRelay):
    """MessageRelay that delivers straight into local subscriber queues.

    For development and single-instance deployments: subscribers connected to
    another process never see these messages.
    """

    def __init__(self, max_pending: int = 100) -> None:
        self._registry = SubscriberRegistry(max_pending=max_pending)
        self._state = RelayState.DISCONNECTED

    async def start(self) -> None:
        self._state = RelayState.CONNECTED
        logger.info("In-memory relay started (single instance only, no cross-process fan-out)")

    async def stop(self) -> None:
        self._state = RelayState.DISCONNECTED
        logger.info("In-memory relay stopped")

    async def _send(self, destination: str, payload: dict[str, Any]) -> None:
        if self._state is not RelayState.CONNECTED:
            raise RelayUnavailable("In-memory relay is not started")
        delivered = self._registry.deliver(destination, payload)
        logger.debug("Delivered %s to %d local subscriber(s)", destination, delivered)

    async def subscribe(self, destination: str) -> Subscription:
        validate_destination(destination)
        return self._registry.add(destination)

    async def unsubscribe(self, subscription: Subscription) -> None:
        self._registry.remove(subscription)

    def heartbeat(self) -> bool:
        # Nothing to probe; the "connection" is this process.
        return self._state is RelayState.CONNECTED

    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry
