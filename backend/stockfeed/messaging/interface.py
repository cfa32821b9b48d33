"""Abstract interface for message relays."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Any

from .channels import Subscription
from .destinations import validate_destination


class RelayState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MessageRelay(ABC):
    """Contract for the transport that fans published messages out to subscribers.

    Publishers call send(); client sessions call subscribe()/unsubscribe() and
    read from the returned Subscription. Whether fan-out stays in this process
    or goes through an external broker is invisible to both.

    Lifecycle:
        relay = create_message_relay(settings)
        await relay.start()
        sub = await relay.subscribe("/exchange/amq.topic/stock.AAPL")
        await relay.send("/exchange/amq.topic/stock.AAPL", {...})
        await relay.unsubscribe(sub)
        await relay.stop()
    """

    async def send(self, destination: str, payload: dict[str, Any]) -> None:
        """Validate the destination and hand the payload to the transport.

        Raises InvalidDestination for a disallowed address and RelayUnavailable
        when the transport cannot take the message right now.
        """
        validate_destination(destination)
        await self._send(destination, payload)

    @abstractmethod
    async def _send(self, destination: str, payload: dict[str, Any]) -> None:
        """Transport-specific send for an already validated destination."""

    @abstractmethod
    async def start(self) -> None:
        """Bring the transport up. Must be called once before send()."""

    @abstractmethod
    async def stop(self) -> None:
        """Release the transport. Safe to call multiple times."""

    @abstractmethod
    async def subscribe(self, destination: str) -> Subscription:
        """Register a local subscriber for `destination`."""

    @abstractmethod
    async def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a local subscriber. No-op if already removed."""

    def mark_unavailable(self, reason: str) -> None:
        """Report that the transport stopped responding.

        Connection-backed relays drop the connection and reconnect. Relays with
        no connection to lose ignore this.
        """

    @abstractmethod
    def heartbeat(self) -> bool:
        """Liveness probe: True if send() is currently expected to succeed."""

    @property
    @abstractmethod
    def state(self) -> RelayState:
        """Current connection state."""
