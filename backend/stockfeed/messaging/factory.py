"""Factory for creating message relays."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .interface import MessageRelay

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


def create_message_relay(settings: Settings) -> MessageRelay:
    """Create the relay selected by configuration.

    - RABBITMQ_STOMP_ENABLED true  -> StompBrokerRelay (multi-instance fan-out)
    - Otherwise                    -> InMemoryRelay (single instance only)

    Returns an unstarted relay. Caller must await relay.start().
    """
    if settings.broker_enabled:
        from .stomp_relay import StompBrokerRelay

        logger.info(
            "Message relay: external STOMP broker at %s:%d (vhost %s)",
            settings.broker_host,
            settings.broker_port,
            settings.broker_virtual_host,
        )
        return StompBrokerRelay(
            host=settings.broker_host,
            port=settings.broker_port,
            username=settings.broker_username,
            password=settings.broker_password,
            virtual_host=settings.broker_virtual_host,
            heartbeat_interval=settings.broker_heartbeat_interval,
        )
    else:
        from .memory_relay import InMemoryRelay

        logger.info("Message relay: in-memory (single instance, no scaling)")
        return InMemoryRelay()
