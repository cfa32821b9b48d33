"""Destination naming and outbound validation."""

from __future__ import annotations

import logging

from ..errors import InvalidDestination

logger = logging.getLogger(__name__)

# Prefixes an outbound message may be addressed to:
#   /app/      application handlers
#   /topic/    broadcast topics
#   /queue/    point-to-point queues
#   /user/     user-private destinations
#   /exchange/ broker exchanges (RabbitMQ: /exchange/<name>/<routing-key>)
ALLOWED_PREFIXES: tuple[str, ...] = ("/exchange/", "/topic/", "/queue/", "/app/", "/user/")

# Per-symbol push address: RabbitMQ's built-in topic exchange, routing key stock.<SYMBOL>
STOCK_DESTINATION_PREFIX = "/exchange/amq.topic/stock."


def validate_destination(destination: str) -> str:
    """Return `destination` unchanged, or raise InvalidDestination."""
    if not destination or not destination.startswith(ALLOWED_PREFIXES):
        logger.error("Invalid destination format: %s", destination)
        raise InvalidDestination(destination)
    return destination


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def stock_destination(symbol: str, prefix: str = STOCK_DESTINATION_PREFIX) -> str:
    """Push address for a symbol, e.g. /exchange/amq.topic/stock.AAPL."""
    return f"{prefix}{normalize_symbol(symbol)}"


def symbol_from_destination(destination: str, prefix: str = STOCK_DESTINATION_PREFIX) -> str | None:
    """Inverse of stock_destination(). None for non-stock destinations."""
    if not destination.startswith(prefix):
        return None
    symbol = normalize_symbol(destination[len(prefix):])
    return symbol or None
