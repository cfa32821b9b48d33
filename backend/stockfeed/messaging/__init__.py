"""Message distribution subsystem.

Public API:
    MessageRelay         - Abstract fan-out transport
    RelayState           - Relay connection state
    create_message_relay - Factory that selects in-memory or broker relay
    PricePublisher       - Sends records to their per-symbol destination
    SubscriptionHandler  - Subscribe-time snapshot lookup
    validate_destination - Outbound destination check
"""

from .destinations import stock_destination, validate_destination
from .factory import create_message_relay
from .interface import MessageRelay, RelayState
from .publisher import PricePublisher
from .subscriptions import SubscriptionHandler

__all__ = [
    "MessageRelay",
    "RelayState",
    "create_message_relay",
    "PricePublisher",
    "SubscriptionHandler",
    "stock_destination",
    "validate_destination",
]
