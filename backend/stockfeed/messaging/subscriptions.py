"""Subscribe-time snapshots: the first message a new subscriber receives."""

from __future__ import annotations

import logging

from ..market.models import PriceRecord
from ..market.store import PriceStore
from .destinations import STOCK_DESTINATION_PREFIX, normalize_symbol, symbol_from_destination

logger = logging.getLogger(__name__)


class SubscriptionHandler:
    """Answers a subscription with the latest stored record for its symbol.

    Read-only: never writes to the store and never touches the relay. A symbol
    with no record yet gets None; the ticker seeds it on its next run.
    """

    def __init__(self, store: PriceStore, destination_prefix: str = STOCK_DESTINATION_PREFIX) -> None:
        self._store = store
        self._prefix = destination_prefix

    def on_subscribe(self, symbol: str) -> PriceRecord | None:
        symbol = normalize_symbol(symbol)
        logger.info("Client subscribed to stock: %s", symbol)
        return self._store.get_latest(symbol)

    def snapshot_for(self, destination: str) -> PriceRecord | None:
        """Snapshot for a destination; None if it is not a stock destination."""
        symbol = symbol_from_destination(destination, self._prefix)
        if symbol is None:
            return None
        return self.on_subscribe(symbol)
