"""Publishes generated price records to their per-symbol destination."""

from __future__ import annotations

import asyncio
import logging

from ..errors import RelayUnavailable
from ..market.models import PriceRecord
from .destinations import STOCK_DESTINATION_PREFIX, stock_destination
from .interface import MessageRelay

logger = logging.getLogger(__name__)


class PricePublisher:
    """Sends each PriceRecord to `<prefix><SYMBOL>` through the relay.

    A send that takes longer than `send_timeout` seconds is abandoned and
    reported as RelayUnavailable, so a stalled broker cannot hold up the
    ticker. The relay is told to drop its connection at the same time. Errors
    are raised to the caller, never logged here.
    """

    def __init__(
        self,
        relay: MessageRelay,
        destination_prefix: str = STOCK_DESTINATION_PREFIX,
        send_timeout: float = 2.0,
    ) -> None:
        self._relay = relay
        self._prefix = destination_prefix
        self._send_timeout = send_timeout

    def destination_for(self, symbol: str) -> str:
        return stock_destination(symbol, self._prefix)

    async def publish(self, record: PriceRecord) -> str:
        """Send `record`. Returns the destination it was sent to.

        Raises InvalidDestination or RelayUnavailable (both PublishError).
        """
        destination = self.destination_for(record.symbol)
        try:
            await asyncio.wait_for(
                self._relay.send(destination, record.to_dict()),
                timeout=self._send_timeout,
            )
        except asyncio.TimeoutError:
            reason = f"Send to {destination} timed out after {self._send_timeout:.1f}s"
            # The blocked send may still hold a worker thread; stop using that connection
            self._relay.mark_unavailable(reason)
            raise RelayUnavailable(reason) from None
        logger.debug("Published %s to %s price: %.2f", record.symbol, destination, record.price)
        return destination
