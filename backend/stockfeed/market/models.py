"""Data models for market data."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class PriceRecord:
    """Immutable valuation of a single symbol at a point in time.

    `change` and `change_percent` are relative to the previous record for the
    same symbol. `day_high`/`day_low` are running extrema since the symbol was
    seeded; `open_price`/`previous_close` are carried forward from the seed.
    """

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    volume: int = 0
    day_high: float | None = None
    day_low: float | None = None
    open_price: float | None = None
    previous_close: float | None = None
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    def to_dict(self) -> dict:
        """Serialize for JSON / STOMP / SSE transmission (camelCase wire keys)."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "timestamp": self.timestamp,
            "change": self.change,
            "changePercent": self.change_percent,
            "volume": self.volume,
            "dayHigh": self.day_high,
            "dayLow": self.day_low,
            "openPrice": self.open_price,
            "previousClose": self.previous_close,
        }
