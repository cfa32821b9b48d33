"""Pytest configuration and fixtures."""

import pytest

from stockfeed.market.models import PriceRecord
from stockfeed.market.store import InMemoryPriceStore


@pytest.fixture
def store():
    return InMemoryPriceStore()


@pytest.fixture
def make_record():
    """Factory for fully populated, seed-like PriceRecords."""

    def _make(symbol: str = "AAPL", price: float = 175.50, **overrides) -> PriceRecord:
        fields = {
            "symbol": symbol,
            "price": price,
            "change": 0.0,
            "change_percent": 0.0,
            "volume": 5_000_000,
            "day_high": price,
            "day_low": price,
            "open_price": price,
            "previous_close": price,
            "timestamp": 1_700_000_000.0,
        }
        fields.update(overrides)
        return PriceRecord(**fields)

    return _make
