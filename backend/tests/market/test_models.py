"""Tests for PriceRecord dataclass."""

import pytest

from stockfeed.market.models import PriceRecord


class TestPriceRecord:
    """Unit tests for the PriceRecord model."""

    def test_creation_defaults(self):
        """Test that optional fields default sensibly."""
        record = PriceRecord(symbol="AAPL", price=175.50, timestamp=1234567890.0)
        assert record.change == 0.0
        assert record.change_percent == 0.0
        assert record.volume == 0
        assert record.day_high is None
        assert record.open_price is None

    def test_to_dict_uses_wire_keys(self, make_record):
        """Test serialization to the camelCase wire format."""
        record = make_record(price=176.25, change=0.75, change_percent=0.4274, day_high=176.25)
        result = record.to_dict()

        assert result == {
            "symbol": "AAPL",
            "price": 176.25,
            "timestamp": 1_700_000_000.0,
            "change": 0.75,
            "changePercent": 0.4274,
            "volume": 5_000_000,
            "dayHigh": 176.25,
            "dayLow": 176.25,
            "openPrice": 176.25,
            "previousClose": 176.25,
        }

    def test_immutability(self, make_record):
        """Test that PriceRecord is immutable."""
        record = make_record()

        with pytest.raises(AttributeError):
            record.price = 200.00
