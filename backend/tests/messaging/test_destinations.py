"""Tests for destination naming and validation."""

import pytest

from stockfeed.errors import InvalidDestination
from stockfeed.messaging.destinations import (
    stock_destination,
    symbol_from_destination,
    validate_destination,
)


class TestValidateDestination:

    @pytest.mark.parametrize(
        "destination",
        [
            "/topic/stock.AAPL",
            "/queue/prices",
            "/exchange/amq.topic/stock.AAPL",
            "/app/subscribe",
            "/user/queue/errors",
        ],
    )
    def test_allowed_prefixes(self, destination):
        assert validate_destination(destination) == destination

    @pytest.mark.parametrize(
        "destination",
        ["/bogus/stock.AAPL", "", "topic/stock.AAPL", "/topics/x", "/exchange", "stock.AAPL"],
    )
    def test_rejected(self, destination):
        with pytest.raises(InvalidDestination) as exc_info:
            validate_destination(destination)
        assert exc_info.value.destination == destination


class TestStockDestination:

    def test_default_prefix(self):
        assert stock_destination("AAPL") == "/exchange/amq.topic/stock.AAPL"

    def test_symbol_normalized(self):
        assert stock_destination("  aapl ") == "/exchange/amq.topic/stock.AAPL"

    def test_custom_prefix(self):
        assert stock_destination("MSFT", "/topic/stock.") == "/topic/stock.MSFT"

    def test_symbol_from_destination(self):
        assert symbol_from_destination("/exchange/amq.topic/stock.aapl") == "AAPL"
        assert symbol_from_destination("/topic/stock.MSFT", "/topic/stock.") == "MSFT"

    def test_symbol_from_other_destination(self):
        assert symbol_from_destination("/queue/prices") is None
        assert symbol_from_destination("/exchange/amq.topic/stock.") is None
