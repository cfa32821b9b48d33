"""Tests for SubscriptionHandler snapshots."""

from stockfeed.messaging.subscriptions import SubscriptionHandler


class TestSubscriptionHandler:

    def test_returns_latest_record_unchanged(self, store, make_record):
        record = store.append(make_record())
        handler = SubscriptionHandler(store)
        assert handler.on_subscribe("AAPL") is record

    def test_symbol_is_case_insensitive(self, store, make_record):
        record = store.append(make_record())
        handler = SubscriptionHandler(store)
        assert handler.on_subscribe(" aapl ") is record

    def test_unknown_symbol_returns_none(self, store):
        handler = SubscriptionHandler(store)
        assert handler.on_subscribe("NVDA") is None

    def test_never_writes(self, store, make_record):
        store.append(make_record())
        handler = SubscriptionHandler(store)
        handler.on_subscribe("AAPL")
        handler.on_subscribe("NVDA")
        handler.on_subscribe("AAPL")

        assert len(store) == 1
        assert len(store.history("AAPL")) == 1
        assert "NVDA" not in store

    def test_snapshot_for_destination(self, store, make_record):
        record = store.append(make_record())
        handler = SubscriptionHandler(store)
        assert handler.snapshot_for("/exchange/amq.topic/stock.aapl") is record

    def test_snapshot_for_non_stock_destination(self, store, make_record):
        store.append(make_record())
        handler = SubscriptionHandler(store)
        assert handler.snapshot_for("/queue/prices") is None

    def test_custom_prefix(self, store, make_record):
        record = store.append(make_record())
        handler = SubscriptionHandler(store, destination_prefix="/topic/stock.")
        assert handler.snapshot_for("/topic/stock.AAPL") is record
        assert handler.snapshot_for("/exchange/amq.topic/stock.AAPL") is None
