"""Tests for the read API and app wiring."""

import time

from fastapi.testclient import TestClient

from stockfeed.config import Settings
from stockfeed.main import create_app
from stockfeed.messaging.memory_relay import InMemoryRelay


class TestStocksApi:

    def test_symbols(self, store):
        app = create_app(Settings(symbols=("AAPL", "MSFT"), initial_delay=60.0), store=store)
        with TestClient(app) as client:
            response = client.get("/api/stocks/symbols")

        assert response.status_code == 200
        assert response.json() == ["AAPL", "MSFT"]

    def test_current_omits_symbols_without_records(self, store, make_record):
        record = store.append(make_record())
        app = create_app(Settings(symbols=("AAPL", "MSFT"), initial_delay=60.0), store=store)
        with TestClient(app) as client:
            response = client.get("/api/stocks/current")

        assert response.status_code == 200
        assert response.json() == [record.to_dict()]

    def test_health_reports_relay_state(self, store):
        app = create_app(Settings(initial_delay=60.0), store=store)
        with TestClient(app) as client:
            response = client.get("/api/stocks/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["relay"] == "connected"


class TestAppLifecycle:

    def test_defaults_to_in_memory_relay(self, store):
        app = create_app(Settings(initial_delay=60.0), store=store)
        assert isinstance(app.state.relay, InMemoryRelay)

    def test_ticker_populates_store(self, store):
        settings = Settings(symbols=("AAPL", "ZZZZ"), initial_delay=0.0, update_interval=0.02)
        app = create_app(settings, store=store)
        with TestClient(app) as client:
            deadline = time.monotonic() + 2.0
            while len(store) < 2 and time.monotonic() < deadline:
                time.sleep(0.02)
            response = client.get("/api/stocks/current")

        symbols = {item["symbol"] for item in response.json()}
        assert symbols == {"AAPL", "ZZZZ"}
        assert not app.state.ticker.running
        assert app.state.relay.heartbeat() is False
