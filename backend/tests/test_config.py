"""Tests for Settings.from_env."""

import pytest

from stockfeed.config import Settings
from stockfeed.errors import ConfigError
from stockfeed.market.seed_prices import SEED_PRICES


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.broker_enabled is False
        assert settings.broker_host == "localhost"
        assert settings.broker_port == 61613
        assert settings.broker_virtual_host == "/"
        assert settings.broker_heartbeat_interval == 20.0
        assert settings.update_interval == 1.0
        assert settings.initial_delay == 2.0
        assert settings.volatility == 0.02
        assert settings.symbols == tuple(SEED_PRICES)
        assert settings.destination_prefix == "/exchange/amq.topic/stock."

    def test_overrides(self):
        settings = Settings.from_env(
            {
                "RABBITMQ_STOMP_ENABLED": "true",
                "RABBITMQ_STOMP_HOST": "rabbit",
                "RABBITMQ_STOMP_PORT": "61614",
                "RABBITMQ_STOMP_USERNAME": "feed",
                "RABBITMQ_STOMP_PASSWORD": "pw",
                "RABBITMQ_STOMP_VIRTUAL_HOST": "prices",
                "RABBITMQ_STOMP_HEARTBEAT_INTERVAL": "10000",
                "STOCK_EXCHANGE_UPDATE_INTERVAL": "500",
                "STOCK_EXCHANGE_INITIAL_DELAY": "0",
                "STOCK_EXCHANGE_VOLATILITY": "0.05",
                "LOG_LEVEL": "debug",
            }
        )
        assert settings.broker_enabled is True
        assert settings.broker_host == "rabbit"
        assert settings.broker_port == 61614
        assert settings.broker_username == "feed"
        assert settings.broker_password == "pw"
        assert settings.broker_virtual_host == "prices"
        assert settings.broker_heartbeat_interval == 10.0
        assert settings.update_interval == 0.5
        assert settings.initial_delay == 0.0
        assert settings.volatility == 0.05
        assert settings.log_level == "DEBUG"

    def test_symbols_parsed(self):
        settings = Settings.from_env({"STOCK_EXCHANGE_SYMBOLS": " aapl, MSFT,,aapl ,tsla"})
        assert settings.symbols == ("AAPL", "MSFT", "TSLA")

    def test_password_not_in_repr(self):
        assert "s3cret" not in repr(Settings(broker_password="s3cret"))

    @pytest.mark.parametrize(
        "env",
        [
            {"RABBITMQ_STOMP_ENABLED": "maybe"},
            {"RABBITMQ_STOMP_PORT": "http"},
            {"RABBITMQ_STOMP_PORT": "70000"},
            {"STOCK_EXCHANGE_UPDATE_INTERVAL": "0"},
            {"STOCK_EXCHANGE_INITIAL_DELAY": "-1"},
            {"STOCK_EXCHANGE_VOLATILITY": "1.5"},
            {"STOCK_EXCHANGE_VOLATILITY": "high"},
            {"STOCK_EXCHANGE_DESTINATION_PREFIX": "/bogus/stock."},
        ],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ConfigError):
            Settings.from_env(env)
