"""Tests for message relay factory."""

from stockfeed.config import Settings
from stockfeed.messaging.factory import create_message_relay
from stockfeed.messaging.interface import RelayState
from stockfeed.messaging.memory_relay import InMemoryRelay
from stockfeed.messaging.stomp_relay import StompBrokerRelay


class TestFactory:
    """Tests for create_message_relay factory."""

    def test_creates_in_memory_by_default(self):
        relay = create_message_relay(Settings())
        assert isinstance(relay, InMemoryRelay)

    def test_creates_broker_relay_when_enabled(self):
        relay = create_message_relay(Settings(broker_enabled=True))
        assert isinstance(relay, StompBrokerRelay)

    def test_broker_relay_receives_settings(self):
        settings = Settings(
            broker_enabled=True,
            broker_host="rabbit.internal",
            broker_port=61614,
            broker_username="feed",
            broker_password="s3cret",
            broker_virtual_host="prices",
            broker_heartbeat_interval=5.0,
        )
        relay = create_message_relay(settings)

        assert relay._host == "rabbit.internal"
        assert relay._port == 61614
        assert relay._username == "feed"
        assert relay._password == "s3cret"
        assert relay._virtual_host == "prices"
        assert relay._heartbeat_interval == 5.0

    def test_relay_is_unstarted(self):
        assert create_message_relay(Settings()).state is RelayState.DISCONNECTED
        assert create_message_relay(Settings(broker_enabled=True)).state is RelayState.DISCONNECTED
