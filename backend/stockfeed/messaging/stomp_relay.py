"""Relay to an external STOMP broker (RabbitMQ STOMP plugin) for multi-instance fan-out."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import Callable
from typing import Any

import stomp

from ..errors import RelayUnavailable
from .channels import SubscriberRegistry, Subscription
from .destinations import validate_destination
from .interface import MessageRelay, RelayState

logger = logging.getLogger(__name__)


class _BrokerListener:
    """stomp.py listener bound to one connection attempt.

    stomp.py invokes these on its receiver thread, so every callback is handed
    back to the relay's event loop. The generation number lets the relay ignore
    events from connections it has already replaced.
    """

    def __init__(self, relay: StompBrokerRelay, generation: int) -> None:
        self._relay = relay
        self._generation = generation

    def on_message(self, frame: Any) -> None:
        self._relay._call_threadsafe(
            self._relay._on_broker_message,
            self._generation,
            frame.headers.get("subscription"),
            frame.body,
        )

    def on_error(self, frame: Any) -> None:
        logger.warning("Broker ERROR frame: %s", frame.headers.get("message", frame.body))

    def on_disconnected(self) -> None:
        self._relay._call_threadsafe(
            self._relay._on_connection_lost, self._generation, "transport closed"
        )

    def on_heartbeat_timeout(self) -> None:
        self._relay._call_threadsafe(
            self._relay._on_connection_lost, self._generation, "heartbeat timeout"
        )


class StompBrokerRelay(MessageRelay):
    """MessageRelay backed by one STOMP system connection to an external broker.

    send() forwards to the broker, which fans out to every subscribed instance
    (this one included). Local subscribers are registered here; the relay holds
    one broker subscription per destination in use and re-creates them after
    every reconnect.

    State machine:
        DISCONNECTED -> CONNECTING -> CONNECTED
        CONNECTED -> (heartbeat timeout | transport error) -> DISCONNECTED
    Leaving CONNECTED schedules reconnection with exponential backoff
    (reconnect_initial, doubling, capped at reconnect_max) until stop().
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 61613,
        username: str = "guest",
        password: str = "guest",
        virtual_host: str = "/",
        heartbeat_interval: float = 20.0,
        reconnect_initial: float = 1.0,
        reconnect_max: float = 30.0,
        max_pending: int = 100,
        connection_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._virtual_host = virtual_host
        self._heartbeat_interval = heartbeat_interval
        self._reconnect_initial = reconnect_initial
        self._reconnect_max = reconnect_max
        self._connection_factory = connection_factory or self._stomp_connection

        self._registry = SubscriberRegistry(max_pending=max_pending)
        self._broker_subs: dict[str, str] = {}  # destination -> broker subscription id
        self._sub_destinations: dict[str, str] = {}  # broker subscription id -> destination
        self._sub_ids = itertools.count(1)

        self._state = RelayState.DISCONNECTED
        self._conn: Any = None
        self._generation = 0
        self._closing = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._watchdog_task: asyncio.Task | None = None
        self._close_tasks: set[asyncio.Task] = set()

    # --- Lifecycle ---

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._closing = False
        logger.info(
            "Broker relay: %s:%d user=%s vhost=%s heartbeat=%.1fs",
            self._host,
            self._port,
            self._username,
            self._virtual_host,
            self._heartbeat_interval,
        )
        if not await self.connect():
            self._schedule_reconnect()
        self._watchdog_task = asyncio.create_task(self._watchdog_loop(), name="broker-watchdog")

    async def stop(self) -> None:
        self._closing = True
        for task in (self._reconnect_task, self._watchdog_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._reconnect_task = None
        self._watchdog_task = None

        conn = self._conn
        self._conn = None
        self._generation += 1
        self._state = RelayState.DISCONNECTED
        self._broker_subs.clear()
        self._sub_destinations.clear()
        if conn is not None:
            await asyncio.to_thread(self._close_quietly, conn)
        if self._close_tasks:
            await asyncio.gather(*self._close_tasks)
        logger.info("Broker relay stopped")

    async def connect(self) -> bool:
        """Make one connection attempt. Returns True once CONNECTED."""
        if self._state is RelayState.CONNECTED:
            return True
        self._state = RelayState.CONNECTING
        self._generation += 1
        generation = self._generation
        try:
            conn = await asyncio.to_thread(self._open_connection, generation)
        except Exception as e:
            if generation == self._generation:
                self._state = RelayState.DISCONNECTED
            logger.warning("Broker connection to %s:%d failed: %s", self._host, self._port, e)
            return False

        if self._closing or generation != self._generation:
            await asyncio.to_thread(self._close_quietly, conn)
            return False

        self._conn = conn
        self._state = RelayState.CONNECTED
        self._broker_subs.clear()
        self._sub_destinations.clear()
        for destination in self._registry.destinations():
            if self._state is not RelayState.CONNECTED:
                break
            await self._broker_subscribe(destination)
        if self._state is not RelayState.CONNECTED:
            return False
        logger.info("Connected to broker at %s:%d", self._host, self._port)
        return True

    # --- MessageRelay API ---

    async def _send(self, destination: str, payload: dict[str, Any]) -> None:
        conn = self._conn
        if self._state is not RelayState.CONNECTED or conn is None:
            raise RelayUnavailable(f"Broker relay is {self._state.value}")
        body = json.dumps(payload)
        try:
            await asyncio.to_thread(
                conn.send, destination=destination, body=body, content_type="application/json"
            )
        except Exception as e:
            self._on_connection_lost(self._generation, f"send failed: {e}")
            raise RelayUnavailable(f"Broker send to {destination} failed: {e}") from e

    async def subscribe(self, destination: str) -> Subscription:
        validate_destination(destination)
        first = destination not in self._registry
        subscription = self._registry.add(destination)
        # While disconnected the broker subscription is made on reconnect
        if first and self._state is RelayState.CONNECTED:
            await self._broker_subscribe(destination)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        if not self._registry.remove(subscription):
            return
        sub_id = self._broker_subs.pop(subscription.destination, None)
        if sub_id is None:
            return
        self._sub_destinations.pop(sub_id, None)
        conn = self._conn
        if self._state is RelayState.CONNECTED and conn is not None:
            try:
                await asyncio.to_thread(conn.unsubscribe, id=sub_id)
            except Exception as e:
                self._on_connection_lost(self._generation, f"unsubscribe failed: {e}")

    def mark_unavailable(self, reason: str) -> None:
        """Drop the current connection and reconnect, e.g. after a stalled send."""
        self._on_connection_lost(self._generation, reason)

    def heartbeat(self) -> bool:
        conn = self._conn
        return self._state is RelayState.CONNECTED and conn is not None and bool(conn.is_connected())

    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    # --- Internals ---

    def _stomp_connection(self) -> Any:
        heartbeat_ms = int(self._heartbeat_interval * 1000)
        return stomp.Connection(
            [(self._host, self._port)],
            heartbeats=(heartbeat_ms, heartbeat_ms),
            vhost=self._virtual_host,
            reconnect_attempts_max=1,  # Reconnection is driven by this relay
        )

    def _open_connection(self, generation: int) -> Any:
        """Blocking connect. Runs in a worker thread."""
        conn = self._connection_factory()
        conn.set_listener("stockfeed-relay", _BrokerListener(self, generation))
        conn.connect(self._username, self._password, wait=True)
        return conn

    @staticmethod
    def _close_quietly(conn: Any) -> None:
        try:
            conn.disconnect()
        except Exception as e:
            logger.debug("Ignoring error while closing broker connection: %s", e)

    async def _broker_subscribe(self, destination: str) -> None:
        conn = self._conn
        if conn is None:
            return
        sub_id = f"sub-{next(self._sub_ids)}"
        self._broker_subs[destination] = sub_id
        self._sub_destinations[sub_id] = destination
        try:
            await asyncio.to_thread(conn.subscribe, destination=destination, id=sub_id, ack="auto")
        except Exception as e:
            self._on_connection_lost(self._generation, f"subscribe to {destination} failed: {e}")

    def _call_threadsafe(self, callback: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(callback, *args)

    def _on_broker_message(self, generation: int, sub_id: str | None, body: Any) -> None:
        if generation != self._generation or sub_id is None:
            return
        destination = self._sub_destinations.get(sub_id)
        if destination is None:
            return
        try:
            payload = json.loads(body)
        except (TypeError, ValueError) as e:
            logger.warning("Dropping undecodable broker message on %s: %s", destination, e)
            return
        self._registry.deliver(destination, payload)

    def _on_connection_lost(self, generation: int, reason: str) -> None:
        if generation != self._generation or self._state is not RelayState.CONNECTED:
            return
        logger.warning("Broker connection lost (%s); reconnecting", reason)
        stale = self._conn
        self._conn = None
        self._state = RelayState.DISCONNECTED
        self._generation += 1
        self._schedule_reconnect(stale)

    def _schedule_reconnect(self, stale: Any = None) -> None:
        if self._closing or (self._reconnect_task and not self._reconnect_task.done()):
            # The running reconnect loop never sees `stale`, so close it here
            if stale is not None:
                self._close_in_background(stale)
            return
        self._reconnect_task = asyncio.create_task(
            self._reconnect_loop(stale), name="broker-reconnect"
        )

    def _close_in_background(self, conn: Any) -> None:
        task = asyncio.create_task(asyncio.to_thread(self._close_quietly, conn), name="broker-close")
        self._close_tasks.add(task)
        task.add_done_callback(self._close_tasks.discard)

    async def _reconnect_loop(self, stale: Any = None) -> None:
        if stale is not None:
            await asyncio.to_thread(self._close_quietly, stale)
        delay = self._reconnect_initial
        while not self._closing:
            await asyncio.sleep(delay)
            if await self.connect():
                return
            delay = min(delay * 2, self._reconnect_max)
            logger.info("Next broker reconnect attempt in %.1fs", delay)

    async def _watchdog_loop(self) -> None:
        """Catch dead connections stomp.py did not report."""
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            conn = self._conn
            if self._state is RelayState.CONNECTED and conn is not None and not conn.is_connected():
                self._on_connection_lost(self._generation, "connection no longer alive")
