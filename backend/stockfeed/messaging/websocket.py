"""STOMP-over-WebSocket endpoint for browser clients."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from stomp.utils import Frame

from ..errors import InvalidDestination
from .channels import Subscription
from .frames import FrameError, error_frame, parse_frame, render_frame
from .interface import MessageRelay
from .subscriptions import SubscriptionHandler

logger = logging.getLogger(__name__)

SUBPROTOCOLS = ("v12.stomp", "v11.stomp", "v10.stomp")
SUPPORTED_VERSIONS = ("1.2", "1.1", "1.0")

_session_ids = itertools.count(1)


def create_websocket_router(relay: MessageRelay, handler: SubscriptionHandler) -> APIRouter:
    """Create the router for the native WebSocket STOMP endpoint."""
    router = APIRouter(tags=["streaming"])

    @router.websocket("/ws-stomp")
    async def stomp_endpoint(websocket: WebSocket) -> None:
        offered = websocket.scope.get("subprotocols") or []
        subprotocol = next((p for p in SUBPROTOCOLS if p in offered), None)
        await websocket.accept(subprotocol=subprotocol)
        await StompSession(websocket, relay, handler).run()

    return router


class StompSession:
    """One client connection speaking STOMP frames as WebSocket text messages.

    Supports CONNECT/STOMP, SUBSCRIBE, UNSUBSCRIBE and DISCONNECT. Every
    SUBSCRIBE to a stock destination is answered with the current snapshot
    (when one exists) before live updates start flowing. Clients cannot
    publish: SEND is answered with an ERROR frame. Any ERROR closes the session.
    """

    def __init__(self, websocket: WebSocket, relay: MessageRelay, handler: SubscriptionHandler) -> None:
        self._ws = websocket
        self._relay = relay
        self._handler = handler
        self._session_id = f"session-{next(_session_ids)}"
        self._subscriptions: dict[str, tuple[Subscription, asyncio.Task]] = {}
        self._connected = False
        self._message_ids = itertools.count(1)
        self._send_lock = asyncio.Lock()  # reader and pump tasks share the socket

    async def run(self) -> None:
        client = self._ws.client.host if self._ws.client else "unknown"
        logger.info("STOMP client connected: %s (%s)", client, self._session_id)
        try:
            while True:
                text = await self._ws.receive_text()
                if not await self._handle(text):
                    await self._ws.close()
                    break
        except WebSocketDisconnect:
            logger.info("STOMP client disconnected: %s (%s)", client, self._session_id)
        finally:
            await self._close_subscriptions()

    # --- Frame handling ---

    async def _handle(self, text: str) -> bool:
        """Process one inbound frame. Returns False when the session must end."""
        try:
            frame = parse_frame(text)
        except FrameError as e:
            await self._send_error("Malformed frame", str(e))
            return False
        if frame is None:
            return True  # heart-beat

        if frame.cmd in ("CONNECT", "STOMP"):
            return await self._on_connect(frame)
        if not self._connected:
            await self._send_error("Not connected", f"{frame.cmd} received before CONNECT")
            return False
        if frame.cmd == "SUBSCRIBE":
            return await self._on_subscribe(frame)
        if frame.cmd == "UNSUBSCRIBE":
            return await self._on_unsubscribe(frame)
        if frame.cmd == "DISCONNECT":
            await self._send_receipt(frame)
            return False
        if frame.cmd == "SEND":
            await self._send_error("Publishing is not supported", frame.headers.get("destination", ""))
            return False
        await self._send_error("Unknown command", frame.cmd)
        return False

    async def _on_connect(self, frame: Frame) -> bool:
        accepted = frame.headers.get("accept-version", "1.0").split(",")
        version = next((v for v in SUPPORTED_VERSIONS if v in accepted), None)
        if version is None:
            await self._send_error("Unsupported protocol version", f"Supported: {','.join(SUPPORTED_VERSIONS)}")
            return False
        self._connected = True
        await self._send(
            Frame(
                "CONNECTED",
                {
                    "version": version,
                    "session": self._session_id,
                    "server": "stockfeed",
                    "heart-beat": "0,0",
                },
            )
        )
        return True

    async def _on_subscribe(self, frame: Frame) -> bool:
        sub_id = frame.headers.get("id")
        destination = frame.headers.get("destination")
        if not sub_id or not destination:
            await self._send_error("SUBSCRIBE requires id and destination headers")
            return False
        if sub_id in self._subscriptions:
            await self._send_error("Duplicate subscription id", sub_id)
            return False
        try:
            subscription = await self._relay.subscribe(destination)
        except InvalidDestination as e:
            await self._send_error(str(e))
            return False

        try:
            await self._send_receipt(frame)
            snapshot = self._handler.snapshot_for(destination)
            if snapshot is not None:
                await self._send_message(sub_id, destination, snapshot.to_dict())
        except BaseException:
            # Not yet tracked by this session, so release it here
            await self._relay.unsubscribe(subscription)
            raise
        task = asyncio.create_task(self._pump(sub_id, subscription), name=f"stomp-pump-{sub_id}")
        self._subscriptions[sub_id] = (subscription, task)
        return True

    async def _on_unsubscribe(self, frame: Frame) -> bool:
        sub_id = frame.headers.get("id", "")
        entry = self._subscriptions.pop(sub_id, None)
        if entry is not None:
            await self._drop(*entry)
        await self._send_receipt(frame)
        return True

    # --- Outbound ---

    async def _pump(self, sub_id: str, subscription: Subscription) -> None:
        """Forward relay messages for one subscription to the socket."""
        try:
            async for payload in subscription:
                await self._send_message(sub_id, subscription.destination, payload)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug("Stopped forwarding %s for %s: %s", subscription.destination, self._session_id, e)

    async def _send_message(self, sub_id: str, destination: str, payload: dict[str, Any]) -> None:
        await self._send(
            Frame(
                "MESSAGE",
                {
                    "subscription": sub_id,
                    "message-id": f"{self._session_id}-{next(self._message_ids)}",
                    "destination": destination,
                    "content-type": "application/json",
                },
                json.dumps(payload),
            )
        )

    async def _send_receipt(self, frame: Frame) -> None:
        receipt = frame.headers.get("receipt")
        if receipt:
            await self._send(Frame("RECEIPT", {"receipt-id": receipt}))

    async def _send_error(self, message: str, detail: str = "") -> None:
        logger.warning("STOMP error for %s: %s %s", self._session_id, message, detail)
        await self._send(error_frame(message, detail))

    async def _send(self, frame: Frame) -> None:
        async with self._send_lock:
            await self._ws.send_text(render_frame(frame))

    # --- Cleanup ---

    async def _drop(self, subscription: Subscription, task: asyncio.Task) -> None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        await self._relay.unsubscribe(subscription)

    async def _close_subscriptions(self) -> None:
        entries = list(self._subscriptions.values())
        self._subscriptions.clear()
        for subscription, task in entries:
            await self._drop(subscription, task)
