"""SSE fallback stream for clients without WebSocket support."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .destinations import stock_destination
from .interface import MessageRelay
from .subscriptions import SubscriptionHandler

logger = logging.getLogger(__name__)


def create_stream_router(
    relay: MessageRelay,
    handler: SubscriptionHandler,
    destination_prefix: str,
) -> APIRouter:
    """Create the SSE streaming router for per-symbol price updates."""
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/stock/{symbol}")
    async def stream_stock(symbol: str, request: Request) -> StreamingResponse:
        """SSE endpoint for live updates of one symbol.

        The first event is the current snapshot (if the symbol has one), then
        every published record follows as:

            data: {"symbol": "AAPL", "price": 175.92, ...}
        """
        destination = stock_destination(symbol, destination_prefix)
        return StreamingResponse(
            _generate_events(relay, handler, destination, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    relay: MessageRelay,
    handler: SubscriptionHandler,
    destination: str,
    request: Request,
    poll_interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Yield SSE events for one destination until the client disconnects.

    Waits on the subscription for at most `poll_interval` seconds at a time so
    a disconnect is noticed even when the symbol is quiet.
    """
    # Tell the client to retry after 1 second if the connection drops
    yield "retry: 1000\n\n"

    client_ip = request.client.host if request.client else "unknown"
    subscription = await relay.subscribe(destination)
    logger.info("SSE client %s subscribed to %s", client_ip, destination)
    try:
        snapshot = handler.snapshot_for(destination)
        if snapshot is not None:
            yield f"data: {json.dumps(snapshot.to_dict())}\n\n"

        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break
            try:
                payload = await asyncio.wait_for(subscription.get(), timeout=poll_interval)
            except asyncio.TimeoutError:
                continue
            yield f"data: {json.dumps(payload)}\n\n"
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
    finally:
        await relay.unsubscribe(subscription)
