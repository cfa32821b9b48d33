"""FastAPI application: wires the price pipeline and its endpoints.

Run locally:
    python -m stockfeed.main        (or the `stockfeed` console script)

Only one process should run the ticker for a given symbol set. With the
external broker enabled, more instances can be added to serve subscribers,
but each one runs its own ticker, so extra generators publish duplicate ticks.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import create_stocks_router
from .config import Settings
from .market.generator import PriceGenerator
from .market.store import InMemoryPriceStore, PriceStore
from .market.ticker import Ticker
from .messaging.factory import create_message_relay
from .messaging.interface import MessageRelay
from .messaging.publisher import PricePublisher
from .messaging.stream import create_stream_router
from .messaging.subscriptions import SubscriptionHandler
from .messaging.websocket import create_websocket_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    store: PriceStore | None = None,
    relay: MessageRelay | None = None,
) -> FastAPI:
    """Build the app. Every collaborator is created here once, at startup."""
    settings = settings or Settings.from_env()
    store = store if store is not None else InMemoryPriceStore()
    relay = relay if relay is not None else create_message_relay(settings)
    symbols = list(settings.symbols)

    generator = PriceGenerator(volatility=settings.volatility)
    publisher = PricePublisher(relay, destination_prefix=settings.destination_prefix)
    ticker = Ticker(
        symbols,
        generator=generator,
        store=store,
        publisher=publisher,
        update_interval=settings.update_interval,
        initial_delay=settings.initial_delay,
    )
    handler = SubscriptionHandler(store, destination_prefix=settings.destination_prefix)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await relay.start()
        await ticker.start()
        try:
            yield
        finally:
            await ticker.stop()
            await relay.stop()

    app = FastAPI(title="Stock Exchange Feed", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.relay = relay
    app.state.publisher = publisher
    app.state.ticker = ticker
    app.state.subscription_handler = handler

    app.include_router(create_stocks_router(symbols, store, relay))
    app.include_router(create_websocket_router(relay, handler))
    app.include_router(create_stream_router(relay, handler, settings.destination_prefix))
    logger.info("STOMP endpoint registered at /ws-stomp, SSE fallback at /api/stream/stock/{symbol}")
    return app


def main() -> None:
    """Console entry point: configure logging from the environment and serve."""
    import uvicorn

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
