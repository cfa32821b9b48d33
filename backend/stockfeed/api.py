"""Read-only REST endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from .market.store import PriceStore
from .messaging.interface import MessageRelay


def create_stocks_router(symbols: list[str], store: PriceStore, relay: MessageRelay) -> APIRouter:
    """Create the /api/stocks router over the configured symbols and the store."""
    router = APIRouter(prefix="/api/stocks", tags=["stocks"])

    @router.get("/symbols")
    async def get_symbols() -> list[str]:
        return list(symbols)

    @router.get("/current")
    async def get_current_prices() -> list[dict]:
        """Latest record per configured symbol; symbols never generated are omitted."""
        records = (store.get_latest(symbol) for symbol in symbols)
        return [record.to_dict() for record in records if record is not None]

    @router.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "message": "Stock exchange feed is running",
            "relay": relay.state.value,
        }

    return router
