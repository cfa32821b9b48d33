"""Bounded random-walk price generator."""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Mapping
from types import MappingProxyType

import numpy as np

from ..errors import GenerationError
from .models import PriceRecord
from .seed_prices import (
    DEFAULT_BASE_PRICE,
    DEFAULT_VOLATILITY,
    MIN_PRICE,
    SEED_PRICES,
    SEED_VOLUME_RANGE,
    VOLUME_DRIFT,
)


class PriceGenerator:
    """Produces the next PriceRecord for a symbol from its previous one.

    Math:
        raw_change = U[-1, 1) * price * volatility
        new_price  = max(MIN_PRICE, price + raw_change)

    The floor keeps every price >= 1.0, so the next division by the previous
    price is always safe. Volume drifts by U{-50000, 49999} and is clamped at 0.

    The generator holds no per-symbol state: the same previous record, random
    source and clock always yield the same result.
    """

    def __init__(
        self,
        volatility: float = DEFAULT_VOLATILITY,
        base_prices: Mapping[str, float] = SEED_PRICES,
        default_base_price: float = DEFAULT_BASE_PRICE,
        rng: np.random.Generator | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if volatility < 0:
            raise ValueError(f"volatility must be >= 0, got {volatility}")
        self._volatility = volatility
        self._base_prices = MappingProxyType(dict(base_prices))
        self._default_base_price = default_base_price
        self._rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock

    @property
    def volatility(self) -> float:
        return self._volatility

    def base_price(self, symbol: str) -> float:
        """Session-open price for a symbol, falling back to the default."""
        return self._base_prices.get(symbol, self._default_base_price)

    def seed(self, symbol: str) -> PriceRecord:
        """Build the first record for a symbol that has no history yet."""
        base = self.base_price(symbol)
        low, high = SEED_VOLUME_RANGE
        return PriceRecord(
            symbol=symbol,
            price=base,
            change=0.0,
            change_percent=0.0,
            volume=int(self._rng.integers(low, high)),
            day_high=base,
            day_low=base,
            open_price=base,
            previous_close=base,
            timestamp=self._clock(),
        )

    def next(self, previous: PriceRecord, volatility: float | None = None) -> PriceRecord:
        """Advance one step from `previous`. Raises GenerationError on bad state."""
        vol = self._volatility if volatility is None else volatility
        current = previous.price
        if not math.isfinite(current) or current < MIN_PRICE:
            raise GenerationError(
                f"{previous.symbol}: previous price {current!r} is below the {MIN_PRICE} floor"
            )

        draw = self._rng.uniform(-1.0, 1.0)
        raw_change = draw * current * vol
        new_price = max(MIN_PRICE, round(current + raw_change, 2))
        change = round(new_price - current, 4)

        high = previous.day_high if previous.day_high is not None else current
        low = previous.day_low if previous.day_low is not None else current
        volume = max(0, previous.volume + int(self._rng.integers(-VOLUME_DRIFT, VOLUME_DRIFT)))

        return PriceRecord(
            symbol=previous.symbol,
            price=new_price,
            change=change,
            change_percent=round(change / current * 100, 4),
            volume=volume,
            day_high=max(high, new_price),
            day_low=min(low, new_price),
            open_price=previous.open_price,
            previous_close=previous.previous_close,
            timestamp=max(self._clock(), previous.timestamp),
        )
