"""Fixtures for price generation tests."""

import numpy as np
import pytest

from stockfeed.market.generator import PriceGenerator


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def generator(clock):
    return PriceGenerator(rng=np.random.default_rng(1234), clock=clock)
