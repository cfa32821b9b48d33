"""Seed prices for the price generator."""

from types import MappingProxyType

# Session-open prices for the default symbol list. Read-only after import.
SEED_PRICES = MappingProxyType(
    {
        "AAPL": 175.50,
        "GOOGL": 140.25,
        "MSFT": 380.75,
        "TSLA": 242.50,
        "AMZN": 155.80,
        "NVDA": 495.20,
        "META": 380.30,
        "NFLX": 460.90,
        "AMD": 145.60,
        "INTC": 43.75,
    }
)

# Base price for symbols not listed above
DEFAULT_BASE_PRICE = 100.0

# Per-tick move as a fraction of the current price
DEFAULT_VOLATILITY = 0.02

# Hard floor applied to every generated price
MIN_PRICE = 1.0

# Seed volume range and per-tick volume drift, in shares
SEED_VOLUME_RANGE = (1_000_000, 10_000_000)
VOLUME_DRIFT = 50_000
