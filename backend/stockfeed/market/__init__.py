"""Price generation subsystem.

Public API:
    PriceRecord         - Immutable price valuation dataclass
    PriceGenerator      - Bounded random-walk next-record generator
    PriceStore          - Abstract latest-wins record store
    InMemoryPriceStore  - Thread-safe in-memory PriceStore
    Ticker              - Timer-driven generate/persist/publish loop
    TickReport          - Per-tick outcome (published records, failures)
"""

from .generator import PriceGenerator
from .models import PriceRecord
from .store import InMemoryPriceStore, PriceStore
from .ticker import Ticker, TickReport

__all__ = [
    "PriceRecord",
    "PriceGenerator",
    "PriceStore",
    "InMemoryPriceStore",
    "Ticker",
    "TickReport",
]
