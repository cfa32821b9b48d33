"""Price stores: the latest-wins record keeper the ticker writes to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from threading import Lock

from ..errors import PersistenceError
from .models import PriceRecord


class PriceStore(ABC):
    """Contract for price persistence.

    Append-only: records are never mutated, and the most recently appended
    record for a symbol is its "latest". Implementations raise
    PersistenceError when a read or write cannot be served.
    """

    @abstractmethod
    def get_latest(self, symbol: str) -> PriceRecord | None:
        """Latest record for a symbol, or None if it was never stored."""

    @abstractmethod
    def append(self, record: PriceRecord) -> PriceRecord:
        """Store a new record and return it. It becomes the symbol's latest."""


class InMemoryPriceStore(PriceStore):
    """Thread-safe in-memory store keeping the latest record per symbol.

    Writers: the Ticker (one in-flight write per symbol).
    Readers: subscription snapshots, the read API.

    A bounded per-symbol history is kept for inspection; trimming it is the
    store's retention policy and never affects the latest record.
    """

    def __init__(self, history_size: int = 1000) -> None:
        self._latest: dict[str, PriceRecord] = {}
        self._history: dict[str, deque[PriceRecord]] = {}
        self._history_size = history_size
        self._lock = Lock()

    def get_latest(self, symbol: str) -> PriceRecord | None:
        with self._lock:
            return self._latest.get(symbol)

    def append(self, record: PriceRecord) -> PriceRecord:
        """Store `record` as the latest for its symbol.

        Rejects records older than the current latest, so a stale writer can
        never roll a symbol back in time.
        """
        with self._lock:
            current = self._latest.get(record.symbol)
            if current is not None and record.timestamp < current.timestamp:
                raise PersistenceError(
                    f"{record.symbol}: record at {record.timestamp} is older than "
                    f"latest at {current.timestamp}"
                )
            self._latest[record.symbol] = record
            history = self._history.get(record.symbol)
            if history is None:
                history = self._history[record.symbol] = deque(maxlen=self._history_size)
            history.append(record)
            return record

    def history(self, symbol: str) -> list[PriceRecord]:
        """Retained records for a symbol, oldest first."""
        with self._lock:
            return list(self._history.get(symbol, ()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._latest)

    def __contains__(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._latest
