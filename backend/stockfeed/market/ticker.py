"""Timer-driven generate -> persist -> publish loop."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..errors import InvalidDestination, MarketFeedError
from .generator import PriceGenerator
from .models import PriceRecord
from .store import PriceStore

if TYPE_CHECKING:
    from ..messaging.publisher import PricePublisher

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """Outcome of one tick across all symbols."""

    published: list[PriceRecord] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class Ticker:
    """Advances every configured symbol once per `update_interval` seconds.

    Runs a background asyncio task that waits `initial_delay`, then calls
    tick() at a fixed rate. If a tick overruns the interval the next one
    starts immediately; ticks never overlap.

    Each symbol is handled independently: a failure to generate, persist or
    publish one symbol is logged and recorded in the TickReport, and the other
    symbols carry on. A per-symbol lock keeps at most one generation in flight
    for a symbol even when tick() is called concurrently.
    """

    def __init__(
        self,
        symbols: list[str] | tuple[str, ...],
        generator: PriceGenerator,
        store: PriceStore,
        publisher: PricePublisher,
        update_interval: float = 1.0,
        initial_delay: float = 2.0,
    ) -> None:
        self._symbols = list(symbols)
        self._generator = generator
        self._store = store
        self._publisher = publisher
        self._interval = update_interval
        self._initial_delay = initial_delay
        self._locks: dict[str, asyncio.Lock] = {}
        self._task: asyncio.Task | None = None
        self._stopping: asyncio.Event | None = None
        self.ticks = 0

    async def start(self) -> None:
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop(), name="ticker-loop")
        logger.info(
            "Ticker started: %d symbols, %.2fs interval, %.2fs initial delay",
            len(self._symbols),
            self._interval,
            self._initial_delay,
        )

    async def stop(self, drain_timeout: float = 1.0) -> None:
        """Let an in-flight tick finish for up to `drain_timeout` seconds, then cancel."""
        if self._stopping is not None:
            self._stopping.set()
        task = self._task
        if task and not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=drain_timeout)
            except asyncio.TimeoutError:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._task = None
        logger.info("Ticker stopped")

    def get_symbols(self) -> list[str]:
        return list(self._symbols)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> TickReport:
        """Advance every symbol once, concurrently."""
        report = TickReport()
        await asyncio.gather(*(self._tick_symbol(symbol, report) for symbol in self._symbols))
        self.ticks += 1
        if report.failures:
            logger.debug(
                "Tick %d: %d published, %d failed",
                self.ticks,
                len(report.published),
                len(report.failures),
            )
        return report

    # --- Internals ---

    async def _run_loop(self) -> None:
        """Core loop: wait, tick, sleep for what is left of the interval."""
        loop = asyncio.get_running_loop()
        if await self._wait_stopping(self._initial_delay):
            return
        while True:
            started = loop.time()
            try:
                await self.tick()
            except Exception:
                logger.exception("Ticker tick failed")
            remaining = self._interval - (loop.time() - started)
            if await self._wait_stopping(max(0.0, remaining)):
                return

    async def _wait_stopping(self, delay: float) -> bool:
        """Sleep up to `delay` seconds. Returns True if stop() was requested."""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def _tick_symbol(self, symbol: str, report: TickReport) -> None:
        lock = self._locks.setdefault(symbol, asyncio.Lock())
        if lock.locked():
            logger.debug("Skipping %s: previous tick still in flight", symbol)
            report.skipped.append(symbol)
            return
        async with lock:
            try:
                record = self._advance(symbol)
                await self._publisher.publish(record)
            except InvalidDestination as e:
                logger.error("Dropped price for %s: %s", symbol, e)
                report.failures[symbol] = e
            except MarketFeedError as e:
                logger.warning("Error publishing price for %s: %s", symbol, e)
                report.failures[symbol] = e
            except Exception as e:
                logger.exception("Unexpected error ticking %s", symbol)
                report.failures[symbol] = e
            else:
                report.published.append(record)

    def _advance(self, symbol: str) -> PriceRecord:
        """Read latest (seeding if needed), generate the next record, persist it."""
        previous = self._store.get_latest(symbol)
        if previous is None:
            previous = self._store.append(self._generator.seed(symbol))
            logger.info("Seeded %s at %.2f", symbol, previous.price)
        return self._store.append(self._generator.next(previous))
