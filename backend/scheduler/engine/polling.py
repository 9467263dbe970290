"""
Fixed-interval polling for the Match Centre session.
A cancellable periodic task whose ticks run independently of each other.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from shared.utils.logging import get_logger
from shared.utils.metrics import ACTIVE_POLLERS

logger = get_logger(__name__)

TickFn = Callable[[int], Awaitable[None]]


class PeriodicTask:
    """
    Runs ``tick(seq)`` immediately and then every ``interval_s`` seconds.

    Each tick is spawned as its own task, so a slow tick never delays the
    next one; ``seq`` increases by one per tick and lets the callee tell an
    older tick's late result from a newer one. Tick errors are logged and
    swallowed. ``stop()`` cancels the timer and every in-flight tick.
    """

    def __init__(self, tick: TickFn, interval_s: float, name: str = "poll") -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._tick = tick
        self._interval = interval_s
        self._name = name
        self._seq = 0
        self._runner: Optional[asyncio.Task[None]] = None
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    @property
    def last_seq(self) -> int:
        return self._seq

    def start(self) -> None:
        if self.running:
            return
        self._runner = asyncio.create_task(self._run(), name=f"{self._name}-timer")
        ACTIVE_POLLERS.inc()
        logger.debug("periodic_task_started", name=self._name, interval_s=self._interval)

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        pending = [t for t in (runner, *self._in_flight) if t is not None and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._in_flight.clear()
        if runner is not None:
            ACTIVE_POLLERS.dec()
            logger.debug("periodic_task_stopped", name=self._name, ticks=self._seq)

    async def _run(self) -> None:
        while True:
            self._spawn()
            await asyncio.sleep(self._interval)

    def _spawn(self) -> None:
        self._seq += 1
        task = asyncio.create_task(self._guarded(self._seq), name=f"{self._name}-tick-{self._seq}")
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _guarded(self, seq: int) -> None:
        try:
            await self._tick(seq)
        except Exception as exc:
            logger.error("periodic_tick_error", name=self._name, seq=seq, error=str(exc), exc_info=True)
