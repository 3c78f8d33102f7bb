"""Fixed-interval polling loops with explicit cancel handles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

LOGGER = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[None]]


class PollingLoop:
    """Run ``tick`` now and then every ``interval_seconds`` until stopped.

    A tick is awaited before the next sleep starts, so a loop never overlaps
    itself. There is no backoff: a failed tick waits for the next interval.
    Stopping cancels the pending sleep, or waits for an in-flight tick to
    finish; consumers check :attr:`active` before applying what that tick
    fetched.
    """

    def __init__(self, name: str, tick: Tick, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.tick = tick
        self.interval_seconds = interval_seconds
        self.ticks = 0
        self._task: asyncio.Task[None] | None = None
        self._in_tick = False
        self._stopped = False

    @property
    def active(self) -> bool:
        return not self._stopped

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        if self.running:
            raise RuntimeError(f"Polling loop {self.name} is already running")
        self._stopped = False
        self._task = asyncio.create_task(self._run(), name=f"poll-{self.name}")
        return self._task

    async def run_once(self) -> None:
        await self._guarded_tick()

    async def _run(self) -> None:
        while not self._stopped:
            await self._guarded_tick()
            if self._stopped:
                break
            await asyncio.sleep(self.interval_seconds)

    async def _guarded_tick(self) -> None:
        self.ticks += 1
        self._in_tick = True
        try:
            await self.tick()
        except Exception as exc:
            LOGGER.exception("Polling loop %s tick failed: %s", self.name, exc)
        finally:
            self._in_tick = False

    async def stop(self) -> None:
        self._stopped = True
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        if self._in_tick:
            LOGGER.info("Polling loop %s stopping after in-flight tick", self.name)
        else:
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        LOGGER.info("Stopped polling loop %s after %s ticks", self.name, self.ticks)
