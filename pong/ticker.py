from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Ticker:
    """Calls `step(dt)` at a fixed cadence until stopped.

    The cadence is kept against the loop clock, so a slow tick shortens the
    next sleep instead of drifting. A failing step is logged and the loop
    goes on.
    """

    def __init__(self, step: Callable[[float], Awaitable[object]], *, interval: float):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self._step = step
        self.interval = interval
        self.ticks = 0
        self.failures = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="pong-ticker")
        logger.info("Ticker started (%.0f ms)", self.interval * 1000)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Ticker stopped after %d ticks", self.ticks)

    async def run_once(self) -> None:
        try:
            await self._step(self.interval)
        except Exception:
            self.failures += 1
            logger.exception("Tick %d failed", self.ticks)
        finally:
            self.ticks += 1

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            await self.run_once()
            deadline += self.interval
            delay = deadline - loop.time()
            if delay < 0:
                # Fell behind; resync instead of bursting to catch up.
                deadline = loop.time()
                delay = 0
            await asyncio.sleep(delay)
