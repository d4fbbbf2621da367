"""
plugins/countdown/scheduler.py

Asyncio-based tick source for the countdown engine.

One TickScheduler drives one countdown: a single background task that calls
``on_tick`` once per interval until cancelled. Deadlines are computed from the
loop clock so slow callbacks don't make the countdown drift.
"""

import asyncio
import logging
from typing import Callable, Optional


class TickScheduler:
    """
    Fires a callback at a fixed interval from a background task.

    ``cancel()`` is synchronous: once it returns, the callback will not be
    invoked again, even if the next sleep has already finished. The callback
    receives the scheduler itself so the owner can tell a stale ticker from
    the current one.

    Args:
        interval: Seconds between ticks (default: 1.0).
        on_tick: Callback called with this scheduler on every tick.
    """

    def __init__(
        self,
        interval: float = 1.0,
        on_tick: Optional[Callable[["TickScheduler"], None]] = None
    ):
        self.interval = interval
        self.on_tick = on_tick
        self.running = False
        self.tick_count = 0
        self._task: Optional[asyncio.Task] = None
        self.logger = logging.getLogger("plugin.countdown.scheduler")

    def start(self) -> None:
        """
        Start ticking.

        Must be called from a running event loop. Starting an already
        running scheduler is a no-op.
        """
        if self.running:
            self.logger.warning("Ticker already running")
            return

        self.running = True
        self._task = asyncio.create_task(self._tick_loop())
        self.logger.debug(f"Ticker started (interval: {self.interval}s)")

    def cancel(self) -> None:
        """Stop ticking immediately without waiting for the task to finish."""
        if not self.running:
            return

        self.running = False
        if self._task:
            self._task.cancel()
            self._task = None
        self.logger.debug(f"Ticker cancelled after {self.tick_count} ticks")

    async def stop(self) -> None:
        """
        Stop ticking and wait for the background task to finish.
        """
        task = self._task
        self.cancel()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _tick_loop(self) -> None:
        """
        Main loop: sleep until the next deadline, then tick.

        Errors raised by the callback are logged and ticking continues.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time()

        while self.running:
            deadline += self.interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))

            if not self.running:
                break

            self.tick_count += 1
            if self.on_tick is None:
                continue
            try:
                self.on_tick(self)
            except Exception as e:
                self.logger.exception(f"Error in tick callback: {e}")

        self.logger.debug("Tick loop ended")
