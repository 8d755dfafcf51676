"""
Telemetry Runner

asyncio timers around the scheduler:
- tick loop (default 2.5s), each tick in its own task
- data-age loop (default 1s), cosmetic
- restart tasks, independent of both loops

A tick that raises is logged; the loop keeps going.
"""

import asyncio
import logging
from typing import Set

from schemas.trace import RequestLog
from telemetry.scheduler import TelemetryScheduler

logger = logging.getLogger(__name__)


class TelemetryRunner:
    """
    Drives a TelemetryScheduler on the running event loop.

    Ticks are not serialized: a slow live fetch may still be in flight
    when the next tick starts. The scheduler tolerates this.
    """

    def __init__(
        self,
        scheduler: TelemetryScheduler,
        tick_interval_seconds: float = 2.5,
        data_age_interval_seconds: float = 1.0,
    ):
        self._scheduler = scheduler
        self._tick_interval = tick_interval_seconds
        self._age_interval = data_age_interval_seconds
        self._loops: list = []
        self._inflight: Set[asyncio.Task] = set()

    @property
    def scheduler(self) -> TelemetryScheduler:
        return self._scheduler

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._loops)

    async def start(self) -> None:
        """Probe the feed once, then start both loops."""
        if self.running:
            return
        await self._scheduler.probe()
        self._loops = [
            asyncio.create_task(self._tick_loop(), name="telemetry-tick"),
            asyncio.create_task(self._age_loop(), name="telemetry-data-age"),
        ]
        logger.info(
            f"Telemetry runner started in {self._scheduler.mode.value} mode "
            f"(tick every {self._tick_interval}s)"
        )

    async def stop(self) -> None:
        """Cancel the loops and any in-flight ticks or restarts."""
        tasks = list(self._loops) + list(self._inflight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loops = []
        self._inflight.clear()
        logger.info("Telemetry runner stopped")

    def schedule_restart(self, confirmed: bool) -> RequestLog:
        """
        Begin a restart now and finish it after the scheduler's delay.

        Raises the scheduler's refusal errors synchronously.
        """
        record = self._scheduler.begin_restart(confirmed)
        self._track(asyncio.create_task(self._scheduler._finish_restart(), name="telemetry-restart"))
        return record

    def _track(self, task: asyncio.Task) -> None:
        self._inflight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Telemetry task {task.get_name()} failed: {error}")

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self._track(asyncio.create_task(self._scheduler.tick(), name="telemetry-tick-once"))

    async def _age_loop(self) -> None:
        while True:
            await asyncio.sleep(self._age_interval)
            try:
                self._scheduler.refresh_data_age()
            except Exception as e:
                logger.warning(f"Data age refresh failed: {e}")
