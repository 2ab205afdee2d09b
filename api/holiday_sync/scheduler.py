"""
Recurring holiday sync task.

Runs once at startup, then every `interval_s` seconds. Runs never overlap:
a tick that arrives while a run is still in flight is skipped. There is no
retry or backoff; a failed run waits for the next tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

SyncRun = Callable[[], Awaitable[object]]


class HolidaySyncJob:
    def __init__(self, run: SyncRun, *, interval_s: float) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive.")
        self._run = run
        self._interval_s = interval_s
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """
        Execute one sync unless another is in flight. Returns True when a run
        actually happened. Failures are logged, never raised.
        """
        if self._lock.locked():
            logger.info("holiday_sync_skipped reason=in_flight")
            return False

        async with self._lock:
            try:
                await self._run()
            except Exception:
                logger.exception("holiday_sync_failed")
        return True

    async def _loop(self) -> None:
        logger.info("holiday_sync_loop_started interval_s=%s", self._interval_s)
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval_s)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="holiday-sync")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("holiday_sync_loop_stopped")
