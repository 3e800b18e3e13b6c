"""
Background jobs for the waitlist engine.

Two periodic loops run side by side:

    timeout sweep   every TIMEOUT_SWEEP_SECONDS  (expire offers, re-offer slots)
    waitlist scan   every SCAN_INTERVAL_SECONDS  (first run after STARTUP_DELAY_SECONDS)

Each iteration runs in a worker thread so a slow store never blocks the
event loop. A failing iteration is logged and the loop keeps going.

Usage:
    runner = CronRunner(waitlist_service)
    await runner.run_forever()
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from salon_scheduler.config import CronConfig, settings
from salon_scheduler.waitlist import WaitlistService

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class CronRunner:
    """Schedules the timeout sweep and the periodic scan on asyncio."""

    def __init__(
        self,
        waitlist: WaitlistService,
        config: CronConfig = settings.cron,
        sleep_fn: SleepFn = asyncio.sleep,
    ) -> None:
        self.waitlist = waitlist
        self.config = config
        self.sleep_fn = sleep_fn
        self._tasks: set[asyncio.Task] = set()

    async def run_job(self, name: str, job: Callable[[], Any]) -> Optional[Any]:
        """Run one iteration of a job. Errors are logged, never raised."""
        try:
            return await asyncio.to_thread(job)
        except Exception:
            logger.exception("Cron job '%s' failed", name)
            return None

    async def run_periodic(
        self,
        name: str,
        job: Callable[[], Any],
        interval: float,
        initial_delay: float = 0,
        max_runs: Optional[int] = None,
    ) -> int:
        """
        Run ``job`` every ``interval`` seconds.

        Args:
            name: Label used in log lines.
            job: Synchronous callable to run.
            interval: Seconds between the end of one run and the next.
            initial_delay: Seconds to wait before the first run.
            max_runs: Stop after this many runs (None runs until cancelled).

        Returns:
            Number of runs completed.
        """
        runs = 0
        if initial_delay > 0:
            await self.sleep_fn(initial_delay)
        while max_runs is None or runs < max_runs:
            await self.run_job(name, job)
            runs += 1
            logger.debug("Cron job '%s' completed run %d", name, runs)
            if max_runs is not None and runs >= max_runs:
                break
            await self.sleep_fn(interval)
        return runs

    def start(self) -> list[asyncio.Task]:
        """Launch both loops as tasks on the running event loop."""
        if self._tasks:
            return list(self._tasks)
        loops = [
            self.run_periodic(
                "timeout_sweep",
                self.waitlist.handle_timeouts,
                self.config.timeout_sweep_seconds,
            ),
            self.run_periodic(
                "waitlist_scan",
                self.waitlist.scan,
                self.config.scan_interval_seconds,
                initial_delay=self.config.startup_delay_seconds,
            ),
        ]
        for coro in loops:
            task = asyncio.create_task(coro)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        logger.info(
            "Cron started: sweep every %ss, scan every %ss",
            self.config.timeout_sweep_seconds, self.config.scan_interval_seconds,
        )
        return list(self._tasks)

    async def stop(self) -> None:
        """Cancel the loops and wait for them to finish."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Cron stopped")

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def run_forever(self) -> None:
        tasks = self.start()
        try:
            await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            await self.stop()
            raise
