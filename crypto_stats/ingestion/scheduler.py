"""
Repeating timer that triggers the ingestion job at a fixed interval.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


def seconds_until_next_run(
    now: datetime, interval: float, align_to_wall_clock: bool = True
) -> float:
    """
    Compute the delay before the next scheduled run.

    Args:
        now: Current time
        interval: Interval between runs in seconds
        align_to_wall_clock: If True, runs fall on UTC multiples of the
            interval counted from the Unix epoch (every two hours means
            00:00, 02:00, ... UTC). Otherwise the full interval is used.

    Returns:
        Delay in seconds, always greater than zero
    """
    if not align_to_wall_clock:
        return interval

    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return interval - (now.timestamp() % interval)


class IngestionScheduler:
    """Fires a job immediately on start and then once per interval.

    Every run is spawned as its own task and the timer does not wait for it,
    so a run that outlasts the interval overlaps with the next one. Errors
    from a run are logged and never stop the timer.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval: float,
        align_to_wall_clock: bool = True,
    ) -> None:
        self._job = job
        self.interval = interval
        self.align_to_wall_clock = align_to_wall_clock
        self._timer_task: asyncio.Task | None = None
        self._running_jobs: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def running_jobs(self) -> int:
        return len(self._running_jobs)

    async def start(self) -> None:
        """Start the timer; the first run fires immediately."""
        if self.is_running:
            return

        logger.info(
            f"Starting ingestion scheduler with {self.interval}s interval "
            f"(aligned to wall clock: {self.align_to_wall_clock})"
        )
        self._timer_task = asyncio.create_task(self._timer_loop())

    async def wait(self) -> None:
        """Block until the timer is stopped."""
        if self._timer_task is not None:
            await asyncio.wait({self._timer_task})

    async def stop(self) -> None:
        """Stop the timer and cancel runs that are still in flight."""
        tasks = list(self._running_jobs)
        if self._timer_task is not None:
            tasks.append(self._timer_task)

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._timer_task = None
        self._running_jobs.clear()
        logger.info("Ingestion scheduler stopped")

    async def _timer_loop(self) -> None:
        try:
            while True:
                self._spawn_job()
                delay = seconds_until_next_run(
                    datetime.now(UTC), self.interval, self.align_to_wall_clock
                )
                logger.debug(f"Next ingestion run in {delay:.0f}s")
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            logger.info("Ingestion timer cancelled")
            raise

    def _spawn_job(self) -> None:
        task = asyncio.create_task(self._run_job())
        self._running_jobs.add(task)
        task.add_done_callback(self._running_jobs.discard)

    async def _run_job(self) -> None:
        try:
            await self._job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Ingestion run failed: {e}", exc_info=e)
