"""In-process cron scheduler for background jobs."""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from src.jobs.cron import CronSchedule

logger = logging.getLogger(__name__)

DEFAULT_JOB_TIMEOUT = 30 * 60.0


class Job(Protocol):
    """A named unit of work run by the scheduler."""

    @property
    def name(self) -> str: ...

    async def execute(self) -> None: ...


@dataclass(frozen=True)
class ScheduledJob:
    """Registration record: a job and the cron expression it runs on."""

    job: Job
    schedule: str
    cron: CronSchedule = field(repr=False, compare=False)


class Scheduler:
    """
    Runs registered jobs on their cron schedules inside the current event loop.

    Every due firing runs as its own task under a bounded deadline. A job's
    outcome is logged and never propagated, so one failing job cannot stop
    the scheduler or another job. ``stop()`` waits for in-flight firings to
    finish instead of cancelling them.
    """

    def __init__(
        self,
        job_timeout: float = DEFAULT_JOB_TIMEOUT,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.job_timeout = job_timeout
        self._clock = clock
        self._jobs: list[ScheduledJob] = []
        self._lock = threading.Lock()
        self._running = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._generation = 0
        self._drivers: list[asyncio.Task] = []
        self._inflight: set[asyncio.Task] = set()

    @property
    def jobs(self) -> list[ScheduledJob]:
        with self._lock:
            return list(self._jobs)

    @property
    def running(self) -> bool:
        return self._running

    def add_job(self, job: Job, schedule: str) -> ScheduledJob:
        """
        Register a job. Safe to call from any thread, before or after ``start()``.

        Raises:
            ScheduleError: the cron expression is invalid
        """
        cron = CronSchedule(schedule)
        scheduled = ScheduledJob(job=job, schedule=schedule, cron=cron)
        with self._lock:
            if self._running:
                self._spawn_driver(scheduled)
            self._jobs.append(scheduled)

        logger.info(f"Job scheduled: {job.name} with schedule: {schedule}")
        return scheduled

    def _spawn_driver(self, scheduled: ScheduledJob):
        # Caller holds self._lock
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if current is self._loop:
            self._drivers.append(self._loop.create_task(self._drive(scheduled)))
        else:
            self._loop.call_soon_threadsafe(self._attach_driver, scheduled, self._generation)

    def _attach_driver(self, scheduled: ScheduledJob, generation: int):
        """Runs on the scheduler loop for jobs registered from another thread."""
        with self._lock:
            # A stop() or a restart since registration already handled this job
            if not self._running or generation != self._generation:
                return
            self._drivers.append(self._loop.create_task(self._drive(scheduled)))

    def start(self):
        """Begin firing jobs. Must be called from a running event loop; no-op when running."""
        with self._lock:
            if self._running:
                return
            self._loop = asyncio.get_running_loop()
            self._generation += 1
            self._running = True
            self._drivers = [self._loop.create_task(self._drive(s)) for s in self._jobs]

        logger.info("Scheduler started")

    async def stop(self):
        """Stop firing jobs and wait for running invocations to return."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            drivers, self._drivers = self._drivers, []

        logger.info("Stopping scheduler...")
        for driver in drivers:
            driver.cancel()
        await asyncio.gather(*drivers, return_exceptions=True)

        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

        logger.info("Scheduler stopped")

    async def _drive(self, scheduled: ScheduledJob):
        """Sleep until each fire time of one job and dispatch a firing."""
        next_run = scheduled.cron.next_after(self._clock())
        while True:
            delay = (next_run - self._clock()).total_seconds()
            if delay > 0:
                await asyncio.sleep(delay)

            task = asyncio.create_task(self.run_job(scheduled.job))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

            next_run = scheduled.cron.next_after(max(next_run, self._clock()))

    async def run_job(self, job: Job, timeout: Optional[float] = None) -> bool:
        """
        Execute one firing of ``job`` under the deadline.

        Returns:
            True if the job finished without error
        """
        timeout = self.job_timeout if timeout is None else timeout
        logger.info(f"Executing job: {job.name}")
        try:
            await asyncio.wait_for(job.execute(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Job execution failed: {job.name} - deadline of {timeout:.0f}s exceeded")
            return False
        except Exception as e:
            logger.exception(f"Job execution failed: {job.name} - {e}")
            return False

        logger.info(f"Job executed successfully: {job.name}")
        return True
