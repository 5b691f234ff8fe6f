"""Background worker: builds the transcription jobs and runs them on their schedules."""

import asyncio
import logging
import signal
from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import Settings, get_settings
from src.errors import ConfigurationError
from src.jobs.scheduler import Scheduler
from src.jobs.status_checker_job import TranscriptionStatusCheckerJob
from src.jobs.transcription_job import TranscriptionJob
from src.logging_config import configure_logging
from src.services.cache import Cache, create_cache
from src.services.ledger import TranscriptionLedger
from src.services.transcription_client import TranscriptionClient

logger = logging.getLogger(__name__)


@dataclass
class Worker:
    """Everything the scheduled jobs need, owned by one process."""

    scheduler: Scheduler
    cache: Cache
    ledger: TranscriptionLedger
    client: Optional[TranscriptionClient]
    transcription_job: TranscriptionJob
    status_checker_job: TranscriptionStatusCheckerJob

    async def close(self):
        if self.client is not None:
            await self.client.close()
        await self.cache.close()


def build_worker(
    settings: Optional[Settings] = None,
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    cache: Optional[Cache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Worker:
    """Construct the scheduler, ledger, client and both jobs (nothing is started)."""
    settings = settings or get_settings()
    if session_maker is None:
        from src.db.session import async_session_maker

        session_maker = async_session_maker

    cache = cache or create_cache(settings)
    ledger = TranscriptionLedger(cache, ttl_seconds=settings.ledger_ttl_seconds)

    try:
        client = TranscriptionClient.from_settings(settings, transport=transport)
    except ConfigurationError:
        client = None

    return Worker(
        scheduler=Scheduler(job_timeout=settings.job_timeout_seconds),
        cache=cache,
        ledger=ledger,
        client=client,
        transcription_job=TranscriptionJob(session_maker, ledger, client),
        status_checker_job=TranscriptionStatusCheckerJob(session_maker, ledger, client),
    )


def init_jobs(worker: Worker, settings: Optional[Settings] = None):
    """
    Register both transcription jobs on the worker's scheduler.

    Raises:
        ScheduleError: a configured cron expression is invalid
    """
    settings = settings or get_settings()
    scheduler = worker.scheduler

    try:
        scheduler.add_job(worker.transcription_job, settings.transcription_job_schedule)
    except Exception as e:
        logger.error(f"Error scheduling transcription job: {e}")
        raise

    try:
        scheduler.add_job(worker.status_checker_job, settings.status_checker_job_schedule)
    except Exception as e:
        logger.error(f"Error scheduling status checker job: {e}")
        raise


def owns_schedule(settings: Settings, process: str) -> bool:
    """Whether ``process`` ("worker" or "api") should fire the scheduled jobs."""
    return settings.scheduler_enabled and settings.scheduler_owner == process


async def run_forever(
    settings: Optional[Settings] = None,
    worker: Optional[Worker] = None,
    stop_event: Optional[asyncio.Event] = None,
):
    """Run the scheduler until SIGINT/SIGTERM (or ``stop_event``), then drain running jobs."""
    settings = settings or get_settings()
    worker = worker or build_worker(settings)
    init_jobs(worker, settings)

    if not owns_schedule(settings, "worker"):
        logger.warning(
            f"Scheduler not started in worker process "
            f"(enabled={settings.scheduler_enabled}, owner={settings.scheduler_owner})"
        )
        await worker.close()
        return

    if stop_event is None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

    worker.scheduler.start()
    logger.info("Transcription worker started")
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down transcription worker...")
        await worker.scheduler.stop()
        await worker.close()
        logger.info("Transcription worker exited")


def main():
    configure_logging()
    asyncio.run(run_forever())


if __name__ == "__main__":
    main()
