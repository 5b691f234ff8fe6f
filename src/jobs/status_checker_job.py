"""Job polling the transcription service and reconciling lesson state."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.errors import ConfigurationError
from src.schemas.schemas import LessonTranscriptionStatus
from src.services.ledger import TranscriptionLedger
from src.services.lesson_service import LessonService, lesson_service
from src.services.transcription_client import TranscriptionClient

logger = logging.getLogger(__name__)


class TranscriptionStatusCheckerJob:
    """
    Reconcile every active batch in the ledger against the transcription service.

    COMPLETED lessons get ``transcriptionCompleted = true``; FAILED lessons are
    only logged and stay eligible for the next submission run. A batch leaves
    the ledger once none of its lessons is pending.
    """

    name = "transcription-status-checker-job"

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        ledger: TranscriptionLedger,
        client: Optional[TranscriptionClient],
        lessons: LessonService = lesson_service,
    ):
        if client is None:
            logger.error("TRANSCRIPTION_API_URL not configured")
        self._session_maker = session_maker
        self._ledger = ledger
        self._client = client
        self._lessons = lessons

    async def execute(self):
        if self._client is None:
            logger.error("TRANSCRIPTION_API_URL not configured, skipping job execution")
            raise ConfigurationError("TRANSCRIPTION_API_URL not configured")

        batch_ids = await self._ledger.list_active()
        if not batch_ids:
            logger.info("No pending jobs to check")
            return

        logger.info(f"Checking status of {len(batch_ids)} jobs")

        for batch_id in batch_ids:
            try:
                await self.check_batch(batch_id)
            except Exception as e:
                logger.error(f"Error checking job {batch_id}: {e}")

    async def check_batch(self, batch_id: str) -> bool:
        """
        Poll one batch and apply its lesson results.

        Returns:
            True if the batch left the ledger, False if it is still pending
        """
        batch = await self._ledger.load(batch_id)
        if batch is None:
            logger.warning(f"Job {batch_id} has no ledger record, dropping it from the job list")
            await self._ledger.remove(batch_id)
            return True

        status = await self._client.get_batch_status(batch_id)

        if not status.lessons and batch.lesson_ids:
            logger.warning(
                f"Job {batch_id}: status response lists no lessons "
                f"(service status: {status.status or 'unknown'}), keeping it for the next check"
            )
            return False

        pending = 0
        for lesson in status.lessons:
            if lesson.status == LessonTranscriptionStatus.COMPLETED.value:
                await self._mark_completed(lesson.lesson_id)
            elif lesson.status == LessonTranscriptionStatus.FAILED.value:
                logger.error(
                    f"Lesson {lesson.lesson_id} failed transcription: "
                    f"{lesson.error_message or 'unknown error'}"
                )
            else:
                pending += 1

        if pending:
            logger.info(
                f"Job {batch_id}: {pending} of {len(status.lessons)} lessons still pending"
            )
            return False

        reported = {lesson.lesson_id for lesson in status.lessons}
        missing = [lesson_id for lesson_id in batch.lesson_ids if lesson_id not in reported]
        if missing:
            logger.warning(
                f"Job {batch_id}: {len(missing)} lessons absent from status response, "
                f"treating them as removed"
            )

        await self._ledger.finish(batch_id)
        logger.info(f"Job {batch_id} removed from ledger (all lessons terminal)")
        return True

    async def _mark_completed(self, lesson_id: str):
        try:
            async with self._session_maker() as db:
                await self._lessons.set_transcription_completed(db, lesson_id, True)
                await db.commit()
        except Exception as e:
            logger.error(f"Error updating lesson {lesson_id}: {e}")
            return
        logger.info(f"Lesson {lesson_id} marked as transcriptionCompleted=true")
