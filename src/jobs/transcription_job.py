"""Daily job submitting untranscribed lessons to the transcription service."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.errors import ConfigurationError
from src.schemas.schemas import (
    AILessonData,
    AITenantData,
    TranscriptionBatch,
    TranscriptionJobRequest,
)
from src.services.ledger import TranscriptionLedger
from src.services.lesson_service import LessonService, lesson_service
from src.services.tenant_service import TenantService, tenant_service
from src.services.transcription_client import TranscriptionClient

logger = logging.getLogger(__name__)


class TranscriptionJob:
    """
    Submit each AI-enabled tenant's unprocessed lessons as one batch.

    At most one outstanding batch per tenant: a tenant that already has a
    batch in the ledger is skipped until the status checker prunes it.
    Submission failures are not retried within a run; the next daily run
    picks the tenant up again.
    """

    name = "transcription-job"

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        ledger: TranscriptionLedger,
        client: Optional[TranscriptionClient],
        tenants: TenantService = tenant_service,
        lessons: LessonService = lesson_service,
    ):
        if client is None:
            logger.error("TRANSCRIPTION_API_URL not configured")
        self._session_maker = session_maker
        self._ledger = ledger
        self._client = client
        self._tenants = tenants
        self._lessons = lessons

    async def execute(self):
        if self._client is None:
            logger.error("TRANSCRIPTION_API_URL not configured, skipping job execution")
            raise ConfigurationError("TRANSCRIPTION_API_URL not configured")

        try:
            async with self._session_maker() as db:
                tenants = await self._tenants.list_tenants_with_ai_enabled(db)
        except Exception as e:
            logger.error(f"Error fetching tenants with AI enabled: {e}")
            raise

        logger.info(f"Processing {len(tenants)} tenants with AI enabled")

        submitted = 0
        for tenant in tenants:
            try:
                if await self.process_tenant(tenant) is not None:
                    submitted += 1
            except Exception as e:
                logger.error(f"Error processing tenant {tenant.id}: {e}")

        logger.info(f"Submitted {submitted} transcription batches for {len(tenants)} tenants")

    async def process_tenant(self, tenant: AITenantData) -> Optional[TranscriptionBatch]:
        """
        Submit one tenant's pending lessons.

        Returns:
            The recorded batch, or None when the tenant was skipped
        """
        existing = await self._ledger.find_by_tenant(tenant.id)
        if existing is not None:
            logger.info(
                f"Tenant {tenant.id} already has a pending transcription job "
                f"{existing.batch_id}, skipping"
            )
            return None

        async with self._session_maker() as db:
            lessons = await self._lessons.list_unprocessed_lessons(db, tenant.id)

        if not lessons:
            logger.info(f"No unprocessed lessons for tenant {tenant.id}")
            return None

        logger.info(f"Found {len(lessons)} lessons to process for tenant {tenant.id}")

        payload = self.build_payload(tenant.id, lessons)
        accepted = await self._client.submit_batch(payload)

        batch = TranscriptionBatch(
            batch_id=accepted.job_id,
            tenant_id=tenant.id,
            lesson_ids=[lesson.id for lesson in lessons],
        )
        await self._ledger.save(batch)

        logger.info(f"Job {batch.batch_id} created successfully for tenant {tenant.id}")
        return batch

    @staticmethod
    def build_payload(tenant_id: str, lessons: list[AILessonData]) -> TranscriptionJobRequest:
        return TranscriptionJobRequest(tenant_id=tenant_id, lessons=lessons)
