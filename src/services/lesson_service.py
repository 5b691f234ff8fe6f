"""Lesson queries and transcription-state updates."""

from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import Course, Lesson, Module, Section, Tenant, Vitrine
from src.errors import AIDisabledError, LessonNotFoundError
from src.schemas.schemas import AILessonData


class LessonService:
    """Service for lessons as seen by the transcription pipeline."""

    async def list_unprocessed_lessons(
        self,
        db: AsyncSession,
        tenant_id: str,
    ) -> list[AILessonData]:
        """
        List a tenant's published, untranscribed lessons with their catalog hierarchy.

        Args:
            db: Database session
            tenant_id: Owning tenant

        Returns:
            Lessons in catalog order (vitrine, course, section, module, lesson)
        """
        query = (
            select(
                Lesson,
                Module.id.label("module_id"),
                Module.name.label("module_name"),
                Section.id.label("section_id"),
                Section.name.label("section_name"),
                Course.id.label("course_id"),
                Course.name.label("course_name"),
                Vitrine.id.label("vitrine_id"),
                Vitrine.name.label("vitrine_name"),
            )
            .join(Module, Lesson.module_id == Module.id)
            .join(Section, Module.section_id == Section.id)
            .join(Course, Section.course_id == Course.id)
            .join(Vitrine, Course.vitrine_id == Vitrine.id)
            .where(
                Vitrine.tenant_id == tenant_id,
                Lesson.published.is_(True),
                Lesson.transcription_completed.is_(False),
            )
            .order_by(
                func.coalesce(Vitrine.order, 0),
                func.coalesce(Course.order, 0),
                func.coalesce(Section.order, 0),
                func.coalesce(Module.order, 0),
                func.coalesce(Lesson.order, 0),
            )
        )

        result = await db.execute(query)
        lessons = []
        for row in result.all():
            lesson = row.Lesson
            lessons.append(
                AILessonData(
                    id=lesson.id,
                    name=lesson.name,
                    slug=lesson.slug,
                    type=lesson.type,
                    media_url=lesson.media_url,
                    thumbnail=lesson.thumbnail,
                    content=lesson.content,
                    transcription_completed=lesson.transcription_completed,
                    module_id=row.module_id,
                    module_name=row.module_name,
                    section_id=row.section_id,
                    section_name=row.section_name,
                    course_id=row.course_id,
                    course_name=row.course_name,
                    vitrine_id=row.vitrine_id,
                    vitrine_name=row.vitrine_name,
                )
            )
        return lessons

    async def set_transcription_completed(
        self,
        db: AsyncSession,
        lesson_id: str,
        completed: bool,
    ):
        """
        Set a lesson's transcriptionCompleted flag.

        Raises:
            LessonNotFoundError: the lesson does not exist
            AIDisabledError: the owning tenant no longer has AI enabled
        """
        result = await db.execute(
            select(Lesson.id, Tenant.id.label("tenant_id"), Tenant.ai_enabled)
            .join(Module, Lesson.module_id == Module.id)
            .join(Section, Module.section_id == Section.id)
            .join(Course, Section.course_id == Course.id)
            .join(Vitrine, Course.vitrine_id == Vitrine.id)
            .join(Tenant, Vitrine.tenant_id == Tenant.id)
            .where(Lesson.id == lesson_id)
        )
        row = result.one_or_none()
        if row is None:
            raise LessonNotFoundError(lesson_id)
        if not row.ai_enabled:
            raise AIDisabledError(row.tenant_id)

        await db.execute(
            update(Lesson)
            .where(Lesson.id == lesson_id)
            .values(
                transcription_completed=completed,
                updated_at=datetime.now(timezone.utc),
            )
        )


# Singleton instance
lesson_service = LessonService()
