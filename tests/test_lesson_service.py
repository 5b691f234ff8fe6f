"""Tests for lesson queries and transcription-state updates."""

import pytest

from src.errors import AIDisabledError, LessonNotFoundError
from src.services.lesson_service import lesson_service


@pytest.mark.asyncio
async def test_lists_only_published_untranscribed_lessons(seed, db_session):
    await seed("T1", lessons=["L1", "L2", "L3", "L4"], completed=["L2"], unpublished=["L4"])
    await seed("T2", lessons=["L9"])

    lessons = await lesson_service.list_unprocessed_lessons(db_session, "T1")

    assert [lesson.id for lesson in lessons] == ["L1", "L3"]
    assert all(lesson.transcription_completed is False for lesson in lessons)
    assert lessons[0].module_name == "Module"
    assert lessons[0].vitrine_id == "T1-v"


@pytest.mark.asyncio
async def test_set_transcription_completed(seed, session_maker, lesson_flag):
    await seed("T1", lessons=["L1"])

    async with session_maker() as db:
        await lesson_service.set_transcription_completed(db, "L1", True)
        await db.commit()

    assert await lesson_flag("L1") is True


@pytest.mark.asyncio
async def test_set_transcription_completed_unknown_lesson(db_session):
    with pytest.raises(LessonNotFoundError):
        await lesson_service.set_transcription_completed(db_session, "missing", True)


@pytest.mark.asyncio
async def test_set_transcription_completed_ai_disabled(seed, db_session):
    await seed("T1", lessons=["L1"], ai_enabled=False)

    with pytest.raises(AIDisabledError) as exc_info:
        await lesson_service.set_transcription_completed(db_session, "L1", True)

    assert exc_info.value.tenant_id == "T1"
