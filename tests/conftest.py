"""Pytest configuration and fixtures."""

import json
import re
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.db.models import Course, Lesson, Module, Section, Tenant, Vitrine
from src.db.session import Base, get_db
from src.main import app
from src.services.cache import MemoryCache
from src.services.ledger import TranscriptionLedger
from src.services.transcription_client import TranscriptionClient

# Test database URL (in-memory SQLite shared through a static pool)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TRANSCRIPTION_API_URL = "http://transcription.test"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with the platform tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def seed(session_maker):
    """
    Insert a tenant with a one-branch catalog (vitrine/course/section/module).

    Lessons are created in the given order; ``completed`` lists lessons that
    are already transcribed and ``unpublished`` lessons hidden from students.
    """

    async def _seed(
        tenant_id: str,
        lessons=(),
        ai_enabled: bool = True,
        completed=(),
        unpublished=(),
    ):
        async with session_maker() as db:
            db.add(Tenant(id=tenant_id, name=f"Tenant {tenant_id}", ai_enabled=ai_enabled))
            db.add(Vitrine(id=f"{tenant_id}-v", name=f"Vitrine {tenant_id}", tenant_id=tenant_id, order=1))
            db.add(Course(id=f"{tenant_id}-c", name="Course", vitrine_id=f"{tenant_id}-v", order=1))
            db.add(Section(id=f"{tenant_id}-s", name="Section", course_id=f"{tenant_id}-c", order=1))
            db.add(Module(id=f"{tenant_id}-m", name="Module", section_id=f"{tenant_id}-s", order=1))
            for position, lesson_id in enumerate(lessons):
                db.add(
                    Lesson(
                        id=lesson_id,
                        name=f"Lesson {lesson_id}",
                        slug=lesson_id.lower(),
                        type="video",
                        media_url=f"https://cdn.test/{lesson_id}.mp4",
                        order=position,
                        module_id=f"{tenant_id}-m",
                        published=lesson_id not in unpublished,
                        transcription_completed=lesson_id in completed,
                    )
                )
            await db.commit()

    return _seed


@pytest.fixture
def lesson_flag(session_maker):
    """Read a lesson's transcriptionCompleted flag from a fresh session."""

    async def _flag(lesson_id: str) -> bool:
        async with session_maker() as db:
            result = await db.execute(
                select(Lesson.transcription_completed).where(Lesson.id == lesson_id)
            )
            return result.scalar_one()

    return _flag


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def ledger(cache: MemoryCache) -> TranscriptionLedger:
    return TranscriptionLedger(cache)


class FakeTranscriptionService:
    """In-process stand-in for the external service, served via httpx.MockTransport."""

    def __init__(self):
        self.submissions: list[dict] = []
        self.status_requests: list[str] = []
        self.statuses: dict[str, list[dict]] = {}
        self.submit_failures: dict[str, int] = {}
        self.status_failures: dict[str, int] = {}
        self._next_id = 0

    def set_status(self, batch_id: str, **lessons: str):
        """Program the per-lesson statuses returned for ``batch_id``."""
        self.statuses[batch_id] = [
            {
                "id": f"{batch_id}-{lesson_id}",
                "lessonId": lesson_id,
                "lessonName": f"Lesson {lesson_id}",
                "status": status,
                "errorMessage": "audio track missing" if status == "FAILED" else None,
            }
            for lesson_id, status in lessons.items()
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == "/api/v2/extract-and-embed":
            body = json.loads(request.content)
            self.submissions.append(body)
            failure = self.submit_failures.get(body["tenantId"])
            if failure:
                return httpx.Response(failure, text="upstream unavailable")
            self._next_id += 1
            return httpx.Response(
                202,
                json={
                    "jobId": f"B{self._next_id}",
                    "status": "QUEUED",
                    "videoIds": [lesson["id"] for lesson in body["lessons"]],
                    "queuedJobs": len(body["lessons"]),
                    "traceId": f"trace-{self._next_id}",
                },
            )

        match = re.fullmatch(r"/api/jobs/([^/]+)/status", request.url.path)
        if request.method == "GET" and match:
            batch_id = match.group(1)
            self.status_requests.append(batch_id)
            failure = self.status_failures.get(batch_id)
            if failure:
                return httpx.Response(failure, text="job not found")
            lessons = self.statuses.get(batch_id, [])
            return httpx.Response(
                200,
                json={
                    "jobId": batch_id,
                    "status": "PROCESSING",
                    "progress": 0,
                    "total": len(lessons),
                    "startedAt": "2026-10-17T22:00:00Z",
                    "completedAt": None,
                    "lessons": lessons,
                },
            )

        return httpx.Response(404, text="no route")


@pytest.fixture
def transcription_service() -> FakeTranscriptionService:
    return FakeTranscriptionService()


@pytest_asyncio.fixture
async def transcription_client(transcription_service) -> AsyncGenerator[TranscriptionClient, None]:
    client = TranscriptionClient(
        TRANSCRIPTION_API_URL,
        transport=httpx.MockTransport(transcription_service.handler),
    )
    yield client
    await client.close()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client for the FastAPI app."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
