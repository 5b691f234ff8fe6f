"""Pydantic schemas for the transcription service wire format and the job ledger."""

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with the camelCase keys the platform uses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# ============== Store Schemas ==============


class AITenantData(CamelModel):
    """Tenant with the AI features flag enabled."""

    id: str
    name: str
    ai_enabled: bool
    bunny_library_id: Optional[str] = None
    bunny_library_api_key: Optional[str] = None


class AILessonData(CamelModel):
    """Lesson with its catalog hierarchy, as sent to the transcription service."""

    id: str
    name: str
    slug: str
    type: Optional[str] = None
    media_url: Optional[str] = None
    thumbnail: Optional[str] = None
    content: Optional[str] = None
    transcription_completed: bool = False
    module_id: str
    module_name: str
    section_id: str
    section_name: str
    course_id: str
    course_name: str
    vitrine_id: str
    vitrine_name: str


# ============== Transcription Service Schemas ==============


class LessonTranscriptionStatus(str, enum.Enum):
    """Per-lesson status reported by the transcription service."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TranscriptionJobRequest(CamelModel):
    """Batch submitted to ``POST /api/v2/extract-and-embed``."""

    tenant_id: str
    lessons: list[AILessonData]


class TranscriptionJobResponse(CamelModel):
    """Accepted-batch answer from the transcription service."""

    job_id: str = Field(..., min_length=1)
    status: Optional[str] = None
    video_ids: list[str] = []
    queued_jobs: int = 0
    trace_id: Optional[str] = None

    @field_validator("video_ids", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []


class TranscriptionLessonStatus(CamelModel):
    """Status of one lesson inside a batch."""

    id: Optional[str] = None
    lesson_id: str
    lesson_name: Optional[str] = None
    status: str
    chunks_created: Optional[int] = None
    processing_time_ms: Optional[int] = None
    error_message: Optional[str] = None


class TranscriptionJobStatusResponse(CamelModel):
    """Answer of ``GET /api/jobs/{jobId}/status``."""

    job_id: Optional[str] = None
    status: Optional[str] = None
    progress: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    lessons: list[TranscriptionLessonStatus] = []

    @field_validator("lessons", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []


# ============== Job Ledger Schemas ==============


class TranscriptionBatch(CamelModel):
    """
    One outstanding submission, stored under ``transcription:job:{batchId}``.

    Per-lesson progress is not stored here: the lesson's
    ``transcriptionCompleted`` column is the source of truth.
    """

    batch_id: str = Field(..., alias="jobId")
    tenant_id: str
    lesson_ids: list[str] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ============== Health Schemas ==============


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    redis: str
    scheduler: str
    scheduled_jobs: list[str] = []
