"""Exception types shared by the scheduler, jobs and services."""

from typing import Optional


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(AppError):
    """A required setting is missing or invalid."""


class ScheduleError(AppError):
    """Raised when a cron expression cannot be parsed."""

    def __init__(self, expression: str, reason: str):
        super().__init__(f"Invalid cron expression {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


class TranscriptionAPIError(AppError):
    """The external transcription service failed or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        if status_code is not None:
            message = f"{message}: status {status_code}, body: {body or ''}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LessonNotFoundError(AppError):
    """Raised when a lesson does not exist."""

    def __init__(self, lesson_id: str):
        super().__init__(f"Lesson {lesson_id} not found")
        self.lesson_id = lesson_id


class AIDisabledError(AppError):
    """Raised when the tenant owning a lesson does not have AI enabled."""

    def __init__(self, tenant_id: str):
        super().__init__(f"AI is not enabled for tenant {tenant_id}")
        self.tenant_id = tenant_id


class LedgerError(AppError):
    """The cache backing the job ledger could not be read or written."""
