"""Health check and system info routes."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import get_settings
from src.db.session import get_db
from src.schemas.schemas import HealthResponse

router = APIRouter(tags=["System"])

settings = get_settings()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the service and its dependencies.",
)
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns the status of:
    - Database connection
    - Redis (job ledger) connection
    - Transcription scheduler
    """
    worker = getattr(request.app.state, "worker", None)

    # Check database
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        db_status = "error"

    # Check ledger cache
    redis_status = "unknown"
    if worker is not None:
        redis_status = "ok" if await worker.cache.ping() else "error"

    scheduler_status = "stopped"
    scheduled_jobs: list[str] = []
    if worker is not None:
        scheduler_status = "running" if worker.scheduler.running else "stopped"
        scheduled_jobs = [f"{s.job.name} ({s.schedule})" for s in worker.scheduler.jobs]

    overall_status = "healthy"
    if "error" in (db_status, redis_status):
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version="1.0.0",
        database=db_status,
        redis=redis_status,
        scheduler=scheduler_status,
        scheduled_jobs=scheduled_jobs,
    )


@router.get(
    "/v1/info",
    summary="Service information",
    description="Get general information about the service.",
)
async def service_info():
    """Get service information."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "environment": settings.app_env,
        "transcription_api_configured": settings.transcription_configured,
        "scheduler_owner": settings.scheduler_owner,
        "schedules": {
            "transcription-job": settings.transcription_job_schedule,
            "transcription-status-checker-job": settings.status_checker_job_schedule,
        },
        "documentation": "/docs",
    }
