"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api import health
from src.config import get_settings
from src.db.session import engine, init_db
from src.logging_config import configure_logging
from src.worker import build_worker, init_jobs, owns_schedule

settings = get_settings()

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler: starts the scheduler when the API process owns it."""
    # Startup
    logger.info("Starting Lesson Transcription Scheduler...")

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    worker = build_worker(settings)
    init_jobs(worker, settings)
    app.state.worker = worker

    if owns_schedule(settings, "api"):
        worker.scheduler.start()
    else:
        logger.info(
            f"Scheduler not started in API process "
            f"(enabled={settings.scheduler_enabled}, owner={settings.scheduler_owner})"
        )

    logger.info("Lesson Transcription Scheduler started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Lesson Transcription Scheduler...")
    await worker.scheduler.stop()
    await worker.close()
    await engine.dispose()
    logger.info("Server exited")


app = FastAPI(
    title="Lesson Transcription Scheduler",
    description="""
## Lesson transcription pipeline

Background service of the membership platform:
- **Daily submission**: lessons of AI-enabled tenants that are not yet
  transcribed are sent to the transcription service, one batch per tenant
- **Status checks**: every 10 minutes outstanding batches are polled and
  lessons are marked `transcriptionCompleted` as they finish

The HTTP surface only exposes health information.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# Include routers
app.include_router(health.router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with service info."""
    return {
        "service": "Lesson Transcription Scheduler",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8181,
        reload=settings.debug,
    )
