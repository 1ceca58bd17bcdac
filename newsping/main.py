"""
Main FastAPI application for newsping.
"""
from contextlib import asynccontextmanager

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI

from newsping.api.routes import router, set_pipeline
from newsping.config import get_settings
from newsping.core.logging import configure_logging
from newsping.jobs.daily_backup import run_daily_backup
from newsping.pipeline import create_pipeline

settings = get_settings()
configure_logging(settings.log_level, settings.log_json)

logger = structlog.get_logger()


def create_scheduler(pipeline) -> AsyncIOScheduler:
    """Collection on an interval, backup of the previous day on a cron."""
    scheduler = AsyncIOScheduler(timezone=settings.tz)

    scheduler.add_job(
        pipeline.collector.collect_articles,
        IntervalTrigger(minutes=settings.collect_interval_minutes),
        id="collect_articles",
        name="Article Collection",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    scheduler.add_job(
        run_daily_backup,
        CronTrigger(hour=settings.backup_hour, minute=settings.backup_minute),
        args=[pipeline],
        id="daily_backup",
        name="Daily Article Backup",
        replace_existing=True,
    )

    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    logger.info("Initializing database", url=settings.database_url)
    pipeline = create_pipeline(settings)
    await pipeline.database.create_tables()
    set_pipeline(pipeline)

    scheduler = create_scheduler(pipeline)
    scheduler.start()
    logger.info(
        "Scheduler started",
        collect_interval_minutes=settings.collect_interval_minutes,
        backup_time=f"{settings.backup_hour:02d}:{settings.backup_minute:02d} {settings.timezone}",
    )

    yield

    logger.info("Shutting down")
    scheduler.shutdown()
    await pipeline.database.dispose()


app = FastAPI(
    title="newsping",
    description="News collection, deduplication and backup pipeline.",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "newsping.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
