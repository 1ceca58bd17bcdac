"""
Daily batch job for article backup.

Runs once per day (configurable) and snapshots the previous day's
articles so they can be restored later.
"""
import asyncio
from datetime import date, datetime, timedelta
from typing import Optional

import structlog

from newsping.config import get_settings
from newsping.pipeline import Pipeline, create_pipeline

logger = structlog.get_logger()


def yesterday(today: Optional[date] = None) -> date:
    """The day before ``today``, in the configured timezone."""
    if today is None:
        today = datetime.now(get_settings().tz).date()
    return today - timedelta(days=1)


async def run_daily_backup(pipeline: Pipeline, day: Optional[date] = None) -> Optional[int]:
    """
    Back up one day of articles, the previous day by default.

    Failures are logged rather than raised so a scheduler keeps running;
    the next run covers its own day.
    """
    day = day or yesterday()
    start_time = datetime.utcnow()
    logger.info("Daily backup started", date=day.isoformat())

    try:
        count = await pipeline.backup.backup_by_date(day)
    except Exception as e:
        logger.error("Daily backup failed", date=day.isoformat(), error=str(e), exc_info=True)
        return None

    elapsed = (datetime.utcnow() - start_time).total_seconds()
    logger.info("Daily backup completed", date=day.isoformat(), count=count, elapsed_seconds=elapsed)
    return count


async def run_backup_job(day: Optional[date] = None, database_url: Optional[str] = None):
    """Entry point for running the backup job on its own."""
    settings = get_settings()
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})

    pipeline = create_pipeline(settings)
    await pipeline.database.create_tables()
    try:
        return await run_daily_backup(pipeline, day)
    finally:
        await pipeline.database.dispose()


if __name__ == "__main__":
    asyncio.run(run_backup_job())
