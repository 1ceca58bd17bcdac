"""
Daily backup of persisted articles into the snapshot store.
"""
from datetime import date, datetime, time, timedelta, timezone, tzinfo

import structlog

from newsping.exceptions import FutureDateError
from newsping.models.database import Database
from newsping.models.domain import ArticleSnapshot
from newsping.repositories import ArticleRepository
from newsping.storage import SnapshotStore

logger = structlog.get_logger(__name__)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[day 00:00, day+1 00:00)"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class BackupService:
    """Writes one snapshot per publish date."""

    def __init__(self, database: Database, store: SnapshotStore, tz: tzinfo = timezone.utc):
        self.database = database
        self.store = store
        self.tz = tz

    async def backup_by_date(self, day: date) -> int:
        """
        Snapshot every non-deleted article published on ``day``.

        An earlier snapshot for the same day is replaced. Storage failures
        propagate as SnapshotStorageError.

        Raises:
            FutureDateError: ``day`` is after today in the configured zone

        Returns:
            Number of articles written
        """
        today = datetime.now(self.tz).date()
        if day > today:
            raise FutureDateError(day, today)

        logger.info("Article backup started", date=day.isoformat())
        start, end = day_bounds(day)

        async with self.database.async_session() as session:
            rows = await ArticleRepository(session).find_published_between(
                start, end, exclude_deleted=True
            )
            records = [ArticleSnapshot.model_validate(row) for row in rows]

        await self.store.write_snapshot(day, records)

        logger.info("Article backup completed", date=day.isoformat(), count=len(records))
        return len(records)
