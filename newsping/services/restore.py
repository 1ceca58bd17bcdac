"""
Restore articles from daily snapshots.

Only links without an active row are restored. A link whose only row is
soft-deleted is undeleted in place, since the unique link index leaves no
room for a second row.
"""
from datetime import date, timedelta
from typing import Iterator

import structlog
from sqlalchemy.exc import SQLAlchemyError

from newsping.exceptions import InvalidRangeError, SnapshotStorageError
from newsping.models.database import Database, DBArticle
from newsping.models.domain import ArticleSnapshot, RestoreResult
from newsping.repositories import ArticleRepository
from newsping.storage import SnapshotStore

logger = structlog.get_logger(__name__)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def snapshot_to_row(record: ArticleSnapshot) -> DBArticle:
    """New row from a snapshot record; gets a fresh id and no topic."""
    return DBArticle(
        topic_id=None,
        source=record.source,
        original_link=record.original_link,
        title=record.title,
        summary=record.summary or "",
        published_at=record.published_at,
        comment_count=record.comment_count,
        view_count=record.view_count,
        deleted=False,
    )


class RestoreService:
    """Replays snapshots into article storage."""

    def __init__(self, database: Database, store: SnapshotStore):
        self.database = database
        self.store = store

    async def restore_range(self, start: date, end: date) -> list[RestoreResult]:
        """
        Restore every day in ``[start, end]``, oldest first.

        A failure on one day is recorded on that day's result and the
        remaining days are still attempted.

        Raises:
            InvalidRangeError: ``start`` is after ``end``
        """
        if start > end:
            raise InvalidRangeError(start, end)

        results = []
        for day in iter_days(start, end):
            try:
                results.append(await self.restore_day(day))
            except (SnapshotStorageError, SQLAlchemyError) as e:
                logger.error("Article restore failed", date=day.isoformat(), error=str(e))
                results.append(RestoreResult(restored_date=day, error=str(e)))

        return results

    async def restore_day(self, day: date) -> RestoreResult:
        logger.info("Article restore started", date=day.isoformat())

        records = await self.store.read_snapshot(day)
        if not records:
            logger.info("Nothing to restore", date=day.isoformat())
            return RestoreResult(restored_date=day)

        # First occurrence of a link wins inside one snapshot
        by_link: dict[str, ArticleSnapshot] = {}
        for record in records:
            by_link.setdefault(record.original_link, record)

        async with self.database.async_session() as session:
            articles = ArticleRepository(session)
            rows = await articles.find_by_links(list(by_link))

            active = {row.original_link for row in rows if not row.deleted}
            deleted_rows = {row.original_link: row for row in rows if row.deleted}

            restored_ids: list[str] = []
            new_rows: list[DBArticle] = []

            for link, record in by_link.items():
                if link in active:
                    continue
                row = deleted_rows.get(link)
                if row is not None:
                    _undelete(row, record)
                    restored_ids.append(row.id)
                else:
                    new_rows.append(snapshot_to_row(record))

            try:
                await articles.insert_batch(new_rows)
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise

            restored_ids.extend(row.id for row in new_rows)

        logger.info("Article restore completed", date=day.isoformat(), count=len(restored_ids))
        return RestoreResult(
            restored_date=day,
            restored_article_ids=restored_ids,
            restored_article_count=len(restored_ids),
        )


def _undelete(row: DBArticle, record: ArticleSnapshot) -> None:
    row.deleted = False
    row.source = record.source
    row.title = record.title
    row.summary = record.summary or ""
    row.published_at = record.published_at
    row.comment_count = record.comment_count
    row.view_count = record.view_count
