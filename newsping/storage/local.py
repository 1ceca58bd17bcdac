"""
Filesystem snapshot store: one JSON file per day.
"""
import asyncio
import os
from collections import Counter
from datetime import date
from pathlib import Path

import structlog
from pydantic import ValidationError

from newsping.exceptions import SnapshotStorageError
from newsping.models.domain import ArticleSnapshot, SnapshotAdapter
from newsping.storage.base import SnapshotStore, snapshot_key

logger = structlog.get_logger(__name__)


class LocalSnapshotStore(SnapshotStore):
    """
    Keeps ``articles-YYYY-MM-DD.json`` files under a backup directory.

    A write lands in a temporary file first; the previous snapshot is kept as
    ``.bak`` and the temporary file then replaces the target atomically.
    Writes for the same day are serialized; a day's lock is dropped once its
    last writer finishes.
    """

    def __init__(self, backup_dir: str | Path):
        self.backup_dir = Path(backup_dir).resolve()
        self._locks: dict[date, asyncio.Lock] = {}
        self._writers: Counter[date] = Counter()

    def path_for(self, day: date) -> Path:
        return self.backup_dir / snapshot_key(day)

    async def write_snapshot(self, day: date, records: list[ArticleSnapshot]) -> None:
        lock = self._locks.setdefault(day, asyncio.Lock())
        self._writers[day] += 1
        try:
            async with lock:
                await asyncio.to_thread(self._write, day, records)
        finally:
            self._writers[day] -= 1
            if not self._writers[day]:
                del self._writers[day]
                del self._locks[day]

    async def read_snapshot(self, day: date) -> list[ArticleSnapshot]:
        return await asyncio.to_thread(self._read, day)

    def _write(self, day: date, records: list[ArticleSnapshot]) -> None:
        target = self.path_for(day)
        tmp = target.with_name(target.name + ".tmp")

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(SnapshotAdapter.dump_json(records, indent=2))

            if target.exists():
                os.replace(target, target.with_name(target.name + ".bak"))

            os.replace(tmp, target)
        except OSError as e:
            if tmp.exists():
                try:
                    tmp.unlink()
                except OSError as cleanup_error:
                    logger.warning("Failed to remove temp snapshot", path=str(tmp), error=str(cleanup_error))
            logger.error("Snapshot write failed", path=str(target), error=str(e))
            raise SnapshotStorageError(target.name, str(e)) from e

        logger.info("Snapshot written", path=str(target), count=len(records))

    def _read(self, day: date) -> list[ArticleSnapshot]:
        path = self.path_for(day)
        if not path.exists():
            logger.info("Snapshot not found", path=str(path))
            return []

        try:
            return SnapshotAdapter.validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error("Snapshot read failed", path=str(path), error=str(e))
            raise SnapshotStorageError(path.name, str(e)) from e
