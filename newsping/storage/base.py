"""
Snapshot store interface for daily article backups.
"""
from abc import ABC, abstractmethod
from datetime import date

from newsping.models.domain import ArticleSnapshot


def snapshot_key(day: date) -> str:
    """Name of the snapshot object for a day: articles-YYYY-MM-DD.json"""
    return f"articles-{day.isoformat()}.json"


class SnapshotStore(ABC):
    """Durable, date-keyed storage for article snapshots."""

    @abstractmethod
    async def write_snapshot(self, day: date, records: list[ArticleSnapshot]) -> None:
        """
        Write the snapshot for ``day``, replacing any earlier one.

        Raises:
            SnapshotStorageError: the snapshot could not be written
        """
        pass

    @abstractmethod
    async def read_snapshot(self, day: date) -> list[ArticleSnapshot]:
        """
        Read the snapshot for ``day``.

        Returns:
            The stored records, or an empty list if there is no snapshot

        Raises:
            SnapshotStorageError: the snapshot exists but cannot be read
        """
        pass
