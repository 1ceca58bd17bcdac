"""
Tests for the filesystem snapshot store.
"""

import asyncio
from datetime import date, datetime

import pytest

from newsping.exceptions import SnapshotStorageError
from newsping.models.domain import ArticleSnapshot
from newsping.storage import LocalSnapshotStore, snapshot_key

DAY = date(2024, 1, 15)


def make_record(link: str, title: str = "Headline") -> ArticleSnapshot:
    return ArticleSnapshot(
        id=f"id-{link}",
        source="Chosun",
        original_link=link,
        title=title,
        published_at=datetime(2024, 1, 15, 9, 0),
        summary="Summary",
        comment_count=1,
        view_count=7,
    )


def test_snapshot_key():
    assert snapshot_key(DAY) == "articles-2024-01-15.json"


class TestLocalSnapshotStore:

    async def test_write_then_read(self, store):
        records = [make_record("https://news.example.com/1"), make_record("https://news.example.com/2")]

        await store.write_snapshot(DAY, records)

        assert await store.read_snapshot(DAY) == records
        assert store.path_for(DAY).name == "articles-2024-01-15.json"

    async def test_missing_snapshot_reads_empty(self, store):
        assert await store.read_snapshot(DAY) == []

    async def test_overwrite_keeps_previous_as_bak(self, store):
        await store.write_snapshot(DAY, [make_record("https://news.example.com/old")])
        await store.write_snapshot(DAY, [make_record("https://news.example.com/new")])

        records = await store.read_snapshot(DAY)
        assert [r.original_link for r in records] == ["https://news.example.com/new"]

        path = store.path_for(DAY)
        bak = path.with_name(path.name + ".bak")
        assert "https://news.example.com/old" in bak.read_text()
        assert not path.with_name(path.name + ".tmp").exists()

    async def test_concurrent_writes_for_same_day(self, store):
        await asyncio.gather(*[
            store.write_snapshot(DAY, [make_record(f"https://news.example.com/{i}")])
            for i in range(5)
        ])

        records = await store.read_snapshot(DAY)
        assert len(records) == 1
        assert store._locks == {}

    async def test_corrupt_snapshot_raises(self, store):
        path = store.path_for(DAY)
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        with pytest.raises(SnapshotStorageError) as exc_info:
            await store.read_snapshot(DAY)

        assert exc_info.value.key == "articles-2024-01-15.json"

    async def test_unwritable_directory_raises(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        store = LocalSnapshotStore(blocker)

        with pytest.raises(SnapshotStorageError):
            await store.write_snapshot(DAY, [make_record("https://news.example.com/1")])

        assert store._locks == {}

    async def test_locks_dropped_per_day(self, store):
        for day in (date(2024, 1, 14), DAY):
            await store.write_snapshot(day, [make_record(f"https://news.example.com/{day}")])

        assert store._locks == {}
        assert len(await store.read_snapshot(date(2024, 1, 14))) == 1
