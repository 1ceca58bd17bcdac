import time
from datetime import datetime
from typing import Callable, Optional

import httpx
import pytest
from sqlalchemy import delete, func, select

from newsping.models.database import Database, DBArticle, DBTopic
from newsping.models.domain import Topic
from newsping.services.data_ingestion.base import (
    ArticleFetcher,
    CandidateArticle,
    SourceConfig,
    SourceType,
)
from newsping.services.data_ingestion.rate_limiter import RateLimiter
from newsping.storage import LocalSnapshotStore


class StaticFetcher(ArticleFetcher):
    """Fetcher returning canned candidates, or raising a canned error."""

    def __init__(
        self,
        name: str,
        candidates: Optional[list[CandidateArticle]] = None,
        error: Optional[Exception] = None,
    ):
        super().__init__(SourceConfig(name=name, source_type=SourceType.RSS_FEED), rate_limiter=RateLimiter())
        self.candidates = candidates or []
        self.error = error
        self.calls: list[tuple[str, object]] = []

    async def fetch(self, topic, keyword):
        self.calls.append((topic.id, keyword))
        if self.error:
            raise self.error
        return [
            CandidateArticle(
                source=c.source,
                original_link=c.original_link,
                title=c.title,
                summary=c.summary,
                published_at=c.published_at,
            )
            for c in self.candidates
        ]


def make_candidate(
    link: str,
    topic_id: Optional[str] = None,
    source: str = "Chosun",
    title: str = "Headline",
    published_at: datetime = datetime(2024, 1, 15, 9, 0),
) -> CandidateArticle:
    return CandidateArticle(
        source=source,
        original_link=link,
        title=title,
        summary=f"Summary of {title}",
        published_at=published_at,
        topic_id=topic_id,
    )


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def count_articles(database: Database, include_deleted: bool = True) -> int:
    stmt = select(func.count()).select_from(DBArticle)
    if not include_deleted:
        stmt = stmt.where(DBArticle.deleted.is_(False))
    async with database.async_session() as session:
        return (await session.execute(stmt)).scalar_one()


async def all_articles(database: Database) -> list[DBArticle]:
    async with database.async_session() as session:
        result = await session.execute(select(DBArticle).order_by(DBArticle.original_link))
        return list(result.scalars().all())


async def delete_published_between(database: Database, start: datetime, end: datetime) -> int:
    async with database.async_session() as session:
        result = await session.execute(
            delete(DBArticle).where(DBArticle.published_at >= start, DBArticle.published_at < end)
        )
        await session.commit()
        return result.rowcount


def remaining(limiter: RateLimiter, source: str) -> int:
    """Requests ``source`` may still send in the current window."""
    limit = limiter.limit_for(source)
    now = time.monotonic()
    recent = sum(1 for t in limiter._sent[source] if now - t < limit.period_seconds)
    return limit.requests - recent


async def add_topic(database: Database, name: str, keywords: Optional[list[str]] = None) -> Topic:
    async with database.async_session() as session:
        row = DBTopic(name=name, keywords_json=keywords or [])
        session.add(row)
        await session.commit()
        return Topic(id=row.id, name=row.name, keywords=list(row.keywords_json))


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
async def topic(database):
    return await add_topic(database, "AI", ["GPT"])


@pytest.fixture
def store(tmp_path):
    return LocalSnapshotStore(tmp_path / "backup")


@pytest.fixture
def rate_limiter():
    return RateLimiter()
