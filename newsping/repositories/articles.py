from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsping.models.database import DBArticle

# Keeps IN (...) lists under SQLite's bound-parameter limit
_IN_CHUNK = 500


def _chunks(values: list[str], size: int = _IN_CHUNK) -> Iterable[list[str]]:
    for i in range(0, len(values), size):
        yield values[i:i + size]


class ArticleRepository:
    """Article queries. Callers own the transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, article_id: str) -> Optional[DBArticle]:
        return await self.session.get(DBArticle, article_id)

    async def exists_by_original_link(self, link: str) -> bool:
        result = await self.session.execute(
            select(DBArticle.id).where(DBArticle.original_link == link).limit(1)
        )
        return result.first() is not None

    async def find_existing_links(
        self,
        links: list[str],
        exclude_deleted: bool = False,
    ) -> set[str]:
        """Return the subset of ``links`` that already have a row."""
        existing: set[str] = set()
        unique_links = list(dict.fromkeys(links))

        for chunk in _chunks(unique_links):
            stmt = select(DBArticle.original_link).where(DBArticle.original_link.in_(chunk))
            if exclude_deleted:
                stmt = stmt.where(DBArticle.deleted.is_(False))
            result = await self.session.execute(stmt)
            existing.update(result.scalars().all())

        return existing

    async def find_by_links(self, links: list[str]) -> list[DBArticle]:
        rows: list[DBArticle] = []
        for chunk in _chunks(list(dict.fromkeys(links))):
            result = await self.session.execute(
                select(DBArticle).where(DBArticle.original_link.in_(chunk))
            )
            rows.extend(result.scalars().all())
        return rows

    async def insert(self, article: DBArticle) -> DBArticle:
        self.session.add(article)
        await self.session.flush()
        return article

    async def insert_batch(self, articles: list[DBArticle]) -> list[DBArticle]:
        if not articles:
            return []
        self.session.add_all(articles)
        await self.session.flush()
        return articles

    async def find_published_between(
        self,
        start: datetime,
        end: datetime,
        exclude_deleted: bool = True,
    ) -> list[DBArticle]:
        """Articles with ``start <= published_at < end``, oldest first."""
        stmt = select(DBArticle).where(
            DBArticle.published_at >= start,
            DBArticle.published_at < end,
        )
        if exclude_deleted:
            stmt = stmt.where(DBArticle.deleted.is_(False))
        stmt = stmt.order_by(DBArticle.published_at, DBArticle.id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, article_id: str) -> int:
        result = await self.session.execute(
            delete(DBArticle).where(DBArticle.id == article_id)
        )
        return result.rowcount

    async def distinct_sources(self) -> list[str]:
        result = await self.session.execute(
            select(DBArticle.source)
            .where(DBArticle.deleted.is_(False))
            .distinct()
            .order_by(DBArticle.source)
        )
        return list(result.scalars().all())
