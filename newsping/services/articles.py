"""
Article ingestion: deduplicate candidate articles and persist them.

The original link is the dedup key. Existence is checked before insert; the
unique index on ``articles.original_link`` only backs that check up when two
writers race.
"""
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError

from newsping.exceptions import ArticleNotFoundError, DuplicateLinkError, TopicNotFoundError
from newsping.models.database import Database, DBArticle
from newsping.models.domain import Article, Topic
from newsping.repositories import ArticleRepository, TopicRepository
from newsping.services.data_ingestion.base import CandidateArticle

logger = structlog.get_logger(__name__)

UNTITLED = "[untitled]"


def candidate_to_row(candidate: CandidateArticle, topic: Topic) -> DBArticle:
    return DBArticle(
        topic_id=topic.id,
        source=candidate.source,
        original_link=candidate.original_link,
        title=candidate.title or UNTITLED,
        summary=candidate.summary or "",
        published_at=candidate.published_at,
        comment_count=0,
        view_count=0,
        deleted=False,
    )


class ArticleService:
    """Saves fetched articles, keeping one row per original link."""

    def __init__(self, database: Database):
        self.database = database

    async def save(self, candidate: CandidateArticle) -> Article:
        """
        Save a single article.

        Raises:
            DuplicateLinkError: an article with the same link already exists
            TopicNotFoundError: the candidate's topic does not exist
        """
        async with self.database.async_session() as session:
            articles = ArticleRepository(session)

            if await articles.exists_by_original_link(candidate.original_link):
                logger.warning("Duplicate article rejected", original_link=candidate.original_link)
                raise DuplicateLinkError(candidate.original_link)

            topic = await self._find_topic_or_raise(TopicRepository(session), candidate.topic_id)

            row = candidate_to_row(candidate, topic)
            try:
                await articles.insert(row)
                article = Article.model_validate(row)
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise DuplicateLinkError(candidate.original_link)

        logger.info("Article saved", article_id=article.id, topic_id=topic.id)
        return article

    async def save_all(self, candidates: list[CandidateArticle]) -> list[str]:
        """
        Save a batch of articles collected for one topic.

        Candidates whose link is blank, already stored, or repeated within the
        batch are skipped silently.

        Returns:
            Ids of the newly inserted articles

        Raises:
            TopicNotFoundError: the batch's topic does not exist
        """
        if not candidates:
            logger.info("Empty batch, nothing to save")
            return []

        topic_id = candidates[0].topic_id

        async with self.database.async_session() as session:
            articles = ArticleRepository(session)
            topic = await self._find_topic_or_raise(TopicRepository(session), topic_id)

            valid = [c for c in candidates if c.original_link and c.original_link.strip()]
            if not valid:
                logger.info("No valid candidates to save", topic_id=topic_id)
                return []

            existing = await articles.find_existing_links([c.original_link for c in valid])

            to_save: list[CandidateArticle] = []
            seen = set(existing)
            for candidate in valid:
                if candidate.original_link in seen:
                    continue
                seen.add(candidate.original_link)
                to_save.append(candidate)

            saved_ids: list[str] = []
            for candidate in to_save:
                row = candidate_to_row(candidate, topic)
                try:
                    await articles.insert(row)
                    await session.commit()
                except IntegrityError:
                    # Another writer stored the link first
                    await session.rollback()
                    logger.info("Duplicate skipped on insert", original_link=candidate.original_link)
                    continue
                saved_ids.append(row.id)

        logger.info(
            "Batch saved",
            topic_id=topic_id,
            requested=len(candidates),
            duplicates=len(candidates) - len(saved_ids),
            saved=len(saved_ids),
        )
        return saved_ids

    async def soft_delete(self, article_id: str) -> None:
        """Mark an active article as deleted. Its link stays reserved."""
        async with self.database.async_session() as session:
            row = await ArticleRepository(session).get(article_id)
            if row is None or row.deleted:
                logger.warning("Soft delete of missing article", article_id=article_id)
                raise ArticleNotFoundError(article_id)

            row.deleted = True
            await session.commit()

        logger.info("Article soft-deleted", article_id=article_id)

    async def hard_delete(self, article_id: str) -> None:
        """Remove an article row permanently."""
        async with self.database.async_session() as session:
            removed = await ArticleRepository(session).delete(article_id)
            if not removed:
                logger.warning("Hard delete of missing article", article_id=article_id)
                raise ArticleNotFoundError(article_id)
            await session.commit()

        logger.info("Article hard-deleted", article_id=article_id)

    async def list_sources(self) -> list[str]:
        """Distinct sources of non-deleted articles."""
        async with self.database.async_session() as session:
            return await ArticleRepository(session).distinct_sources()

    async def _find_topic_or_raise(
        self,
        topics: TopicRepository,
        topic_id: Optional[str],
    ) -> Topic:
        topic = await topics.get(topic_id) if topic_id else None
        if topic is None:
            logger.warning("Topic not found", topic_id=topic_id)
            raise TopicNotFoundError(topic_id)
        return topic
