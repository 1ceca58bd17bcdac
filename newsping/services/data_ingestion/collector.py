"""
Article Collector - scheduled fetching of articles for every topic.

Runs every registered fetcher for every topic and hands each topic's
results to the ingestion service. One failing source or topic never
stops the rest of the run.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional
import logging

from newsping.exceptions import TopicNotFoundError
from newsping.models.database import Database
from newsping.models.domain import Topic
from newsping.repositories import TopicRepository
from newsping.services.articles import ArticleService
from newsping.services.data_ingestion.base import ArticleFetcher, CandidateArticle

logger = logging.getLogger(__name__)


class ArticleCollector:
    """
    Collects articles for all topics from all fetchers.

    Features:
    - Bounded concurrent fetching within a topic
    - Per-fetcher and per-topic fault isolation
    - Single-flight runs: an overlapping trigger is skipped
    - Optional periodic loop
    """

    def __init__(
        self,
        database: Database,
        fetchers: list[ArticleFetcher],
        article_service: Optional[ArticleService] = None,
        max_concurrency: int = 4,
        include_keywords: bool = False,
        interval_minutes: int = 60,
    ):
        """
        Initialize the collector.

        Args:
            database: Database holding topics and articles
            fetchers: Fetchers to call for every topic
            article_service: Ingestion service (built from ``database`` if omitted)
            max_concurrency: Maximum fetch calls in flight at once
            include_keywords: Query each topic keyword besides the topic name
            interval_minutes: Minutes between runs of the periodic loop
        """
        self.database = database
        self.fetchers = fetchers
        self.article_service = article_service or ArticleService(database)
        self.include_keywords = include_keywords
        self.interval = timedelta(minutes=interval_minutes)

        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._run_lock = asyncio.Lock()
        self._running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._last_run: Optional[datetime] = None

    async def collect_articles(self) -> None:
        """Run one collection pass over all topics."""
        if self._run_lock.locked():
            logger.warning("Collection already in progress, skipping this run")
            return

        async with self._run_lock:
            await self._collect()

    async def _collect(self) -> None:
        logger.info("Article collection started")
        start_time = datetime.utcnow()

        async with self.database.async_session() as session:
            topics = await TopicRepository(session).list_all()

        if not topics:
            logger.info("No topics registered, nothing to collect")
            self._last_run = start_time
            return

        saved_by_topic: dict[str, int] = {}
        for topic in topics:
            saved_by_topic[topic.name] = await self._collect_for_topic(topic)

        self._last_run = start_time
        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info(
            f"Article collection completed: {sum(saved_by_topic.values())} saved "
            f"across {len(topics)} topics in {duration:.1f}s"
        )
        for name, count in saved_by_topic.items():
            logger.info(f" - {name}: {count}")

    async def _collect_for_topic(self, topic: Topic) -> int:
        """Fetch from every source for one topic, then save once."""
        terms = self._search_terms(topic)
        calls = [
            self._fetch_isolated(fetcher, topic, term)
            for term in terms
            for fetcher in self.fetchers
        ]

        results = await asyncio.gather(*calls)
        candidates = [
            replace(candidate, topic_id=topic.id)
            for batch in results
            for candidate in batch
        ]

        if not candidates:
            logger.debug(f"No articles found for topic '{topic.name}'")
            return 0

        try:
            saved = await self.article_service.save_all(candidates)
        except TopicNotFoundError:
            logger.warning(f"Topic '{topic.name}' ({topic.id}) disappeared, skipping")
            return 0
        except Exception as e:
            logger.error(f"Saving articles for topic '{topic.name}' failed: {e}", exc_info=True)
            return 0

        logger.info(
            f"Topic '{topic.name}': {len(candidates)} fetched, {len(saved)} saved"
        )
        return len(saved)

    async def _fetch_isolated(
        self,
        fetcher: ArticleFetcher,
        topic: Topic,
        term: str,
    ) -> list[CandidateArticle]:
        """Call one fetcher; any exception counts as no results."""
        async with self._semaphore:
            try:
                return await fetcher.fetch(topic, term)
            except Exception as e:
                logger.warning(
                    f"Fetcher {fetcher.name} failed for topic '{topic.name}' "
                    f"keyword '{term}': {e}",
                    exc_info=True,
                )
                return []

    def _search_terms(self, topic: Topic) -> list[str]:
        terms = [topic.name]
        if self.include_keywords:
            terms.extend(k for k in topic.keywords if k and k not in terms)
        return terms

    async def start(self):
        """Start the periodic collection loop."""
        if self._running:
            logger.warning("Collector already running")
            return

        self._running = True
        logger.info(f"Starting article collector (interval: {self.interval})")
        self._loop_task = asyncio.create_task(self._collector_loop())

    async def stop(self):
        """Stop the periodic loop."""
        self._running = False

        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass

        logger.info("Article collector stopped")

    async def _collector_loop(self):
        while self._running:
            try:
                await self.collect_articles()
            except Exception as e:
                logger.error(f"Collection run failed: {e}", exc_info=True)

            await asyncio.sleep(self.interval.total_seconds())

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_run(self) -> Optional[datetime]:
        return self._last_run

    def get_status(self) -> dict:
        """Get collector status."""
        next_run = self._last_run + self.interval if self._last_run else None
        return {
            "running": self._running,
            "collecting": self._run_lock.locked(),
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "next_run": next_run.isoformat() if next_run and self._running else None,
            "interval_minutes": self.interval.total_seconds() / 60,
            "fetchers": [f.name for f in self.fetchers],
        }
