"""
Tests for the article collector.
"""

import asyncio
from unittest.mock import AsyncMock

from conftest import StaticFetcher, add_topic, all_articles, count_articles, make_candidate
from newsping.exceptions import TopicNotFoundError
from newsping.services.data_ingestion.collector import ArticleCollector


class TestCollectArticles:

    async def test_failing_fetcher_does_not_stop_others(self, database, topic):
        broken = StaticFetcher("Hankyung", error=RuntimeError("feed exploded"))
        working = StaticFetcher("Chosun", [make_candidate("https://news.example.com/1")])
        collector = ArticleCollector(database, [broken, working])

        await collector.collect_articles()

        rows = await all_articles(database)
        assert [r.original_link for r in rows] == ["https://news.example.com/1"]
        assert rows[0].topic_id == topic.id
        assert broken.calls == [(topic.id, "AI")]

    async def test_no_topics_performs_no_saves(self, database):
        service = AsyncMock()
        fetcher = StaticFetcher("Chosun", [make_candidate("https://news.example.com/1")])
        collector = ArticleCollector(database, [fetcher], article_service=service)

        await collector.collect_articles()

        service.save_all.assert_not_awaited()
        assert fetcher.calls == []
        assert collector.last_run is not None

    async def test_zero_candidates_skips_save(self, database, topic):
        service = AsyncMock()
        collector = ArticleCollector(database, [StaticFetcher("Chosun")], article_service=service)

        await collector.collect_articles()

        service.save_all.assert_not_awaited()

    async def test_candidates_stamped_with_topic(self, database, topic):
        service = AsyncMock()
        service.save_all.return_value = ["id-1", "id-2"]
        fetchers = [
            StaticFetcher("Chosun", [make_candidate("https://news.example.com/1")]),
            StaticFetcher("Naver", [make_candidate("https://news.example.com/2", source="Naver")]),
        ]
        collector = ArticleCollector(database, fetchers, article_service=service)

        await collector.collect_articles()

        service.save_all.assert_awaited_once()
        batch = service.save_all.await_args.args[0]
        assert {c.original_link for c in batch} == {
            "https://news.example.com/1",
            "https://news.example.com/2",
        }
        assert all(c.topic_id == topic.id for c in batch)

    async def test_failing_topic_does_not_stop_others(self, database):
        await add_topic(database, "AI")
        await add_topic(database, "Economy")
        service = AsyncMock()
        service.save_all.side_effect = [TopicNotFoundError("gone"), ["id-1"]]
        fetcher = StaticFetcher("Chosun", [make_candidate("https://news.example.com/1")])
        collector = ArticleCollector(database, [fetcher], article_service=service)

        await collector.collect_articles()

        assert service.save_all.await_count == 2
        assert [keyword for _, keyword in fetcher.calls] == ["AI", "Economy"]

    async def test_repeated_runs_do_not_duplicate(self, database, topic):
        fetcher = StaticFetcher("Chosun", [
            make_candidate("https://news.example.com/1"),
            make_candidate("https://news.example.com/2"),
        ])
        collector = ArticleCollector(database, [fetcher])

        await collector.collect_articles()
        await collector.collect_articles()

        assert await count_articles(database) == 2

    async def test_topic_keywords_queried_when_enabled(self, database, topic):
        fetcher = StaticFetcher("Chosun")
        collector = ArticleCollector(database, [fetcher], include_keywords=True)

        await collector.collect_articles()

        assert sorted(keyword for _, keyword in fetcher.calls) == ["AI", "GPT"]


class TestSingleFlight:

    async def test_overlapping_run_is_skipped(self, database, topic):
        started = asyncio.Event()
        release = asyncio.Event()

        class BlockingFetcher(StaticFetcher):
            async def fetch(self, topic, keyword):
                self.calls.append((topic.id, keyword))
                started.set()
                await release.wait()
                return []

        fetcher = BlockingFetcher("Chosun")
        collector = ArticleCollector(database, [fetcher])

        first = asyncio.create_task(collector.collect_articles())
        await asyncio.wait_for(started.wait(), timeout=5)

        assert collector.get_status()["collecting"] is True
        await collector.collect_articles()

        release.set()
        await first

        assert len(fetcher.calls) == 1
        assert collector.get_status()["collecting"] is False


class TestLoop:

    async def test_start_and_stop(self, database, topic):
        collector = ArticleCollector(database, [StaticFetcher("Chosun")], interval_minutes=60)

        await collector.start()
        assert collector.is_running
        for _ in range(100):
            if collector.last_run:
                break
            await asyncio.sleep(0.05)
        await collector.stop()

        assert not collector.is_running
        assert collector.last_run is not None
