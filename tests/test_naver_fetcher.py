"""
Tests for the Naver news API fetcher.
"""

from datetime import datetime, timezone

import httpx
import pytest

from conftest import mock_client
from newsping.models.domain import Topic
from newsping.services.data_ingestion.naver import (
    NAVER_SOURCE_NAME,
    NaverApiConfig,
    NaverNewsFetcher,
    create_naver_config,
)

TOPIC = Topic(id="topic-1", name="AI")

API_CONFIG = NaverApiConfig(client_id="test-id", client_secret="test-secret", display=20)

SAMPLE_RESPONSE = {
    "lastBuildDate": "Mon, 15 Jan 2024 18:10:00 +0900",
    "total": 2,
    "start": 1,
    "display": 2,
    "items": [
        {
            "title": "<b>AI</b> chips sell out",
            "originallink": "https://press.example.com/ai-chips",
            "link": "https://n.news.naver.com/article/001/0001",
            "description": "Demand for <b>AI</b> accelerators &quot;keeps growing&quot;.",
            "pubDate": "Mon, 15 Jan 2024 18:00:00 +0900",
        },
        {
            "title": "Weather outlook",
            "originallink": "",
            "link": "https://n.news.naver.com/article/001/0002",
            "description": "Cold wave expected.",
            "pubDate": "Mon, 15 Jan 2024 17:00:00 +0900",
        },
    ],
}


class Recorder:
    """MockTransport handler that records requests."""

    def __init__(self, status_code=200, json=None, error=None):
        self.status_code = status_code
        self.json = SAMPLE_RESPONSE if json is None else json
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error:
            raise self.error
        return httpx.Response(self.status_code, json=self.json)


def make_fetcher(handler, api_config=API_CONFIG, rate_limiter=None):
    return NaverNewsFetcher(
        api_config,
        create_naver_config(timeout_seconds=5.0, tz=timezone.utc),
        client=mock_client(handler),
        rate_limiter=rate_limiter,
    )


class TestRequest:

    async def test_sends_credentials_and_query(self, rate_limiter):
        recorder = Recorder()
        fetcher = make_fetcher(recorder, rate_limiter=rate_limiter)

        await fetcher.fetch(TOPIC, "AI")

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert request.headers["X-Naver-Client-Id"] == "test-id"
        assert request.headers["X-Naver-Client-Secret"] == "test-secret"
        assert request.url.params["query"] == "AI"
        assert request.url.params["display"] == "20"
        assert request.url.params["sort"] == "date"

    async def test_keyword_list_joined_with_or(self, rate_limiter):
        recorder = Recorder()
        fetcher = make_fetcher(recorder, rate_limiter=rate_limiter)

        await fetcher.fetch(TOPIC, ["AI", "GPT"])

        assert recorder.requests[0].url.params["query"] == "AI | GPT"

    async def test_blank_keyword_makes_no_call(self, rate_limiter):
        recorder = Recorder()
        fetcher = make_fetcher(recorder, rate_limiter=rate_limiter)

        assert await fetcher.fetch(TOPIC, "   ") == []
        assert await fetcher.fetch(TOPIC, None) == []
        assert recorder.requests == []

    async def test_missing_credentials_makes_no_call(self, rate_limiter):
        recorder = Recorder()
        fetcher = make_fetcher(
            recorder,
            api_config=NaverApiConfig(client_id=None, client_secret=None),
            rate_limiter=rate_limiter,
        )

        assert await fetcher.fetch(TOPIC, "AI") == []
        assert recorder.requests == []


class TestMapping:

    async def test_items_mapped_to_candidates(self, rate_limiter):
        fetcher = make_fetcher(Recorder(), rate_limiter=rate_limiter)

        articles = await fetcher.fetch(TOPIC, "AI")

        assert len(articles) == 2
        first = articles[0]
        assert first.source == NAVER_SOURCE_NAME
        assert first.original_link == "https://press.example.com/ai-chips"
        assert first.title == "AI chips sell out"
        assert first.summary == 'Demand for AI accelerators "keeps growing".'
        assert first.published_at == datetime(2024, 1, 15, 9, 0)

    async def test_falls_back_to_naver_link(self, rate_limiter):
        fetcher = make_fetcher(Recorder(), rate_limiter=rate_limiter)

        articles = await fetcher.fetch(TOPIC, "AI")

        assert articles[1].original_link == "https://n.news.naver.com/article/001/0002"

    async def test_keyword_list_post_filters_items(self, rate_limiter):
        fetcher = make_fetcher(Recorder(), rate_limiter=rate_limiter)

        articles = await fetcher.fetch(TOPIC, ["AI", "GPT"])

        assert [a.title for a in articles] == ["AI chips sell out"]

    async def test_empty_items(self, rate_limiter):
        fetcher = make_fetcher(Recorder(json={"items": []}), rate_limiter=rate_limiter)

        assert await fetcher.fetch(TOPIC, "AI") == []


class TestFailures:

    @pytest.mark.parametrize("status_code", [401, 429, 500])
    async def test_non_success_status_returns_empty(self, rate_limiter, status_code):
        recorder = Recorder(status_code=status_code, json={"errorMessage": "nope"})
        fetcher = make_fetcher(recorder, rate_limiter=rate_limiter)

        assert await fetcher.fetch(TOPIC, "AI") == []
        assert len(recorder.requests) == 1

    async def test_transport_error_retried_then_empty(self, rate_limiter):
        recorder = Recorder(error=httpx.ConnectTimeout("timed out"))
        fetcher = make_fetcher(recorder, rate_limiter=rate_limiter)

        assert await fetcher.fetch(TOPIC, "AI") == []
        assert len(recorder.requests) == 3
