"""
Base classes and data models for data ingestion.
"""

import html
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, tzinfo, timezone
from enum import Enum
from typing import Optional, Union

import httpx

from newsping.models.domain import Topic
from newsping.services.data_ingestion.rate_limiter import RateLimiter, get_rate_limiter

Keywords = Union[str, list[str], None]

USER_AGENT = "newsping/0.1 (News Aggregator)"


class SourceType(str, Enum):
    """Type of content source."""
    RSS_FEED = "rss_feed"
    NEWS_API = "news_api"


@dataclass
class SourceConfig:
    """Configuration shared by every fetcher."""
    name: str
    source_type: SourceType
    timeout_seconds: float = 10.0
    tz: tzinfo = timezone.utc


@dataclass
class CandidateArticle:
    """
    Article found by a fetcher, before deduplication and persistence.

    ``topic_id`` stays None until the collector stamps it.
    """
    source: str
    original_link: str
    title: str
    summary: str = ""
    published_at: datetime = field(default_factory=datetime.now)
    topic_id: Optional[str] = None


def normalize_keywords(keyword: Keywords) -> list[str]:
    """Non-blank keywords from a single keyword or a list of them."""
    if keyword is None:
        return []
    if isinstance(keyword, str):
        keyword = [keyword]
    return [k.strip() for k in keyword if k and k.strip()]


def clean_html(text: Optional[str]) -> str:
    """Strip HTML tags and decode entities."""
    if not text:
        return ""

    clean = re.sub(r"<[^>]+>", "", text)
    clean = html.unescape(clean)
    clean = " ".join(clean.split())

    return clean.strip()


def to_local_naive(value: datetime, tz: tzinfo) -> datetime:
    """Convert an aware timestamp into ``tz`` and drop tzinfo."""
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def now_local(tz: tzinfo) -> datetime:
    return datetime.now(tz).replace(tzinfo=None)


class ArticleFetcher(ABC):
    """
    Abstract base class for article fetchers.

    Each fetcher handles:
    - Calling its external source with a bounded timeout
    - Parsing the source-specific payload
    - Mapping items to CandidateArticle records

    ``fetch`` must not raise for network, parse or status failures. It logs
    and returns an empty list instead.
    """

    def __init__(
        self,
        config: SourceConfig,
        client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.config = config
        self.name = config.name
        self._client = client
        self.rate_limiter = rate_limiter or get_rate_limiter()

    @abstractmethod
    async def fetch(self, topic: Topic, keyword: Keywords) -> list[CandidateArticle]:
        """
        Fetch candidate articles for a topic.

        Args:
            topic: Topic the articles are collected for
            keyword: Search keyword, or a list of keywords

        Returns:
            List of CandidateArticle objects (empty on any failure)
        """
        pass

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        """GET with the configured timeout, reusing an injected client if any."""
        await self.rate_limiter.wait_if_needed(self.name)

        headers = {"User-Agent": USER_AGENT, **kwargs.pop("headers", {})}
        timeout = httpx.Timeout(self.config.timeout_seconds)

        if self._client is not None:
            return await self._client.get(url, headers=headers, timeout=timeout, **kwargs)

        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await client.get(url, headers=headers, **kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
