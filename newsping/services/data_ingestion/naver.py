"""
Naver news search API fetcher.
API docs: https://developers.naver.com/docs/serviceapi/search/news/news.md
"""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from email.utils import parsedate_to_datetime
from typing import Optional
import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from newsping.exceptions import SourceUnavailableError
from newsping.models.domain import Topic
from newsping.services.data_ingestion.base import (
    ArticleFetcher,
    CandidateArticle,
    Keywords,
    SourceConfig,
    SourceType,
    clean_html,
    normalize_keywords,
    now_local,
    to_local_naive,
)
from newsping.services.data_ingestion.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

NAVER_SOURCE_NAME = "Naver"


@dataclass(frozen=True)
class NaverApiConfig:
    """Credentials and query options for the Naver search API."""
    client_id: Optional[str]
    client_secret: Optional[str]
    display: int = 10
    sort: str = "date"
    base_url: str = "https://openapi.naver.com/v1/search/news.json"

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


def create_naver_config(timeout_seconds: float = 10.0, tz: tzinfo = timezone.utc) -> SourceConfig:
    return SourceConfig(
        name=NAVER_SOURCE_NAME,
        source_type=SourceType.NEWS_API,
        timeout_seconds=timeout_seconds,
        tz=tz,
    )


class NaverNewsFetcher(ArticleFetcher):
    """Fetcher for the keyed Naver news search API."""

    def __init__(
        self,
        api_config: NaverApiConfig,
        config: Optional[SourceConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        super().__init__(config or create_naver_config(), client, rate_limiter)
        self.api_config = api_config

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, max=4),
        reraise=True,
    )
    async def _search(self, query: str) -> dict:
        """Call the search endpoint; transport errors are retried."""
        response = await self._get(
            self.api_config.base_url,
            params={
                "query": query,
                "display": self.api_config.display,
                "sort": self.api_config.sort,
            },
            headers={
                "X-Naver-Client-Id": self.api_config.client_id,
                "X-Naver-Client-Secret": self.api_config.client_secret,
            },
        )

        if not response.is_success:
            raise SourceUnavailableError(self.name, f"status {response.status_code}")
        if not response.content:
            return {}

        return response.json()

    async def fetch(self, topic: Topic, keyword: Keywords) -> list[CandidateArticle]:
        keywords = normalize_keywords(keyword)
        if not keywords:
            return []
        if not self.api_config.has_credentials:
            logger.debug("Naver API credentials not configured, skipping")
            return []

        logger.info(f"Naver news fetch started - keywords: {keywords}")

        try:
            data = await self._search(" | ".join(keywords))
        except SourceUnavailableError as e:
            logger.error(str(e))
            return []
        except Exception as e:
            logger.error(f"Naver news API call failed: {e}", exc_info=True)
            return []

        try:
            articles = [
                article
                for item in data.get("items") or []
                if (article := self._parse_item(item)) is not None
            ]
        except Exception as e:
            logger.error(f"Failed to map Naver response: {e}", exc_info=True)
            return []

        # The API already filtered by query; a list of keywords still needs
        # each item to mention at least one of them
        if len(keywords) > 1:
            articles = [
                a for a in articles
                if any(k in a.title or k in a.summary for k in keywords)
            ]

        logger.info(f"Naver news fetch finished - {len(articles)} articles")
        return articles

    def _parse_item(self, item: dict) -> Optional[CandidateArticle]:
        """Parse one API item into a candidate."""
        link = (item.get("originallink") or item.get("link") or "").strip()
        if not link:
            return None

        return CandidateArticle(
            source=self.name,
            original_link=link,
            title=clean_html(item.get("title")),
            summary=clean_html(item.get("description")),
            published_at=self._parse_pub_date(item.get("pubDate")),
        )

    def _parse_pub_date(self, date_str: Optional[str]) -> datetime:
        tz = self.config.tz
        if not date_str:
            return now_local(tz)
        try:
            return to_local_naive(parsedate_to_datetime(date_str), tz)
        except (ValueError, TypeError, IndexError):
            logger.warning(f"Unparsable Naver pubDate, using now: {date_str}")
            return now_local(tz)
