"""
RSS feed fetching for news outlets.

One generic fetcher is configured per feed from the FEED_SOURCES table,
so adding an outlet is a data change rather than a new class.
"""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from email.utils import parsedate_to_datetime
from typing import Optional
import logging

import httpx
from bs4 import BeautifulSoup

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


@dataclass(frozen=True)
class FeedSource:
    """An RSS feed and how to read its dates."""
    name: str
    url: str
    # strptime format for pubDate; None means RFC 822
    date_format: Optional[str] = None


FEED_SOURCES = [
    FeedSource(
        name="Chosun",
        url="https://www.chosun.com/arc/outboundfeeds/rss/?outputType=xml",
    ),
    FeedSource(
        name="Hankyung",
        url="https://www.hankyung.com/feed/all-news",
    ),
    FeedSource(
        name="Yonhap",
        url="http://www.yonhapnewstv.co.kr/browse/feed/",
    ),
]


def create_rss_config(
    feed: FeedSource,
    timeout_seconds: float = 10.0,
    tz: tzinfo = timezone.utc,
) -> SourceConfig:
    """Create source configuration for one feed."""
    return SourceConfig(
        name=feed.name,
        source_type=SourceType.RSS_FEED,
        timeout_seconds=timeout_seconds,
        tz=tz,
    )


def matches_keywords(title: Optional[str], description: Optional[str], keywords: list[str]) -> bool:
    """Case-insensitive match of any keyword in title or description.

    An empty keyword list matches everything.
    """
    if not keywords:
        return True

    lower_title = (title or "").lower()
    lower_desc = (description or "").lower()

    return any(
        k.lower() in lower_title or k.lower() in lower_desc
        for k in keywords
    )


class RSSFetcher(ArticleFetcher):
    """
    Fetches one RSS 2.0 feed and keeps the items matching a keyword.
    """

    def __init__(
        self,
        feed: FeedSource,
        config: Optional[SourceConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        super().__init__(config or create_rss_config(feed), client, rate_limiter)
        self.feed = feed

    async def fetch(self, topic: Topic, keyword: Keywords) -> list[CandidateArticle]:
        keywords = normalize_keywords(keyword)
        logger.info(f"[{self.name}] RSS fetch started - keywords: {keywords}")

        try:
            response = await self._get(self.feed.url)
            if not response.is_success:
                raise SourceUnavailableError(self.name, f"status {response.status_code}")

            articles = self._parse_rss(response.text, keywords)

            logger.info(f"[{self.name}] RSS fetch finished - {len(articles)} articles")
            return articles

        except SourceUnavailableError as e:
            logger.error(str(e))
            return []
        except httpx.HTTPError as e:
            logger.warning(f"[{self.name}] HTTP error fetching {self.feed.url}: {e}")
            return []
        except Exception as e:
            logger.error(f"[{self.name}] RSS fetch failed: {e}", exc_info=True)
            return []

    def _parse_rss(self, xml_content: str, keywords: list[str]) -> list[CandidateArticle]:
        """Parse an RSS document, tolerating malformed markup."""
        soup = BeautifulSoup(xml_content, "xml")
        articles = []

        for item in soup.find_all("item"):
            try:
                article = self._parse_rss_item(item, keywords)
                if article:
                    articles.append(article)
            except Exception as e:
                logger.warning(f"[{self.name}] Failed to parse RSS item: {e}")
                continue

        return articles

    def _parse_rss_item(self, item, keywords: list[str]) -> Optional[CandidateArticle]:
        """Parse a single RSS item, or None if it is filtered out."""
        title = _text(item, "title")
        link = _text(item, "link")
        description = _text(item, "description")
        pub_date = _text(item, "pubDate")

        if not matches_keywords(title, description, keywords):
            return None

        link = (link or "").strip()
        if not link:
            logger.debug(f"[{self.name}] Skipping item without link: {title!r}")
            return None

        return CandidateArticle(
            source=self.name,
            original_link=link,
            title=clean_html(title),
            summary=clean_html(description),
            published_at=self._parse_pub_date(pub_date),
        )

    def _parse_pub_date(self, date_str: Optional[str]) -> datetime:
        """Parse pubDate in the feed's format; fall back to now."""
        tz = self.config.tz
        if not date_str:
            return now_local(tz)

        date_str = date_str.strip()
        try:
            if self.feed.date_format:
                parsed = datetime.strptime(date_str, self.feed.date_format)
            else:
                parsed = parsedate_to_datetime(date_str)
        except (ValueError, TypeError, IndexError):
            logger.warning(f"[{self.name}] Unparsable pubDate, using now: {date_str}")
            return now_local(tz)

        return to_local_naive(parsed, tz)


def _text(item, name: str) -> Optional[str]:
    node = item.find(name)
    if node is None:
        return None
    return node.get_text()


def create_rss_fetchers(
    feeds: Optional[list[FeedSource]] = None,
    timeout_seconds: float = 10.0,
    tz: tzinfo = timezone.utc,
    client: Optional[httpx.AsyncClient] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> list[RSSFetcher]:
    """One fetcher per configured feed."""
    return [
        RSSFetcher(
            feed,
            create_rss_config(feed, timeout_seconds, tz),
            client=client,
            rate_limiter=rate_limiter,
        )
        for feed in (feeds if feeds is not None else FEED_SOURCES)
    ]
