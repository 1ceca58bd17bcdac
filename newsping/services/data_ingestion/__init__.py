"""
Data ingestion for newsping.

This package provides the fetchers that pull candidate articles from
external sources:
- RSS feeds, configured as a table of feed sources
- The Naver news search API
- Per-source rate limiting

The collector that drives them lives in
``newsping.services.data_ingestion.collector``.
"""

from newsping.services.data_ingestion.base import (
    ArticleFetcher,
    CandidateArticle,
    SourceConfig,
    SourceType,
)
from newsping.services.data_ingestion.rate_limiter import RateLimiter
from newsping.services.data_ingestion.rss import FEED_SOURCES, FeedSource, RSSFetcher
from newsping.services.data_ingestion.naver import NaverApiConfig, NaverNewsFetcher

__all__ = [
    "ArticleFetcher",
    "CandidateArticle",
    "SourceConfig",
    "SourceType",
    "RateLimiter",
    "FEED_SOURCES",
    "FeedSource",
    "RSSFetcher",
    "NaverApiConfig",
    "NaverNewsFetcher",
]
