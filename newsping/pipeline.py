"""
Wiring for the article pipeline: builds fetchers and services from settings.
"""
from dataclasses import dataclass
from typing import Optional

import structlog

from newsping.config import Settings, get_settings
from newsping.models.database import Database
from newsping.services import ArticleService, BackupService, RestoreService
from newsping.services.data_ingestion.base import ArticleFetcher
from newsping.services.data_ingestion.collector import ArticleCollector
from newsping.services.data_ingestion.naver import (
    NaverApiConfig,
    NaverNewsFetcher,
    create_naver_config,
)
from newsping.services.data_ingestion.rss import create_rss_fetchers
from newsping.storage import LocalSnapshotStore, S3SnapshotStore, SnapshotStore

logger = structlog.get_logger(__name__)


@dataclass
class Pipeline:
    database: Database
    articles: ArticleService
    collector: ArticleCollector
    backup: BackupService
    restore: RestoreService


def create_fetchers(settings: Settings) -> list[ArticleFetcher]:
    """RSS fetchers for every configured feed, plus Naver when keyed."""
    fetchers: list[ArticleFetcher] = list(
        create_rss_fetchers(timeout_seconds=settings.http_timeout_seconds, tz=settings.tz)
    )

    api_config = NaverApiConfig(
        client_id=settings.naver_client_id,
        client_secret=settings.naver_client_secret,
        display=settings.naver_display,
        sort=settings.naver_sort,
    )
    if api_config.has_credentials:
        fetchers.append(
            NaverNewsFetcher(
                api_config,
                create_naver_config(settings.http_timeout_seconds, settings.tz),
            )
        )
    else:
        logger.info("Naver credentials missing, API fetcher disabled")

    return fetchers


def create_snapshot_store(settings: Settings) -> SnapshotStore:
    """Snapshot store for the configured backup backend."""
    if settings.backup_backend == "s3":
        logger.info("Using S3 snapshot store", bucket=settings.s3_bucket, prefix=settings.s3_prefix)
        return S3SnapshotStore(
            settings.s3_bucket,
            prefix=settings.s3_prefix,
            region_name=settings.aws_region,
        )
    return LocalSnapshotStore(settings.backup_dir)


def create_pipeline(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    fetchers: Optional[list[ArticleFetcher]] = None,
    store: Optional[SnapshotStore] = None,
) -> Pipeline:
    settings = settings or get_settings()
    database = database or Database(settings.database_url)
    store = store or create_snapshot_store(settings)
    fetchers = fetchers if fetchers is not None else create_fetchers(settings)

    articles = ArticleService(database)
    collector = ArticleCollector(
        database,
        fetchers,
        article_service=articles,
        max_concurrency=settings.fetch_max_concurrency,
        include_keywords=settings.collect_include_keywords,
        interval_minutes=settings.collect_interval_minutes,
    )

    logger.info("Pipeline initialized", fetchers=[f.name for f in fetchers])

    return Pipeline(
        database=database,
        articles=articles,
        collector=collector,
        backup=BackupService(database, store, tz=settings.tz),
        restore=RestoreService(database, store),
    )
