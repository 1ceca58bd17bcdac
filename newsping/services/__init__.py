"""
Services layer - the article pipeline for newsping.

1. Data ingestion (data_ingestion/):
   - Fetchers for RSS feeds and the Naver search API
   - The collector that runs them for every topic

2. Articles (articles.py):
   - Deduplicated saving of fetched articles

3. Backup (backup.py):
   - Daily snapshots of persisted articles

4. Restore (restore.py):
   - Replaying snapshots into storage
"""

from newsping.services.articles import ArticleService
from newsping.services.backup import BackupService
from newsping.services.restore import RestoreService

__all__ = [
    "ArticleService",
    "BackupService",
    "RestoreService",
]
