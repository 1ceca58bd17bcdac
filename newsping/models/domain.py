"""
Domain models for newsping.
These are the core business entities, independent of database/API representation.
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# =============================================================================
# Topics
# =============================================================================

class Topic(BaseModel):
    """A user-defined interest that articles are collected for."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    keywords: list[str] = Field(default_factory=list)


# =============================================================================
# Articles
# =============================================================================

class Article(BaseModel):
    """A persisted news article."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    topic_id: Optional[str] = None
    source: str
    original_link: str
    title: str
    summary: str = ""
    published_at: datetime
    comment_count: int = 0
    view_count: int = 0
    deleted: bool = False
    version: int = 1


# =============================================================================
# Backup / Restore
# =============================================================================

class ArticleSnapshot(BaseModel):
    """Flattened article record written to a daily backup snapshot."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    source: str
    original_link: str
    title: str
    published_at: datetime
    summary: str = ""
    comment_count: int = 0
    view_count: int = 0
    deleted: bool = False


SnapshotAdapter = TypeAdapter(list[ArticleSnapshot])


class RestoreResult(BaseModel):
    """Outcome of restoring one day of backups."""
    restored_date: date
    restored_article_ids: list[str] = Field(default_factory=list)
    restored_article_count: int = 0
    error: Optional[str] = None
