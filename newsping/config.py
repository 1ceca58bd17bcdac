"""
Application configuration using Pydantic Settings.
"""

from datetime import timezone, tzinfo
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "newsping"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./newsping.db",
        description="Async database URL (SQLAlchemy format)",
    )

    # Naver news search API (optional; the fetcher is idle without credentials)
    naver_client_id: str | None = Field(default=None)
    naver_client_secret: str | None = Field(default=None)
    naver_display: int = Field(default=10, ge=1, le=100)
    naver_sort: Literal["date", "sim"] = "date"

    # Fetching
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout applied to every outbound request",
    )
    fetch_max_concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum fetch calls in flight for one topic",
    )

    # Scheduler
    collect_interval_minutes: int = Field(
        default=60,
        ge=1,
        description="Interval between article collection runs",
    )
    collect_include_keywords: bool = Field(
        default=False,
        description="Also query every topic keyword, not only the topic name",
    )

    # Backup
    backup_backend: Literal["local", "s3"] = "local"
    backup_dir: str = Field(default="backup")
    s3_bucket: str | None = Field(default=None)
    s3_prefix: str = Field(default="")
    aws_region: str | None = Field(default=None)
    backup_hour: int = Field(default=0, ge=0, le=23)
    backup_minute: int = Field(default=0, ge=0, le=59)

    # Timestamps are stored naive, in this zone
    timezone: str = Field(default="UTC")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v.upper() == "UTC":
            return "UTC"
        ZoneInfo(v)
        return v

    @model_validator(mode="after")
    def validate_backup_backend(self) -> "Settings":
        if self.backup_backend == "s3" and not self.s3_bucket:
            raise ValueError("s3_bucket is required when backup_backend is 's3'")
        return self

    @property
    def tz(self) -> tzinfo:
        if self.timezone == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
