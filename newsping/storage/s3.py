"""
S3 snapshot store: one JSON object per day under an optional key prefix.
"""
import asyncio
from datetime import date
from typing import Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from newsping.exceptions import SnapshotStorageError
from newsping.models.domain import ArticleSnapshot, SnapshotAdapter
from newsping.storage.base import SnapshotStore, snapshot_key

logger = structlog.get_logger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3SnapshotStore(SnapshotStore):
    """
    Keeps ``<prefix>/articles-YYYY-MM-DD.json`` objects in a bucket.

    The boto3 client is blocking, so every call runs in a worker thread.
    A put replaces the day's object in one request.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        client=None,
        region_name: Optional[str] = None,
    ):
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self._client = client or boto3.client("s3", region_name=region_name)

    def key_for(self, day: date) -> str:
        if not self.prefix:
            return snapshot_key(day)
        return f"{self.prefix}/{snapshot_key(day)}"

    async def write_snapshot(self, day: date, records: list[ArticleSnapshot]) -> None:
        await asyncio.to_thread(self._put, day, records)

    async def read_snapshot(self, day: date) -> list[ArticleSnapshot]:
        return await asyncio.to_thread(self._get, day)

    def _put(self, day: date, records: list[ArticleSnapshot]) -> None:
        key = self.key_for(day)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=SnapshotAdapter.dump_json(records),
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Snapshot upload failed", bucket=self.bucket, key=key, error=str(e))
            raise SnapshotStorageError(key, str(e)) from e

        logger.info("Snapshot uploaded", bucket=self.bucket, key=key, count=len(records))

    def _get(self, day: date) -> list[ArticleSnapshot]:
        key = self.key_for(day)
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                logger.info("Snapshot not found", bucket=self.bucket, key=key)
                return []
            logger.error("Snapshot download failed", bucket=self.bucket, key=key, error=str(e))
            raise SnapshotStorageError(key, str(e)) from e
        except BotoCoreError as e:
            logger.error("Snapshot download failed", bucket=self.bucket, key=key, error=str(e))
            raise SnapshotStorageError(key, str(e)) from e

        try:
            return SnapshotAdapter.validate_json(body)
        except ValidationError as e:
            logger.error("Snapshot is not valid", bucket=self.bucket, key=key, error=str(e))
            raise SnapshotStorageError(key, str(e)) from e
