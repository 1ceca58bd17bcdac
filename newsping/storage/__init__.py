from newsping.storage.base import SnapshotStore, snapshot_key
from newsping.storage.local import LocalSnapshotStore
from newsping.storage.s3 import S3SnapshotStore

__all__ = ["SnapshotStore", "LocalSnapshotStore", "S3SnapshotStore", "snapshot_key"]
