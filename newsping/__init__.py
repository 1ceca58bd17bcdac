"""newsping - news collection, deduplication and backup."""

__version__ = "0.1.0"
