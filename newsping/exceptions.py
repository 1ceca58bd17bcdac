from datetime import date


class NewspingError(Exception):
    pass


class SourceUnavailableError(NewspingError):
    def __init__(self, source: str, reason: str):
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class DuplicateLinkError(NewspingError):
    def __init__(self, original_link: str):
        super().__init__(f"Article already exists [original_link: {original_link}]")
        self.original_link = original_link


class TopicNotFoundError(NewspingError):
    def __init__(self, topic_id: str | None):
        super().__init__(f"Topic not found: {topic_id}")
        self.topic_id = topic_id


class ArticleNotFoundError(NewspingError):
    def __init__(self, article_id: str):
        super().__init__(f"Article not found: {article_id}")
        self.article_id = article_id


class InvalidRangeError(NewspingError):
    def __init__(self, start: date, end: date):
        super().__init__(f"Restore start ({start}) must not be after end ({end})")
        self.start = start
        self.end = end


class SnapshotStorageError(NewspingError):
    def __init__(self, key: str, reason: str):
        super().__init__(f"Snapshot storage failure for {key}: {reason}")
        self.key = key
        self.reason = reason


class FutureDateError(NewspingError):
    def __init__(self, day: date, today: date):
        super().__init__(f"Cannot back up a future date ({day}); today is {today}")
        self.day = day
        self.today = today
