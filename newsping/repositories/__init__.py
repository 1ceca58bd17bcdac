from newsping.repositories.articles import ArticleRepository
from newsping.repositories.topics import TopicRepository

__all__ = ["ArticleRepository", "TopicRepository"]
