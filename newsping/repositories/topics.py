from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsping.models.database import DBTopic
from newsping.models.domain import Topic


def _to_topic(row: DBTopic) -> Topic:
    return Topic(id=row.id, name=row.name, keywords=list(row.keywords_json or []))


class TopicRepository:
    """Read-only access to topics owned by the topic subsystem."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> list[Topic]:
        result = await self.session.execute(select(DBTopic).order_by(DBTopic.name))
        return [_to_topic(row) for row in result.scalars().all()]

    async def get(self, topic_id: str) -> Optional[Topic]:
        row = await self.session.get(DBTopic, topic_id)
        return _to_topic(row) if row else None
