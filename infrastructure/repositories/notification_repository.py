"""
站内通知仓储实现
"""
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.notification.entity import Notification
from domain.notification.repository import NotificationRepository
from infrastructure.models.notification import NotificationModel


class SQLAlchemyNotificationRepository(NotificationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            buyer_id=model.buyer_id,
            message=model.message,
            image_url=model.image_url,
            is_read=model.is_read,
            created_at=model.created_at,
        )

    async def create(self, notification: Notification) -> Notification:
        db_notification = NotificationModel(
            buyer_id=notification.buyer_id,
            message=notification.message,
            image_url=notification.image_url,
            is_read=notification.is_read,
        )
        if notification.created_at is not None:
            db_notification.created_at = notification.created_at
        self.session.add(db_notification)
        await self.session.flush()
        await self.session.refresh(db_notification)
        return self._to_entity(db_notification)

    async def list_for_buyer(self, buyer_id: str, limit: int = 20) -> List[Notification]:
        result = await self.session.execute(
            select(NotificationModel)
            .where(NotificationModel.buyer_id == buyer_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]
