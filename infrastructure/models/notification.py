"""
站内通知数据库模型
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from datetime import datetime, timezone

from .base import Base


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    buyer_id = Column(String(100), nullable=False, index=True, comment="买家游戏ID")
    message = Column(Text, nullable=False)
    image_url = Column(String(500), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
