"""
站内通知仓储接口
"""
from abc import ABC, abstractmethod
from typing import List

from .entity import Notification


class NotificationRepository(ABC):

    @abstractmethod
    async def create(self, notification: Notification) -> Notification:
        pass

    @abstractmethod
    async def list_for_buyer(self, buyer_id: str, limit: int = 20) -> List[Notification]:
        pass
