"""
订单仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Order


class OrderRepository(ABC):

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """创建订单；同一个锁只能对应一个订单（lock_id 唯一）"""
        pass

    @abstractmethod
    async def get_by_lock_id(self, lock_id: int) -> Optional[Order]:
        pass
