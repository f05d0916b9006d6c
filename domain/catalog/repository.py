"""
商品仓储接口（只读）
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Product


class ProductRepository(ABC):

    @abstractmethod
    async def create(self, product: Product) -> Product:
        """仅用于测试与数据初始化"""
        pass

    @abstractmethod
    async def get_by_id(self, product_id: int) -> Optional[Product]:
        pass
