"""
买家仓储接口
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from .entity import Buyer, ReferralAccount


class BuyerRepository(ABC):

    @abstractmethod
    async def create(self, buyer: Buyer) -> Buyer:
        """创建买家（测试与数据初始化使用）"""
        pass

    @abstractmethod
    async def get_by_gaming_id(self, gaming_id: str) -> Optional[Buyer]:
        """根据游戏ID获取买家"""
        pass

    @abstractmethod
    async def adjust_coins(self, gaming_id: str, delta: int) -> None:
        """原子地增减金币余额（UPDATE coins = coins + delta）"""
        pass


class ReferralAccountRepository(ABC):

    @abstractmethod
    async def create(self, account: ReferralAccount) -> ReferralAccount:
        pass

    @abstractmethod
    async def get_by_code(self, referral_code: str) -> Optional[ReferralAccount]:
        pass

    @abstractmethod
    async def credit_wallet(self, referral_code: str, amount: Decimal) -> bool:
        """原子地增加钱包余额，推荐码不存在时返回 False"""
        pass
