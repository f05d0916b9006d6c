"""
买家领域实体 - 对账只需要买家的金币余额、推荐关系和推送令牌
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Buyer:
    """买家实体（由账户子系统维护，本服务只读写金币余额）"""

    id: Optional[int]
    gaming_id: str
    coins: int = 0
    referred_by_code: Optional[str] = None
    fcm_token: Optional[str] = None
    is_banned: bool = False
    ban_message: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.gaming_id:
            raise ValueError("买家必须有游戏ID")
        if self.coins < 0:
            raise ValueError("金币余额不能为负数")

    def coins_applicable_to(self, coins_applicable: int) -> int:
        """业务规则：可抵扣金币 = min(余额, 商品允许抵扣上限)"""
        return max(0, min(self.coins, coins_applicable))


@dataclass
class ReferralAccount:
    """推荐人钱包账户"""

    id: Optional[int]
    referral_code: str
    wallet_balance: Decimal = Decimal("0.00")
