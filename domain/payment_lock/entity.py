"""
支付金额锁实体 - 将一个待付金额临时绑定到买家的一次购买意图
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException


CENT = Decimal("0.01")


class LockStatus(str, Enum):
    """锁状态枚举"""
    ACTIVE = "active"         # 等待付款
    EXPIRED = "expired"       # 超时或被释放（保留用于宽限期匹配）
    COMPLETED = "completed"   # 已对账并生成订单（终态）


def quantize_amount(value) -> Decimal:
    """Normalize any numeric input to a 2 dp currency Decimal."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class PaymentLock:
    """
    支付金额锁

    业务规则：
    1. 同一金额同一时刻最多只有一个 active 锁（由仓储层唯一约束保证）
    2. 金额创建后不可变
    3. 只有对账引擎可以把锁置为 completed，且只能一次
    4. 过期的锁保留，用于宽限期内的迟到付款匹配
    """

    id: Optional[int]
    buyer_id: str
    product_id: int
    product_name: str
    amount: Decimal
    status: LockStatus
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        self.amount = quantize_amount(self.amount)
        if self.amount <= 0:
            raise DomainValidationException(
                f"Lock amount must be positive: {self.amount}",
                field="amount",
            )
        if not self.buyer_id:
            raise DomainValidationException("Lock requires a buyer", field="buyer_id")
        self.status = LockStatus(self.status)
        self.created_at = _ensure_utc(self.created_at)
        self.expires_at = _ensure_utc(self.expires_at)

    @classmethod
    def open(
        cls,
        *,
        buyer_id: str,
        product_id: int,
        product_name: str,
        amount: Decimal,
        now: datetime,
        ttl: timedelta,
    ) -> "PaymentLock":
        return cls(
            id=None,
            buyer_id=buyer_id,
            product_id=product_id,
            product_name=product_name,
            amount=amount,
            status=LockStatus.ACTIVE,
            created_at=now,
            expires_at=now + ttl,
        )

    @property
    def is_completed(self) -> bool:
        return self.status == LockStatus.COMPLETED

    def is_live_at(self, now: datetime) -> bool:
        """Active and not yet past its expiry."""
        return self.status == LockStatus.ACTIVE and self.expires_at is not None and self.expires_at > now

    def seconds_remaining(self, now: datetime) -> int:
        if not self.is_live_at(now):
            return 0
        return max(0, int((self.expires_at - now).total_seconds()))
