"""
支付金额锁仓储接口 - 锁表是该子系统唯一的共享可变资源
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from .entity import LockStatus, PaymentLock


class PaymentLockRepository(ABC):
    """Lock store contract.

    Every status mutation is a conditional single-row (or bulk) update so that
    concurrent writers compose without an external mutex.
    """

    @abstractmethod
    async def create(self, lock: PaymentLock) -> PaymentLock:
        """Insert an active lock; raises AmountCollisionException when the
        amount already has an active lock (pre-check or unique index)."""

    @abstractmethod
    async def get_by_id(self, lock_id: int) -> Optional[PaymentLock]:
        ...

    @abstractmethod
    async def find_active_or_grace_expired(
        self, amount: Decimal, now: datetime, grace: timedelta
    ) -> Optional[PaymentLock]:
        """Any lock that still reserves ``amount``."""

    @abstractmethod
    async def find_active_by_amount(self, amount: Decimal) -> Optional[PaymentLock]:
        ...

    @abstractmethod
    async def find_latest_grace_expired(
        self, amount: Decimal, now: datetime, grace: timedelta
    ) -> Optional[PaymentLock]:
        """Most recently lapsed expired lock for ``amount`` inside the grace window."""

    @abstractmethod
    async def expire(self, lock_id: int, *, expires_at: Optional[datetime] = None) -> bool:
        """active -> expired. Returns False (no error) when missing or terminal."""

    @abstractmethod
    async def mark_completed(self, lock_id: int) -> bool:
        """-> completed unless already completed. False means another writer won."""

    @abstractmethod
    async def sweep_expired(self, now: datetime) -> int:
        """Bulk active -> expired for locks whose expiry has passed."""

    @abstractmethod
    async def list(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[LockStatus] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[PaymentLock]:
        ...

    @abstractmethod
    async def count(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[LockStatus] = None,
    ) -> int:
        ...
