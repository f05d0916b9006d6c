"""Unit of Work 抽象定义"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.buyer.repository import BuyerRepository, ReferralAccountRepository
from domain.catalog.repository import ProductRepository
from domain.confirmation.repository import ConfirmationRepository
from domain.notification.repository import NotificationRepository
from domain.order.repository import OrderRepository
from domain.payment_lock.repository import PaymentLockRepository


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象"""

    payment_lock_repository: PaymentLockRepository
    confirmation_repository: ConfirmationRepository
    buyer_repository: BuyerRepository
    referral_account_repository: ReferralAccountRepository
    product_repository: ProductRepository
    order_repository: OrderRepository
    notification_repository: NotificationRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.payment_lock_repository = None  # type: ignore[assignment]
        self.confirmation_repository = None  # type: ignore[assignment]
        self.buyer_repository = None  # type: ignore[assignment]
        self.referral_account_repository = None  # type: ignore[assignment]
        self.product_repository = None  # type: ignore[assignment]
        self.order_repository = None  # type: ignore[assignment]
        self.notification_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # 只在非只读且未显式提交时自动提交
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
        ...
