"""SQLAlchemy Unit of Work 实现"""
from __future__ import annotations

from typing import Optional, Callable
import inspect

from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.buyer_repository import (
    SQLAlchemyBuyerRepository,
    SQLAlchemyReferralAccountRepository,
)
from infrastructure.repositories.confirmation_repository import SQLAlchemyConfirmationRepository
from infrastructure.repositories.notification_repository import SQLAlchemyNotificationRepository
from infrastructure.repositories.order_repository import SQLAlchemyOrderRepository
from infrastructure.repositories.payment_lock_repository import SQLAlchemyPaymentLockRepository
from infrastructure.repositories.product_repository import SQLAlchemyProductRepository


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """基于SQLAlchemy的Unit of Work"""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        session: Optional[AsyncSession] = None,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self._external_session = session
        self.session: Optional[AsyncSession] = session

    def _bind_repositories(self, session: Optional[AsyncSession]) -> None:
        if session is None:
            self.payment_lock_repository = None
            self.confirmation_repository = None
            self.buyer_repository = None
            self.referral_account_repository = None
            self.product_repository = None
            self.order_repository = None
            self.notification_repository = None
            return
        self.payment_lock_repository = SQLAlchemyPaymentLockRepository(session)
        self.confirmation_repository = SQLAlchemyConfirmationRepository(session)
        self.buyer_repository = SQLAlchemyBuyerRepository(session)
        self.referral_account_repository = SQLAlchemyReferralAccountRepository(session)
        self.product_repository = SQLAlchemyProductRepository(session)
        self.order_repository = SQLAlchemyOrderRepository(session)
        self.notification_repository = SQLAlchemyNotificationRepository(session)

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self.session is None:
            self.session = self._session_factory()
        self._bind_repositories(self.session)
        # 仅在非只读模式下显式开启事务
        if not self._readonly:
            self._transaction = await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            # 事务在 commit/rollback 后通常会结束，这里仅在仍然活动时做安全关闭
            tx = getattr(self, "_transaction", None)
            if tx is not None and getattr(tx, "is_active", False):
                close = getattr(tx, "close", None)
                if callable(close):
                    res = close()
                    if inspect.isawaitable(res):
                        await res
            if self._external_session is None and self.session is not None:
                await self.session.close()
                self.session = None
            self._bind_repositories(None)

    async def commit(self) -> None:
        if self._readonly:
            # 只读情况下不提交
            self._committed = True
            return
        if self.session and self.session.in_transaction():
            await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
