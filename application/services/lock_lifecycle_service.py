"""
Lock lifecycle: create, release, poll, sweep and admin force-expire.

All status changes go through the lock store's conditional updates, so this
service never needs an in-process mutex.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from application.dtos.payment_locks import LockStatusView
from core.config import PaymentLockSettings
from core.logging_config import get_logger
from domain.common.exceptions import PaymentLockNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment_lock.entity import LockStatus, PaymentLock, utc_now


logger = get_logger(__name__)


class LockLifecycleService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        lock_settings: PaymentLockSettings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._settings = lock_settings
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self._settings.lock_ttl_seconds)

    async def start_lock(
        self,
        buyer_id: str,
        product_id: int,
        product_name: str,
        amount: Decimal,
    ) -> PaymentLock:
        """Reserve ``amount`` for the buyer; AmountCollisionException if taken."""
        lock = PaymentLock.open(
            buyer_id=buyer_id,
            product_id=product_id,
            product_name=product_name,
            amount=amount,
            now=self._clock(),
            ttl=self.ttl,
        )
        async with self._uow_factory() as uow:
            return await uow.payment_lock_repository.create(lock)

    async def release(self, lock_id: int) -> bool:
        """Buyer abandoned checkout. Best effort: never raises."""
        try:
            async with self._uow_factory() as uow:
                released = await uow.payment_lock_repository.expire(
                    lock_id, expires_at=self._clock()
                )
        except SQLAlchemyError as exc:
            logger.warning("payment_lock_release_failed", lock_id=lock_id, error=str(exc))
            return False
        logger.info("payment_lock_released", lock_id=lock_id, released=released)
        return released

    async def is_completed(self, lock_id: int) -> bool:
        async with self._uow_factory(readonly=True) as uow:
            lock = await uow.payment_lock_repository.get_by_id(lock_id)
        return bool(lock and lock.is_completed)

    async def poll(self, lock_id: int) -> LockStatusView:
        async with self._uow_factory(readonly=True) as uow:
            lock = await uow.payment_lock_repository.get_by_id(lock_id)
        if lock is None:
            raise PaymentLockNotFoundException(lock_id)
        return LockStatusView(
            lock_id=lock.id,
            completed=lock.is_completed,
            status=lock.status.value,
            expires_at=lock.expires_at,
            seconds_remaining=lock.seconds_remaining(self._clock()),
        )

    async def sweep_expired(self) -> int:
        now = self._clock()
        async with self._uow_factory() as uow:
            swept = await uow.payment_lock_repository.sweep_expired(now)
        if swept:
            logger.info("payment_locks_swept", count=swept)
        return swept

    async def sweep_expired_quietly(self) -> int:
        """Opportunistic sweep on read paths; a failure must not block the caller."""
        try:
            return await self.sweep_expired()
        except SQLAlchemyError as exc:
            logger.warning("payment_lock_sweep_failed", error=str(exc))
            return 0

    async def force_expire(self, lock_id: int) -> bool:
        """Admin: active -> expired, expires_at untouched."""
        async with self._uow_factory() as uow:
            lock = await uow.payment_lock_repository.get_by_id(lock_id)
            if lock is None:
                raise PaymentLockNotFoundException(lock_id)
            expired = await uow.payment_lock_repository.expire(lock_id)
        logger.info(
            "payment_lock_force_expired",
            lock_id=lock_id,
            expired=expired,
            previous_status=lock.status.value,
        )
        return expired

    async def list_locks(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[LockStatus] = None,
        page: int = 1,
        size: int = 10,
    ) -> Tuple[List[PaymentLock], int]:
        await self.sweep_expired_quietly()
        skip = (page - 1) * size
        async with self._uow_factory(readonly=True) as uow:
            items = await uow.payment_lock_repository.list(
                search=search, status=status, skip=skip, limit=size
            )
            total = await uow.payment_lock_repository.count(search=search, status=status)
        return items, total
