"""
Buyer-facing checkout use-cases: get a payable amount, poll, cancel.
"""
from __future__ import annotations

from typing import Callable

from application.dtos.payment_locks import LockStatusView, PaymentLockQuote
from application.services.lock_lifecycle_service import LockLifecycleService
from application.services.price_allocator import PriceAllocator
from core.config import PaymentLockSettings
from core.logging_config import get_logger
from domain.common.exceptions import (
    AmountCollisionException,
    BuyerBannedException,
    BuyerNotFoundException,
    ProductNotFoundException,
    ProductUnavailableException,
)
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)


class CheckoutService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        allocator: PriceAllocator,
        lifecycle: LockLifecycleService,
        lock_settings: PaymentLockSettings,
    ) -> None:
        self._uow_factory = uow_factory
        self._allocator = allocator
        self._lifecycle = lifecycle
        self._settings = lock_settings

    async def request_payable_amount(self, buyer_id: str, product_id: int) -> PaymentLockQuote:
        async with self._uow_factory(readonly=True) as uow:
            buyer = await uow.buyer_repository.get_by_gaming_id(buyer_id)
            product = await uow.product_repository.get_by_id(product_id)
        if buyer is None:
            raise BuyerNotFoundException(buyer_id)
        if buyer.is_banned:
            raise BuyerBannedException(buyer_id, buyer.ban_message)
        if product is None:
            raise ProductNotFoundException(product_id)
        if not product.is_purchasable:
            raise ProductUnavailableException(product_id)

        base = product.base_amount_for(buyer.coins)
        for attempt in range(1, self._settings.allocation_attempts + 1):
            allocation = await self._allocator.allocate(base)
            if allocation.exhausted:
                raise AmountCollisionException(base)
            try:
                lock = await self._lifecycle.start_lock(
                    buyer_id=buyer.gaming_id,
                    product_id=product.id,
                    product_name=product.name,
                    amount=allocation.amount,
                )
            except AmountCollisionException:
                # 另一个买家抢先占用了同一金额，重新分配
                logger.info(
                    "payment_lock_allocation_retry",
                    buyer_id=buyer_id,
                    amount=str(allocation.amount),
                    attempt=attempt,
                )
                continue
            return PaymentLockQuote(
                lock_id=lock.id,
                amount=lock.amount,
                surcharge=allocation.surcharge,
                base_amount=base,
                expires_at=lock.expires_at,
                ttl_seconds=self._settings.lock_ttl_seconds,
            )

        raise AmountCollisionException(base)

    async def poll_lock_status(self, lock_id: int) -> LockStatusView:
        return await self._lifecycle.poll(lock_id)

    async def cancel_lock(self, lock_id: int) -> None:
        await self._lifecycle.release(lock_id)
