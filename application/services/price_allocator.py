"""
Price allocator: find a payable amount no other in-flight payment is using.

The amount is the only correlation key a UPI confirmation carries, so two
buyers must never be asked to pay the same amount while either reservation
is still matchable (active, or expired within the grace window).
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterator

from core.config import PaymentLockSettings
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment_lock.entity import quantize_amount, utc_now
from application.services.lock_lifecycle_service import LockLifecycleService


logger = get_logger(__name__)


@dataclass(frozen=True)
class PriceAllocation:
    amount: Decimal
    surcharge: Decimal
    exhausted: bool = False

    def __iter__(self) -> Iterator[Decimal]:
        # amount, surcharge = allocation
        yield self.amount
        yield self.surcharge


class PriceAllocator:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        lifecycle: LockLifecycleService,
        lock_settings: PaymentLockSettings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._lifecycle = lifecycle
        self._settings = lock_settings
        self._clock = clock

    async def allocate(self, base_amount) -> PriceAllocation:
        base = quantize_amount(base_amount)
        if base <= 0:
            raise DomainValidationException(
                f"Base amount must be positive: {base}", field="base_amount"
            )

        await self._lifecycle.sweep_expired_quietly()

        now = self._clock()
        grace = timedelta(seconds=self._settings.grace_window_seconds)
        step = self._settings.amount_step
        candidate = base
        async with self._uow_factory(readonly=True) as uow:
            for _ in range(self._settings.max_increments):
                blocking = await uow.payment_lock_repository.find_active_or_grace_expired(
                    candidate, now, grace
                )
                if blocking is None:
                    return PriceAllocation(amount=candidate, surcharge=candidate - base)
                candidate = quantize_amount(candidate + step)

        logger.warning(
            "price_allocation_exhausted",
            base_amount=str(base),
            max_increments=self._settings.max_increments,
        )
        return PriceAllocation(amount=base, surcharge=Decimal("0.00"), exhausted=True)
