from decimal import Decimal

import pytest

from application.services.lock_lifecycle_service import LockLifecycleService
from application.services.price_allocator import PriceAllocator
from core.config import PaymentLockSettings
from domain.common.exceptions import DomainValidationException


async def _occupy(lifecycle, *amounts):
    locks = []
    for i, amount in enumerate(amounts):
        locks.append(
            await lifecycle.start_lock(
                buyer_id=f"FF{i}",
                product_id=1,
                product_name="Diamonds",
                amount=Decimal(amount),
            )
        )
    return locks


@pytest.mark.asyncio
async def test_allocate_without_collisions_returns_base(allocator):
    allocation = await allocator.allocate(Decimal("400"))
    assert allocation.amount == Decimal("400.00")
    assert allocation.surcharge == Decimal("0.00")
    assert allocation.exhausted is False

    amount, surcharge = allocation
    assert (amount, surcharge) == (Decimal("400.00"), Decimal("0.00"))


@pytest.mark.asyncio
async def test_allocate_skips_every_active_candidate(allocator, lifecycle):
    await _occupy(lifecycle, "100.00", "100.01", "100.02", "100.03", "100.04")

    allocation = await allocator.allocate(Decimal("100.00"))

    assert allocation.amount == Decimal("100.05")
    assert allocation.surcharge == Decimal("0.05")


@pytest.mark.asyncio
async def test_allocate_uses_gap_between_reserved_amounts(allocator, lifecycle):
    await _occupy(lifecycle, "50.00", "50.02")

    allocation = await allocator.allocate(Decimal("50.00"))

    assert allocation.amount == Decimal("50.01")


@pytest.mark.asyncio
async def test_released_amount_blocked_inside_grace_window(allocator, lifecycle, clock):
    (lock,) = await _occupy(lifecycle, "240.00")
    assert await lifecycle.release(lock.id) is True

    clock.advance(10)
    blocked = await allocator.allocate(Decimal("240.00"))
    assert blocked.amount == Decimal("240.01")

    clock.advance(25)
    free = await allocator.allocate(Decimal("240.00"))
    assert free.amount == Decimal("240.00")
    assert free.surcharge == Decimal("0.00")


@pytest.mark.asyncio
async def test_stale_active_lock_is_swept_before_allocating(allocator, lifecycle, clock):
    await _occupy(lifecycle, "75.00")

    # ttl 90s + grace 30s
    clock.advance(121)
    allocation = await allocator.allocate(Decimal("75.00"))

    assert allocation.amount == Decimal("75.00")


@pytest.mark.asyncio
async def test_completed_lock_does_not_block_amount(allocator, lifecycle, uow_factory):
    (lock,) = await _occupy(lifecycle, "60.00")
    async with uow_factory() as uow:
        assert await uow.payment_lock_repository.mark_completed(lock.id) is True

    allocation = await allocator.allocate(Decimal("60.00"))

    assert allocation.amount == Decimal("60.00")


@pytest.mark.asyncio
async def test_allocate_reports_exhaustion(uow_factory, clock):
    settings = PaymentLockSettings(max_increments=3)
    lifecycle = LockLifecycleService(uow_factory, settings, clock=clock)
    allocator = PriceAllocator(uow_factory, lifecycle, settings, clock=clock)
    await _occupy(lifecycle, "10.00", "10.01", "10.02")

    allocation = await allocator.allocate(Decimal("10.00"))

    assert allocation.exhausted is True
    assert allocation.amount == Decimal("10.00")
    assert allocation.surcharge == Decimal("0.00")


@pytest.mark.asyncio
async def test_allocate_rejects_non_positive_base(allocator):
    with pytest.raises(DomainValidationException):
        await allocator.allocate(Decimal("0"))
