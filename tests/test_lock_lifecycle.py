from datetime import timedelta
from decimal import Decimal

import pytest

from domain.common.exceptions import AmountCollisionException, PaymentLockNotFoundException
from domain.payment_lock.entity import LockStatus, PaymentLock
from infrastructure.models import PaymentLockModel


async def _start(lifecycle, amount="400.00", buyer_id="FF1001"):
    return await lifecycle.start_lock(
        buyer_id=buyer_id,
        product_id=7,
        product_name="Weekly Membership",
        amount=Decimal(amount),
    )


@pytest.mark.asyncio
async def test_start_lock_uses_configured_ttl(lifecycle, clock):
    lock = await _start(lifecycle)

    assert lock.id is not None
    assert lock.status == LockStatus.ACTIVE
    assert lock.expires_at - clock() == timedelta(seconds=90)


@pytest.mark.asyncio
async def test_second_active_lock_for_same_amount_collides(lifecycle):
    await _start(lifecycle, buyer_id="FF1")

    with pytest.raises(AmountCollisionException):
        await _start(lifecycle, buyer_id="FF2")


@pytest.mark.asyncio
async def test_unique_index_rejects_duplicate_active_amount(lifecycle, uow_factory, clock, count_rows):
    existing = await _start(lifecycle, amount="99.00")

    # 绕过预检查，直接命中部分唯一索引
    async with uow_factory() as uow:
        repo = uow.payment_lock_repository

        async def _no_precheck(amount):
            return None

        repo.find_active_by_amount = _no_precheck
        duplicate = PaymentLock.open(
            buyer_id="FF2",
            product_id=existing.product_id,
            product_name=existing.product_name,
            amount=existing.amount,
            now=clock(),
            ttl=timedelta(seconds=90),
        )
        with pytest.raises(AmountCollisionException):
            await repo.create(duplicate)

    assert await count_rows(PaymentLockModel) == 1


@pytest.mark.asyncio
async def test_expired_lock_does_not_block_new_reservation(lifecycle):
    first = await _start(lifecycle, buyer_id="FF1")
    await lifecycle.release(first.id)

    second = await _start(lifecycle, buyer_id="FF2")

    assert second.id != first.id
    assert second.amount == first.amount


@pytest.mark.asyncio
async def test_release_expires_now_and_is_idempotent(lifecycle, uow_factory, clock):
    lock = await _start(lifecycle)
    clock.advance(20)

    assert await lifecycle.release(lock.id) is True
    assert await lifecycle.release(lock.id) is False
    assert await lifecycle.release(999) is False

    async with uow_factory(readonly=True) as uow:
        stored = await uow.payment_lock_repository.get_by_id(lock.id)
    assert stored.status == LockStatus.EXPIRED
    assert stored.expires_at == clock()


@pytest.mark.asyncio
async def test_poll_reports_countdown_and_completion(lifecycle, uow_factory, clock):
    lock = await _start(lifecycle)
    clock.advance(30)

    view = await lifecycle.poll(lock.id)
    assert view.completed is False
    assert view.status == "active"
    assert view.seconds_remaining == 60

    async with uow_factory() as uow:
        await uow.payment_lock_repository.mark_completed(lock.id)

    view = await lifecycle.poll(lock.id)
    assert view.completed is True
    assert view.seconds_remaining == 0
    assert await lifecycle.is_completed(lock.id) is True


@pytest.mark.asyncio
async def test_poll_unknown_lock_raises(lifecycle):
    with pytest.raises(PaymentLockNotFoundException):
        await lifecycle.poll(12345)


@pytest.mark.asyncio
async def test_sweep_expires_only_overdue_active_locks(lifecycle, uow_factory, clock):
    old = await _start(lifecycle, amount="10.00")
    clock.advance(60)
    fresh = await _start(lifecycle, amount="11.00")
    done = await _start(lifecycle, amount="12.00")
    async with uow_factory() as uow:
        await uow.payment_lock_repository.mark_completed(done.id)

    clock.advance(31)
    assert await lifecycle.sweep_expired() == 1
    assert await lifecycle.sweep_expired() == 0

    async with uow_factory(readonly=True) as uow:
        repo = uow.payment_lock_repository
        assert (await repo.get_by_id(old.id)).status == LockStatus.EXPIRED
        assert (await repo.get_by_id(fresh.id)).status == LockStatus.ACTIVE
        assert (await repo.get_by_id(done.id)).status == LockStatus.COMPLETED


@pytest.mark.asyncio
async def test_force_expire_keeps_expiry_timestamp(lifecycle, uow_factory, clock):
    lock = await _start(lifecycle)
    clock.advance(5)

    assert await lifecycle.force_expire(lock.id) is True
    assert await lifecycle.force_expire(lock.id) is False

    async with uow_factory(readonly=True) as uow:
        stored = await uow.payment_lock_repository.get_by_id(lock.id)
    assert stored.status == LockStatus.EXPIRED
    assert stored.expires_at == lock.expires_at


@pytest.mark.asyncio
async def test_force_expire_unknown_lock_raises(lifecycle):
    with pytest.raises(PaymentLockNotFoundException):
        await lifecycle.force_expire(404)


@pytest.mark.asyncio
async def test_list_locks_filters_and_pages(lifecycle, clock):
    for i in range(3):
        await _start(lifecycle, amount=f"{20 + i}.00", buyer_id=f"ALPHA{i}")
        clock.advance(1)
    other = await _start(lifecycle, amount="30.00", buyer_id="BRAVO")
    await lifecycle.release(other.id)

    items, total = await lifecycle.list_locks(search="alpha", page=1, size=2)
    assert total == 3
    assert [lock.buyer_id for lock in items] == ["ALPHA2", "ALPHA1"]

    items, total = await lifecycle.list_locks(status=LockStatus.EXPIRED)
    assert total == 1
    assert items[0].buyer_id == "BRAVO"
