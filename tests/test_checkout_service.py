import asyncio
from decimal import Decimal

import pytest

from domain.common.exceptions import (
    AmountCollisionException,
    BuyerBannedException,
    BuyerNotFoundException,
    ProductNotFoundException,
    ProductUnavailableException,
)
from domain.payment_lock.entity import LockStatus


@pytest.mark.asyncio
async def test_quote_for_uncontested_product(checkout, seed, clock):
    await seed.buyer("FF1")
    product = await seed.product(price="400.00")

    quote = await checkout.request_payable_amount("FF1", product.id)

    assert quote.amount == Decimal("400.00")
    assert quote.surcharge == Decimal("0.00")
    assert quote.base_amount == Decimal("400.00")
    assert quote.ttl_seconds == 90
    assert (quote.expires_at - clock()).total_seconds() == 90


@pytest.mark.asyncio
async def test_two_buyers_same_product_get_distinct_amounts(checkout, seed, uow_factory):
    await seed.buyer("FF1")
    await seed.buyer("FF2")
    product = await seed.product(price="240.00")

    first = await checkout.request_payable_amount("FF1", product.id)
    second = await checkout.request_payable_amount("FF2", product.id)

    assert (first.amount, first.surcharge) == (Decimal("240.00"), Decimal("0.00"))
    assert (second.amount, second.surcharge) == (Decimal("240.01"), Decimal("0.01"))
    async with uow_factory(readonly=True) as uow:
        repo = uow.payment_lock_repository
        assert (await repo.get_by_id(first.lock_id)).status == LockStatus.ACTIVE
        assert (await repo.get_by_id(second.lock_id)).status == LockStatus.ACTIVE


@pytest.mark.asyncio
async def test_concurrent_requests_never_share_an_active_amount(checkout, seed):
    buyers = ["FF1", "FF2", "FF3"]
    for gaming_id in buyers:
        await seed.buyer(gaming_id)
    product = await seed.product(price="99.00")

    quotes = await asyncio.gather(
        *(checkout.request_payable_amount(gaming_id, product.id) for gaming_id in buyers)
    )

    amounts = [quote.amount for quote in quotes]
    assert len(set(amounts)) == len(amounts)
    assert min(amounts) == Decimal("99.00")


@pytest.mark.asyncio
async def test_coins_reduce_base_amount(checkout, seed):
    await seed.buyer("FF1", coins=30)
    product = await seed.product(price="150.00", coins_applicable=20)

    quote = await checkout.request_payable_amount("FF1", product.id)

    assert quote.base_amount == Decimal("130.00")
    assert quote.amount == Decimal("130.00")


@pytest.mark.asyncio
async def test_coin_product_is_priced_at_purchase_price(checkout, seed):
    await seed.buyer("FF1", coins=500)
    product = await seed.product(
        name="1000 Coins",
        price="120.00",
        purchase_price=Decimal("100.00"),
        quantity=1000,
        is_coin_product=True,
        coins_applicable=50,
    )

    quote = await checkout.request_payable_amount("FF1", product.id)

    assert quote.amount == Decimal("100.00")


@pytest.mark.asyncio
async def test_exhausted_allocation_surfaces_collision(uow_factory, seed, clock):
    from application.services.checkout_service import CheckoutService
    from application.services.lock_lifecycle_service import LockLifecycleService
    from application.services.price_allocator import PriceAllocator
    from core.config import PaymentLockSettings

    settings = PaymentLockSettings(max_increments=2)
    lifecycle = LockLifecycleService(uow_factory, settings, clock=clock)
    allocator = PriceAllocator(uow_factory, lifecycle, settings, clock=clock)
    service = CheckoutService(uow_factory, allocator, lifecycle, settings)
    for gaming_id in ("FF1", "FF2", "FF3"):
        await seed.buyer(gaming_id)
    product = await seed.product(price="10.00")

    await service.request_payable_amount("FF1", product.id)
    await service.request_payable_amount("FF2", product.id)
    with pytest.raises(AmountCollisionException):
        await service.request_payable_amount("FF3", product.id)


@pytest.mark.asyncio
async def test_unknown_buyer_rejected(checkout, seed):
    product = await seed.product()
    with pytest.raises(BuyerNotFoundException):
        await checkout.request_payable_amount("ghost", product.id)


@pytest.mark.asyncio
async def test_banned_buyer_rejected(checkout, seed):
    await seed.buyer("FF1", is_banned=True)
    product = await seed.product()
    with pytest.raises(BuyerBannedException):
        await checkout.request_payable_amount("FF1", product.id)


@pytest.mark.asyncio
async def test_unknown_or_unavailable_product_rejected(checkout, seed):
    await seed.buyer("FF1")
    with pytest.raises(ProductNotFoundException):
        await checkout.request_payable_amount("FF1", 404)

    hidden = await seed.product(is_available=False)
    with pytest.raises(ProductUnavailableException):
        await checkout.request_payable_amount("FF1", hidden.id)


@pytest.mark.asyncio
async def test_cancel_releases_lock(checkout, seed):
    await seed.buyer("FF1")
    product = await seed.product()
    quote = await checkout.request_payable_amount("FF1", product.id)

    await checkout.cancel_lock(quote.lock_id)
    await checkout.cancel_lock(quote.lock_id)

    view = await checkout.poll_lock_status(quote.lock_id)
    assert view.status == "expired"
    assert view.completed is False
    assert view.seconds_remaining == 0
