from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.buyer.entity import Buyer
from domain.catalog.entity import Product
from domain.common.exceptions import DomainValidationException
from domain.confirmation.entity import ConfirmationChannel, ConfirmationStatus, PaymentConfirmation
from domain.payment_lock.entity import LockStatus, PaymentLock, quantize_amount

NOW = datetime(2024, 5, 12, 10, 0, tzinfo=timezone.utc)


def test_quantize_amount_rounds_half_up():
    assert quantize_amount(400) == Decimal("400.00")
    assert quantize_amount(0.1 + 0.2) == Decimal("0.30")
    assert quantize_amount("19.995") == Decimal("20.00")


def test_lock_countdown():
    lock = PaymentLock.open(
        buyer_id="FF1",
        product_id=1,
        product_name="Diamonds",
        amount=Decimal("99"),
        now=NOW,
        ttl=timedelta(seconds=90),
    )
    assert lock.amount == Decimal("99.00")
    assert lock.is_live_at(NOW + timedelta(seconds=89))
    assert not lock.is_live_at(NOW + timedelta(seconds=90))
    assert lock.seconds_remaining(NOW + timedelta(seconds=30)) == 60
    assert lock.seconds_remaining(NOW + timedelta(seconds=300)) == 0


def test_completed_lock_has_no_countdown():
    lock = PaymentLock.open(
        buyer_id="FF1",
        product_id=1,
        product_name="Diamonds",
        amount=Decimal("99"),
        now=NOW,
        ttl=timedelta(seconds=90),
    )
    lock.status = LockStatus.COMPLETED
    assert not lock.is_live_at(NOW)
    assert lock.seconds_remaining(NOW) == 0


def test_lock_rejects_non_positive_amount():
    with pytest.raises(DomainValidationException):
        PaymentLock(id=None, buyer_id="FF1", product_id=1, product_name="x",
                    amount=Decimal("0"), status=LockStatus.ACTIVE)


def test_naive_timestamps_are_treated_as_utc():
    lock = PaymentLock(id=1, buyer_id="FF1", product_id=1, product_name="x", amount=Decimal("1"),
                       status="expired", expires_at=datetime(2024, 5, 12, 10, 0))
    assert lock.expires_at == NOW
    assert lock.status == LockStatus.EXPIRED


@pytest.mark.parametrize(
    "price, coins_applicable, coins, expected",
    [
        ("400.00", 0, 100, "400.00"),
        ("150.00", 20, 30, "130.00"),
        ("150.00", 50, 30, "120.00"),
        ("10.00", 50, 50, "0.01"),
    ],
)
def test_base_amount_applies_coin_discount(price, coins_applicable, coins, expected):
    product = Product(id=1, name="p", price=Decimal(price), coins_applicable=coins_applicable)
    assert product.base_amount_for(coins) == Decimal(expected)


def test_coin_product_ignores_coins():
    product = Product(id=1, name="1000 Coins", price=Decimal("120"), purchase_price=Decimal("100"),
                      is_coin_product=True, coins_applicable=50)
    assert product.base_amount_for(500) == Decimal("100.00")
    assert not Product(id=2, name="gone", price=Decimal("1"), is_vanished=True).is_purchasable


def test_buyer_coins_applicable():
    assert Buyer(id=1, gaming_id="FF1", coins=30).coins_applicable_to(20) == 20
    assert Buyer(id=1, gaming_id="FF1", coins=5).coins_applicable_to(20) == 5


def test_confirmation_verifies_once():
    entry = PaymentConfirmation.received(
        channel=ConfirmationChannel.SMS, raw_payload="Rs.1.00", sender=None, now=NOW
    )
    assert entry.status == ConfirmationStatus.UNPROCESSED

    entry.mark_no_match()
    entry.mark_verified(7, "FF1")
    assert entry.is_verified
    assert entry.matched_lock_id == 7

    with pytest.raises(DomainValidationException):
        entry.mark_verified(8, "FF2")
