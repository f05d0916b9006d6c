"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os
import tempfile

# Mandatory admin token for settings validation
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault(
    "DATABASE__URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "upi_checkout_bootstrap.db"),
)

import functools
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, select

from application.services.checkout_service import CheckoutService
from application.services.lock_lifecycle_service import LockLifecycleService
from application.services.price_allocator import PriceAllocator
from application.services.reconciliation_service import ReconciliationService
from core.config import PaymentLockSettings, StorefrontSettings
from domain.buyer.entity import Buyer, ReferralAccount
from domain.catalog.entity import Product
from infrastructure.database import build_engine, build_session_factory, create_tables
from infrastructure.external.payments.razorpay_client import RazorpayWebhookParser
from infrastructure.external.payments.sms_parser import BankSmsParser
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


RAZORPAY_SECRET = "whsec_test"
ADMIN_HEADERS = {"X-Admin-Token": "test-admin-key"}


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime(2024, 5, 12, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: List[dict] = []

    async def notify(self, buyer_id, title, message, *, image_url=None, token=None) -> None:
        self.calls.append(
            {
                "buyer_id": buyer_id,
                "title": title,
                "message": message,
                "image_url": image_url,
                "token": token,
            }
        )


class FailingNotifier:
    async def notify(self, buyer_id, title, message, *, image_url=None, token=None) -> None:
        raise RuntimeError("push backend down")


class Seeder:
    def __init__(self, uow_factory) -> None:
        self._uow_factory = uow_factory

    async def buyer(
        self,
        gaming_id: str = "FF1001",
        *,
        coins: int = 0,
        referred_by_code: Optional[str] = None,
        fcm_token: Optional[str] = "fcm-token-1",
        is_banned: bool = False,
    ) -> Buyer:
        async with self._uow_factory() as uow:
            return await uow.buyer_repository.create(
                Buyer(
                    id=None,
                    gaming_id=gaming_id,
                    coins=coins,
                    referred_by_code=referred_by_code,
                    fcm_token=fcm_token,
                    is_banned=is_banned,
                )
            )

    async def product(
        self,
        name: str = "Weekly Membership",
        price: str = "400.00",
        **kwargs,
    ) -> Product:
        async with self._uow_factory() as uow:
            return await uow.product_repository.create(
                Product(id=None, name=name, price=Decimal(price), **kwargs)
            )

    async def referral_account(self, referral_code: str = "REF42") -> ReferralAccount:
        async with self._uow_factory() as uow:
            return await uow.referral_account_repository.create(
                ReferralAccount(id=None, referral_code=referral_code)
            )


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'checkout.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def uow_factory(db_engine):
    return functools.partial(SQLAlchemyUnitOfWork, build_session_factory(db_engine))


@pytest.fixture
def count_rows(db_engine):
    session_factory = build_session_factory(db_engine)

    async def _count(model, *criteria) -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model).where(*criteria))
            return result.scalar_one()

    return _count


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def lock_settings():
    return PaymentLockSettings()


@pytest.fixture
def storefront():
    return StorefrontSettings()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def parsers():
    return {
        "sms": BankSmsParser(),
        "razorpay": RazorpayWebhookParser(webhook_secret=RAZORPAY_SECRET),
    }


@pytest.fixture
def seed(uow_factory):
    return Seeder(uow_factory)


@pytest.fixture
def lifecycle(uow_factory, lock_settings, clock):
    return LockLifecycleService(uow_factory, lock_settings, clock=clock)


@pytest.fixture
def allocator(uow_factory, lifecycle, lock_settings, clock):
    return PriceAllocator(uow_factory, lifecycle, lock_settings, clock=clock)


@pytest.fixture
def checkout(uow_factory, allocator, lifecycle, lock_settings):
    return CheckoutService(uow_factory, allocator, lifecycle, lock_settings)


@pytest.fixture
def reconciliation(uow_factory, lifecycle, parsers, notifier, lock_settings, storefront, clock):
    return ReconciliationService(
        uow_factory,
        lifecycle,
        parsers,
        notifier,
        lock_settings,
        storefront,
        clock=clock,
    )


@pytest_asyncio.fixture
async def client(uow_factory, clock, notifier, parsers):
    from api import dependencies
    from main import app

    app.dependency_overrides[dependencies.get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[dependencies.get_clock] = lambda: clock
    app.dependency_overrides[dependencies.get_notifier] = lambda: notifier
    app.dependency_overrides[dependencies.get_confirmation_parsers] = lambda: parsers
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


def sms(amount: str, ref: str = "412345678901") -> str:
    return f"Rs.{amount} credited to a/c XX1234 on 12-05-24 by VPA buyer@okaxis (UPI Ref:{ref})"
