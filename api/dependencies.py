"""
API依赖项 - 组合根：在这里把基础设施实现注入应用服务
"""
import hmac
from datetime import datetime
from typing import Callable, Dict, Optional

from fastapi import Depends, Header

from application.ports.confirmation_parser import ConfirmationParser
from application.ports.notifier import Notifier
from application.services.checkout_service import CheckoutService
from application.services.lock_lifecycle_service import LockLifecycleService
from application.services.price_allocator import PriceAllocator
from application.services.reconciliation_service import ReconciliationService
from core.config import settings
from core.exceptions import AdminAuthenticationException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment_lock.entity import utc_now
from infrastructure.external.notifications.celery_notifier import CeleryPushNotifier
from infrastructure.external.payments import build_confirmation_parsers
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return SQLAlchemyUnitOfWork


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_notifier() -> Notifier:
    return CeleryPushNotifier()


def get_confirmation_parsers() -> Dict[str, ConfirmationParser]:
    return build_confirmation_parsers()


def get_lifecycle_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> LockLifecycleService:
    return LockLifecycleService(uow_factory, settings.payment_lock, clock=clock)


def get_price_allocator(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    lifecycle: LockLifecycleService = Depends(get_lifecycle_service),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> PriceAllocator:
    return PriceAllocator(uow_factory, lifecycle, settings.payment_lock, clock=clock)


def get_checkout_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    allocator: PriceAllocator = Depends(get_price_allocator),
    lifecycle: LockLifecycleService = Depends(get_lifecycle_service),
) -> CheckoutService:
    return CheckoutService(uow_factory, allocator, lifecycle, settings.payment_lock)


def get_reconciliation_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    lifecycle: LockLifecycleService = Depends(get_lifecycle_service),
    parsers: Dict[str, ConfirmationParser] = Depends(get_confirmation_parsers),
    notifier: Notifier = Depends(get_notifier),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReconciliationService:
    return ReconciliationService(
        uow_factory,
        lifecycle,
        parsers,
        notifier,
        settings.payment_lock,
        settings.storefront,
        clock=clock,
    )


async def require_admin(
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
) -> None:
    """管理端接口校验 X-Admin-Token"""
    expected = settings.ADMIN_API_KEY or ""
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise AdminAuthenticationException()
