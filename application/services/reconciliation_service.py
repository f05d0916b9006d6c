"""
Reconciliation engine: match inbound payment confirmations to payment locks
and materialize the order exactly once.

Every confirmation is journaled before anything else happens, so an event
that fails to match (or arrives while the database is struggling) can be
inspected and replayed later.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, List, Mapping, Optional, Tuple

from application.dtos.payment_locks import ReconcileResult
from application.ports.confirmation_parser import ConfirmationParser
from application.ports.notifier import Notifier
from application.services.lock_lifecycle_service import LockLifecycleService
from core.config import PaymentLockSettings, StorefrontSettings
from core.logging_config import get_logger
from domain.common.exceptions import (
    AlreadyCompletedException,
    ConfirmationNotFoundException,
    ConfirmationParseException,
    PaymentLockNotFoundException,
    ReferenceNotFoundException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.confirmation.entity import (
    ConfirmationChannel,
    ConfirmationStatus,
    PaymentConfirmation,
)
from domain.notification.entity import Notification
from domain.order.entity import Order, OrderStatus
from domain.payment_lock.entity import PaymentLock, quantize_amount, utc_now
from shared.codes.payment_codes import PAYMENT_METHOD_AUTO, PAYMENT_METHOD_MANUAL


logger = get_logger(__name__)


class ReconciliationService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        lifecycle: LockLifecycleService,
        parsers: Mapping[str, ConfirmationParser],
        notifier: Notifier,
        lock_settings: PaymentLockSettings,
        storefront: StorefrontSettings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._lifecycle = lifecycle
        self._parsers = dict(parsers)
        self._notifier = notifier
        self._lock_settings = lock_settings
        self._storefront = storefront
        self._clock = clock

    async def reconcile(
        self,
        raw_payload: str,
        channel: str,
        sender: Optional[str] = None,
    ) -> ReconcileResult:
        """Journal, parse, match and materialize one confirmation."""
        channel = ConfirmationChannel(channel)
        entry = PaymentConfirmation.received(
            channel=channel,
            raw_payload=raw_payload,
            sender=sender,
            now=self._clock(),
        )
        async with self._uow_factory() as uow:
            entry = await uow.confirmation_repository.append(entry)
        return await self._process(entry)

    async def replay(self, confirmation_id: int) -> ReconcileResult:
        """Admin: run a journaled, unverified confirmation through matching again."""
        entry = await self._load_unverified(confirmation_id)
        logger.info("confirmation_replay", confirmation_id=confirmation_id, status=entry.status.value)
        return await self._process(entry)

    async def manual_approve(
        self, lock_id: int, confirmation_id: Optional[int] = None
    ) -> Order:
        """Admin verified the payment out of band; materialize the lock directly."""
        entry = None
        if confirmation_id is not None:
            entry = await self._load_unverified(confirmation_id)
        order = await self._materialize(
            lock_id,
            entry=entry,
            payment_method=PAYMENT_METHOD_MANUAL,
            utr=entry.provider_ref if entry else None,
        )
        logger.info(
            "payment_lock_manually_approved",
            lock_id=lock_id,
            order_id=order.id,
            confirmation_id=confirmation_id,
        )
        return order

    async def list_confirmations(
        self,
        *,
        status: Optional[ConfirmationStatus] = None,
        page: int = 1,
        size: int = 10,
    ) -> Tuple[List[PaymentConfirmation], int]:
        skip = (page - 1) * size
        async with self._uow_factory(readonly=True) as uow:
            items = await uow.confirmation_repository.list(status=status, skip=skip, limit=size)
            total = await uow.confirmation_repository.count(status=status)
        return items, total

    async def _load_unverified(self, confirmation_id: int) -> PaymentConfirmation:
        async with self._uow_factory(readonly=True) as uow:
            entry = await uow.confirmation_repository.get_by_id(confirmation_id)
        if entry is None:
            raise ConfirmationNotFoundException(confirmation_id)
        if entry.is_verified:
            raise AlreadyCompletedException(entry.matched_lock_id)
        return entry

    async def _save(self, entry: PaymentConfirmation) -> PaymentConfirmation:
        async with self._uow_factory() as uow:
            return await uow.confirmation_repository.update(entry)

    def _result(self, entry: PaymentConfirmation, **kwargs) -> ReconcileResult:
        return ReconcileResult(
            confirmation_id=entry.id,
            status=entry.status.value,
            **kwargs,
        )

    async def _process(self, entry: PaymentConfirmation) -> ReconcileResult:
        parser = self._parsers.get(entry.channel.value)
        if parser is None:
            raise ValueError(f"No confirmation parser registered for channel: {entry.channel.value}")

        try:
            parsed = parser.parse(entry.raw_payload)
        except ConfirmationParseException as exc:
            entry.mark_not_payment(exc.message)
            entry = await self._save(entry)
            logger.info(
                "confirmation_not_payment",
                confirmation_id=entry.id,
                channel=entry.channel.value,
                reason=exc.message,
            )
            return self._result(entry, matched=False, reason="not_payment")

        entry.record_parse(parsed.amount, parsed.provider_ref)
        entry = await self._save(entry)

        await self._lifecycle.sweep_expired_quietly()
        lock = await self._find_match(entry)
        if lock is None:
            entry.mark_no_match()
            entry = await self._save(entry)
            logger.info(
                "reconcile_no_match",
                confirmation_id=entry.id,
                amount=str(entry.parsed_amount),
            )
            return self._result(entry, matched=False, reason="no_match")

        try:
            order = await self._materialize(
                lock.id,
                entry=entry,
                payment_method=PAYMENT_METHOD_AUTO,
                utr=entry.provider_ref,
            )
        except AlreadyCompletedException:
            entry.mark_no_match("already_completed")
            entry = await self._save(entry)
            logger.info("reconcile_already_completed", confirmation_id=entry.id, lock_id=lock.id)
            return self._result(entry, matched=False, lock_id=lock.id, reason="already_completed")
        except ReferenceNotFoundException as exc:
            # 事务已回滚，锁保持原状；记录原因后留待人工处理
            entry.record_failure(exc.message)
            entry = await self._save(entry)
            logger.warning(
                "reconcile_reference_not_found",
                confirmation_id=entry.id,
                lock_id=lock.id,
                details=exc.details,
            )
            return self._result(entry, matched=False, lock_id=lock.id, reason="reference_not_found")

        return ReconcileResult(
            matched=True,
            confirmation_id=entry.id,
            status=ConfirmationStatus.VERIFIED.value,
            lock_id=lock.id,
            order_id=order.id,
        )

    async def _find_match(self, entry: PaymentConfirmation) -> Optional[PaymentLock]:
        now = self._clock()
        grace = timedelta(seconds=self._lock_settings.grace_window_seconds)
        async with self._uow_factory(readonly=True) as uow:
            repo = uow.payment_lock_repository
            lock = await repo.find_active_by_amount(entry.parsed_amount)
            if lock is not None:
                return lock
            lock = await repo.find_latest_grace_expired(entry.parsed_amount, now, grace)
        if lock is not None:
            logger.info(
                "reconcile_grace_match",
                confirmation_id=entry.id,
                lock_id=lock.id,
                expired_at=lock.expires_at,
            )
        return lock

    async def _materialize(
        self,
        lock_id: int,
        *,
        entry: Optional[PaymentConfirmation],
        payment_method: str,
        utr: Optional[str],
    ) -> Order:
        """
        One transaction: lock -> completed, order, coin balance, referral
        reward, journal verified, in-app notification.

        The conditional completed flip runs first, so a concurrent second
        materialization of the same lock fails before writing anything.
        """
        now = self._clock()
        async with self._uow_factory() as uow:
            lock = await uow.payment_lock_repository.get_by_id(lock_id)
            if lock is None:
                raise PaymentLockNotFoundException(lock_id)
            if not await uow.payment_lock_repository.mark_completed(lock.id):
                raise AlreadyCompletedException(lock.id)

            buyer = await uow.buyer_repository.get_by_gaming_id(lock.buyer_id)
            product = await uow.product_repository.get_by_id(lock.product_id)
            if buyer is None or product is None:
                raise ReferenceNotFoundException(buyer_id=lock.buyer_id, product_id=lock.product_id)

            if product.is_coin_product:
                coins_used = 0
                status = OrderStatus.COMPLETED
            else:
                coins_used = buyer.coins_applicable_to(product.coins_applicable)
                status = OrderStatus.PROCESSING

            order = await uow.order_repository.create(
                Order(
                    id=None,
                    buyer_pk=buyer.id,
                    buyer_id=buyer.gaming_id,
                    product_id=product.id,
                    product_name=lock.product_name,
                    product_price=product.price,
                    product_image_url=product.image_url,
                    final_price=lock.amount,
                    payment_method=payment_method,
                    status=status,
                    utr=utr,
                    referral_code=buyer.referred_by_code,
                    coins_used=coins_used,
                    is_coin_product=product.is_coin_product,
                    coins_at_time_of_purchase=buyer.coins,
                    lock_id=lock.id,
                    created_at=now,
                )
            )

            if product.is_coin_product:
                await uow.buyer_repository.adjust_coins(buyer.gaming_id, product.quantity)
            elif coins_used > 0:
                await uow.buyer_repository.adjust_coins(buyer.gaming_id, -coins_used)

            if buyer.referred_by_code and order.is_completed:
                reward = quantize_amount(order.final_price * self._storefront.referral_reward_rate)
                await uow.referral_account_repository.credit_wallet(buyer.referred_by_code, reward)

            if entry is not None:
                # 一笔到账只能核销一把锁；输掉竞争则整个事务回滚
                entry.mark_verified(lock.id, buyer.gaming_id)
                if not await uow.confirmation_repository.mark_verified(entry):
                    raise AlreadyCompletedException(lock.id)

            message = (
                f'Your payment of ₹{lock.amount} for "{lock.product_name}" has been '
                f"successfully received. You can see the details and track your order "
                f"here: {self._storefront.order_page_url}"
            )
            await uow.notification_repository.create(
                Notification(
                    id=None,
                    buyer_id=buyer.gaming_id,
                    message=message,
                    image_url=product.image_url,
                    created_at=now,
                )
            )

        logger.info(
            "payment_reconciled",
            lock_id=lock.id,
            order_id=order.id,
            buyer_id=buyer.gaming_id,
            amount=str(lock.amount),
            payment_method=payment_method,
            confirmation_id=entry.id if entry else None,
        )
        await self._push(buyer.gaming_id, buyer.fcm_token, message, product.image_url)
        return order

    async def _push(
        self,
        buyer_id: str,
        token: Optional[str],
        message: str,
        image_url: Optional[str],
    ) -> None:
        if not token:
            logger.debug("push_skipped_no_token", buyer_id=buyer_id)
            return
        try:
            await self._notifier.notify(
                buyer_id,
                f"{self._storefront.store_name}: Payment Received!",
                message,
                image_url=image_url,
                token=token,
            )
        except Exception as exc:
            # 推送失败不影响已提交的订单
            logger.warning("push_dispatch_failed", buyer_id=buyer_id, error=str(exc))
