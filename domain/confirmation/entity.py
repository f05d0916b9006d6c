"""
付款确认日志实体 - 每一条外部付款信号在匹配前先落库，便于审计与重放
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException
from domain.payment_lock.entity import quantize_amount


class ConfirmationChannel(str, Enum):
    SMS = "sms"
    RAZORPAY = "razorpay"


class ConfirmationStatus(str, Enum):
    UNPROCESSED = "unprocessed"
    VERIFIED = "verified"
    IGNORED_NOT_PAYMENT = "ignored_not_payment"
    IGNORED_NO_MATCH = "ignored_no_match"


@dataclass
class PaymentConfirmation:
    """An inbound signal asserting that a payment of some amount happened."""

    id: Optional[int]
    channel: ConfirmationChannel
    raw_payload: str
    received_at: datetime
    status: ConfirmationStatus = ConfirmationStatus.UNPROCESSED
    sender: Optional[str] = None
    parsed_amount: Optional[Decimal] = None
    provider_ref: Optional[str] = None
    matched_lock_id: Optional[int] = None
    matched_buyer_id: Optional[str] = None
    error: Optional[str] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.channel = ConfirmationChannel(self.channel)
        self.status = ConfirmationStatus(self.status)
        if self.parsed_amount is not None:
            self.parsed_amount = quantize_amount(self.parsed_amount)

    @classmethod
    def received(
        cls,
        *,
        channel: ConfirmationChannel,
        raw_payload: str,
        sender: Optional[str],
        now: datetime,
    ) -> "PaymentConfirmation":
        return cls(
            id=None,
            channel=channel,
            raw_payload=raw_payload,
            sender=sender,
            received_at=now,
            updated_at=now,
        )

    @property
    def is_verified(self) -> bool:
        return self.status == ConfirmationStatus.VERIFIED

    def record_parse(self, amount: Decimal, provider_ref: Optional[str]) -> None:
        self.parsed_amount = quantize_amount(amount)
        self.provider_ref = provider_ref
        self._touch()

    def mark_not_payment(self, reason: Optional[str] = None) -> None:
        self.status = ConfirmationStatus.IGNORED_NOT_PAYMENT
        self.error = reason
        self._touch()

    def mark_no_match(self, reason: Optional[str] = None) -> None:
        self.status = ConfirmationStatus.IGNORED_NO_MATCH
        self.error = reason
        self._touch()

    def mark_verified(self, lock_id: int, buyer_id: str) -> None:
        """业务规则：已核验的记录不能再次核验"""
        if self.is_verified:
            raise DomainValidationException(
                f"Confirmation {self.id} already verified",
                field="status",
            )
        self.status = ConfirmationStatus.VERIFIED
        self.matched_lock_id = lock_id
        self.matched_buyer_id = buyer_id
        self.error = None
        self._touch()

    def record_failure(self, reason: str) -> None:
        """Keep the current status, remember why processing stopped."""
        self.error = reason
        self._touch()

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
