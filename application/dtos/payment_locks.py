"""
Checkout / reconciliation DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.confirmation.entity import ConfirmationChannel, ConfirmationStatus
from domain.order.entity import OrderStatus
from domain.payment_lock.entity import LockStatus


class ParsedConfirmation(BaseModel):
    """What a channel parser extracts from a confirmation payload."""

    amount: Decimal = Field(gt=0)
    provider_ref: Optional[str] = None


class PaymentLockRequest(BaseModel):
    buyer_id: str = Field(min_length=1, max_length=100, description="买家游戏ID")
    product_id: int = Field(gt=0)


class PaymentLockQuote(BaseModel):
    """Amount the buyer must pay, plus the countdown for the reservation."""

    lock_id: int
    amount: Decimal
    surcharge: Decimal
    base_amount: Decimal
    expires_at: datetime
    ttl_seconds: int


class LockStatusView(BaseModel):
    lock_id: int
    completed: bool
    status: str
    expires_at: Optional[datetime] = None
    seconds_remaining: int = 0


class ReconcileResult(BaseModel):
    matched: bool
    confirmation_id: Optional[int] = None
    status: str
    lock_id: Optional[int] = None
    order_id: Optional[int] = None
    reason: Optional[str] = None


class SmsWebhookPayload(BaseModel):
    key: str = Field(min_length=1, description="短信原文")
    sender: Optional[str] = None


class ManualApproveRequest(BaseModel):
    confirmation_id: Optional[int] = None


class PaymentLockRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    buyer_id: str
    product_id: int
    product_name: str
    amount: Decimal
    status: LockStatus
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ConfirmationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    channel: ConfirmationChannel
    sender: Optional[str] = None
    raw_payload: str
    parsed_amount: Optional[Decimal] = None
    provider_ref: Optional[str] = None
    status: ConfirmationStatus
    matched_lock_id: Optional[int] = None
    matched_buyer_id: Optional[str] = None
    error: Optional[str] = None
    received_at: datetime


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lock_id: int
    buyer_id: str
    product_id: int
    product_name: str
    final_price: Decimal
    payment_method: str
    status: OrderStatus
    coins_used: int
    utr: Optional[str] = None
    created_at: Optional[datetime] = None
