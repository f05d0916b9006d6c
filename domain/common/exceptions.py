"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class AmountCollisionException(BusinessException):
    """No free payable amount, or the reservation lost the insert race."""

    def __init__(self, amount: Optional[Decimal] = None):
        details = {"amount": str(amount)} if amount is not None else None
        super().__init__(
            code=PaymentCode.AMOUNT_COLLISION,
            message="Another payment for the same amount is in progress. Please try again.",
            error_type="AmountCollision",
            details=details,
        )


class PaymentLockNotFoundException(BusinessException):
    def __init__(self, lock_id: Optional[int] = None):
        details = {"lock_id": lock_id} if lock_id is not None else None
        super().__init__(
            code=PaymentCode.LOCK_NOT_FOUND,
            message="Payment session not found",
            error_type="PaymentLockNotFound",
            details=details,
        )


class AlreadyCompletedException(BusinessException):
    """Second materialization attempt for a lock; safe to ignore."""

    def __init__(self, lock_id: Optional[int] = None):
        details = {"lock_id": lock_id} if lock_id is not None else None
        super().__init__(
            code=PaymentCode.ALREADY_COMPLETED,
            message="Payment session already completed",
            error_type="AlreadyCompleted",
            details=details,
        )


class ConfirmationParseException(BusinessException):
    """Confirmation payload does not describe a payment."""

    def __init__(self, reason: str, *, channel: Optional[str] = None):
        super().__init__(
            code=PaymentCode.PARSE_FAILURE,
            message=reason,
            error_type="ParseFailure",
            details={"channel": channel} if channel else None,
        )


class ReferenceNotFoundException(BusinessException):
    """Buyer or product referenced by a lock vanished before materialization."""

    def __init__(self, *, buyer_id: Optional[str] = None, product_id: Optional[int] = None):
        details = {}
        if buyer_id is not None:
            details["buyer_id"] = buyer_id
        if product_id is not None:
            details["product_id"] = product_id
        super().__init__(
            code=PaymentCode.REFERENCE_NOT_FOUND,
            message="Buyer or product not found for the payment session",
            error_type="ReferenceNotFound",
            details=details or None,
        )


class ConfirmationNotFoundException(BusinessException):
    def __init__(self, confirmation_id: Optional[int] = None):
        details = {"confirmation_id": confirmation_id} if confirmation_id is not None else None
        super().__init__(
            code=PaymentCode.CONFIRMATION_NOT_FOUND,
            message="Payment confirmation not found",
            error_type="ConfirmationNotFound",
            details=details,
        )


class BuyerNotFoundException(BusinessException):
    def __init__(self, buyer_id: Optional[str] = None):
        details = {"buyer_id": buyer_id} if buyer_id else None
        super().__init__(
            code=BusinessCode.BUYER_NOT_FOUND,
            message="Buyer not found",
            error_type="BuyerNotFound",
            details=details,
        )


class ProductNotFoundException(BusinessException):
    def __init__(self, product_id: Optional[int] = None):
        details = {"product_id": product_id} if product_id is not None else None
        super().__init__(
            code=BusinessCode.PRODUCT_NOT_FOUND,
            message="Product not found",
            error_type="ProductNotFound",
            details=details,
        )


class ProductUnavailableException(BusinessException):
    def __init__(self, product_id: int):
        super().__init__(
            code=BusinessCode.PRODUCT_UNAVAILABLE,
            message="Product is not available for purchase",
            error_type="ProductUnavailable",
            details={"product_id": product_id},
        )


class BuyerBannedException(BusinessException):
    def __init__(self, buyer_id: str, ban_message: Optional[str] = None):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message=ban_message or "Buyer account is banned",
            error_type="BuyerBanned",
            details={"buyer_id": buyer_id},
        )
