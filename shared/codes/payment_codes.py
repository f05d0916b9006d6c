"""
Payment lock / reconciliation codes and confirmation channel constants.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Lock allocation (6xxxx)
    AMOUNT_COLLISION = 60000
    LOCK_NOT_FOUND = 60001
    ALREADY_COMPLETED = 60002

    # Confirmation handling (61xxx)
    SIGNATURE_ERROR = 61000
    PARSE_FAILURE = 61001
    REFERENCE_NOT_FOUND = 61002
    CONFIRMATION_NOT_FOUND = 61003


# Order payment methods written by materialization
PAYMENT_METHOD_AUTO = "UPI-Auto"
PAYMENT_METHOD_MANUAL = "UPI-Manual"

# Razorpay event that carries a captured payment
RAZORPAY_CAPTURED_EVENT = "payment.captured"
