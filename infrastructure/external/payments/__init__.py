"""
Factory for confirmation channel parsers.
"""
from __future__ import annotations

from typing import Dict

from application.ports.confirmation_parser import ConfirmationParser


def get_confirmation_parser(channel: str) -> ConfirmationParser:
    name = (channel or "").lower()
    if name == "sms":
        from .sms_parser import BankSmsParser
        return BankSmsParser()
    if name == "razorpay":
        from .razorpay_client import RazorpayWebhookParser
        return RazorpayWebhookParser()
    raise ValueError(f"Unsupported confirmation channel: {name}")


def build_confirmation_parsers() -> Dict[str, ConfirmationParser]:
    return {name: get_confirmation_parser(name) for name in ("sms", "razorpay")}
