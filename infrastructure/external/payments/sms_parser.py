"""
Bank SMS parser for forwarded UPI credit alerts, e.g.

    "Rs.400.01 credited to a/c XX1234 on 12-05-24 by VPA buyer@okaxis (UPI Ref:412345678901)"
"""
from __future__ import annotations

import re

from application.dtos.payment_locks import ParsedConfirmation
from infrastructure.external.payments.base import BaseConfirmationParser


AMOUNT_PATTERN = re.compile(r"Rs\.?\s*(\d+(?:\.\d{2})?)")
UPI_REF_PATTERN = re.compile(r"Ref:(\d+)")


class BankSmsParser(BaseConfirmationParser):
    channel = "sms"

    def parse(self, raw_payload: str) -> ParsedConfirmation:  # type: ignore[override]
        body = raw_payload or ""
        amount_match = AMOUNT_PATTERN.search(body)
        if not amount_match:
            self._reject("No payment amount found in SMS")
        ref_match = UPI_REF_PATTERN.search(body)
        return self._confirmation(
            amount_match.group(1),
            ref_match.group(1) if ref_match else None,
        )
