"""
Razorpay webhook adapter.

Razorpay signs the raw request body with HMAC-SHA256 using the webhook
secret and sends the hex digest in ``X-Razorpay-Signature``. Only
``payment.captured`` events confirm a payment; the captured amount is in
paise at ``payload.payment.entity.amount``.
"""
from __future__ import annotations

import hashlib
import hmac
import json
from decimal import Decimal
from typing import Any, Mapping, Optional

from application.dtos.payment_locks import ParsedConfirmation
from core.settings import payment_settings
from infrastructure.external.payments.base import BaseConfirmationParser
from infrastructure.external.payments.exceptions import PaymentSignatureError
from shared.codes.payment_codes import RAZORPAY_CAPTURED_EVENT


SIGNATURE_HEADER = "X-Razorpay-Signature"


class RazorpayWebhookParser(BaseConfirmationParser):
    channel = "razorpay"

    def __init__(self, webhook_secret: Optional[str] = None) -> None:
        self._secret = webhook_secret if webhook_secret is not None else payment_settings.razorpay.webhook_secret

    def sign(self, body: bytes) -> str:
        if not self._secret:
            raise PaymentSignatureError("Missing RAZORPAY__WEBHOOK_SECRET", provider=self.channel)
        return hmac.new(self._secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    def verify_signature(self, headers: Mapping[str, Any], body: bytes) -> None:
        signature = headers.get(SIGNATURE_HEADER) or headers.get(SIGNATURE_HEADER.lower())
        if not signature:
            raise PaymentSignatureError(f"Missing {SIGNATURE_HEADER} header", provider=self.channel)
        if not hmac.compare_digest(self.sign(body), str(signature)):
            raise PaymentSignatureError("Invalid signature", provider=self.channel)

    def parse(self, raw_payload: str) -> ParsedConfirmation:  # type: ignore[override]
        try:
            payload = json.loads(raw_payload)
        except (TypeError, ValueError):
            self._reject("Webhook body is not valid JSON")
        if not isinstance(payload, dict):
            self._reject("Webhook body is not a JSON object")

        event = payload.get("event")
        if event != RAZORPAY_CAPTURED_EVENT:
            self._reject(f"Ignored Razorpay event: {event}")

        entity = (((payload.get("payload") or {}).get("payment") or {}).get("entity")) or {}
        paise = entity.get("amount")
        if not isinstance(paise, int) or isinstance(paise, bool):
            self._reject("Captured payment has no integer amount")
        return self._confirmation(Decimal(paise) / 100, entity.get("id"))
