import json
from decimal import Decimal

import pytest

from domain.common.exceptions import ConfirmationParseException
from infrastructure.external.payments import build_confirmation_parsers, get_confirmation_parser
from infrastructure.external.payments.base import BaseConfirmationParser
from infrastructure.external.payments.exceptions import PaymentSignatureError
from infrastructure.external.payments.razorpay_client import RazorpayWebhookParser
from infrastructure.external.payments.sms_parser import BankSmsParser


def _captured(paise, event="payment.captured", payment_id="pay_123"):
    return json.dumps(
        {
            "event": event,
            "payload": {"payment": {"entity": {"id": payment_id, "amount": paise}}},
        }
    )


@pytest.mark.parametrize(
    "body, amount, ref",
    [
        ("Rs.400.01 credited to a/c XX1234 by VPA a@okaxis (UPI Ref:412345678901)", "400.01", "412345678901"),
        ("Rs 240 received from b@ybl. UPI Ref:55", "240.00", "55"),
        ("Acct XX9 credited with Rs.99.50", "99.50", None),
    ],
)
def test_sms_parser_extracts_amount_and_reference(body, amount, ref):
    parsed = BankSmsParser().parse(body)
    assert parsed.amount == Decimal(amount)
    assert parsed.provider_ref == ref


@pytest.mark.parametrize("body", ["", "Your OTP is 123456", "Rs.0.00 credited"])
def test_sms_parser_rejects_non_payments(body):
    with pytest.raises(ConfirmationParseException):
        BankSmsParser().parse(body)


def test_razorpay_parser_converts_paise():
    parsed = RazorpayWebhookParser(webhook_secret="s").parse(_captured(40001, payment_id="pay_X"))
    assert parsed.amount == Decimal("400.01")
    assert parsed.provider_ref == "pay_X"


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        "[1, 2]",
        _captured(100, event="payment.failed"),
        _captured("100"),
        _captured(None),
    ],
)
def test_razorpay_parser_rejects_other_payloads(body):
    with pytest.raises(ConfirmationParseException):
        RazorpayWebhookParser(webhook_secret="s").parse(body)


def test_razorpay_signature_roundtrip():
    parser = RazorpayWebhookParser(webhook_secret="whsec")
    body = _captured(100).encode()

    parser.verify_signature({"X-Razorpay-Signature": parser.sign(body)}, body)

    with pytest.raises(PaymentSignatureError):
        parser.verify_signature({"X-Razorpay-Signature": "deadbeef"}, body)
    with pytest.raises(PaymentSignatureError):
        parser.verify_signature({}, body)


def test_razorpay_signature_requires_secret(monkeypatch):
    from core.settings import payment_settings

    monkeypatch.setattr(payment_settings.razorpay, "webhook_secret", None)
    parser = RazorpayWebhookParser()
    with pytest.raises(PaymentSignatureError):
        parser.verify_signature({"X-Razorpay-Signature": "abc"}, b"{}")


def test_parser_factory():
    parsers = build_confirmation_parsers()
    assert set(parsers) == {"sms", "razorpay"}
    assert isinstance(get_confirmation_parser("SMS"), BankSmsParser)
    with pytest.raises(ValueError):
        get_confirmation_parser("paytm")


def test_parser_base_requires_parse():
    with pytest.raises(TypeError):
        BaseConfirmationParser()

    class EchoParser(BaseConfirmationParser):
        channel = "echo"

        def parse(self, raw_payload):
            return self._confirmation(raw_payload, None)

    assert EchoParser().parse("12.5").amount == Decimal("12.50")
