"""
付款确认 webhook

解析失败、无匹配、重复确认都返回 200，避免发送方无意义地重试；
只有未预期的异常才交给全局处理器返回 500。
"""
import hmac
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Header, Request

from application.dtos.payment_locks import ReconcileResult, SmsWebhookPayload
from application.ports.confirmation_parser import ConfirmationParser
from application.services.reconciliation_service import ReconciliationService
from api.dependencies import get_confirmation_parsers, get_reconciliation_service
from core.logging_config import get_logger
from core.response import success_response, Response as ApiResponse
from core.settings import payment_settings
from infrastructure.external.payments.exceptions import PaymentSignatureError

router = APIRouter(
    prefix="/webhooks",
    tags=["Webhooks"]
)
logger = get_logger(__name__)


@router.post("/sms", summary="银行短信转发", response_model=ApiResponse[ReconcileResult])
async def sms_webhook(
    body: SmsWebhookPayload,
    x_webhook_secret: Optional[str] = Header(default=None, alias="X-Webhook-Secret"),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """
    短信转发器推送的原始短信

    请求体: `{"key": "<短信原文>", "sender": "<发送方>"}`
    """
    secret = payment_settings.sms.shared_secret
    if secret and not (x_webhook_secret and hmac.compare_digest(x_webhook_secret, secret)):
        raise PaymentSignatureError("Invalid X-Webhook-Secret", provider="sms")

    result = await service.reconcile(body.key, "sms", sender=body.sender)
    return success_response(data=result, message=_ack_message(result))


@router.post("/razorpay", summary="Razorpay 支付回调", response_model=ApiResponse[ReconcileResult])
async def razorpay_webhook(
    request: Request,
    parsers: Dict[str, ConfirmationParser] = Depends(get_confirmation_parsers),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """签名校验基于原始请求体，必须在任何 JSON 解析之前完成"""
    raw_body = await request.body()
    parser = parsers["razorpay"]
    parser.verify_signature(request.headers, raw_body)

    result = await service.reconcile(raw_body.decode("utf-8", errors="replace"), "razorpay")
    return success_response(data=result, message=_ack_message(result))


def _ack_message(result: ReconcileResult) -> str:
    if result.matched:
        return "Payment verified"
    return {
        "not_payment": "Ignored: not a payment confirmation",
        "no_match": "Logged: no matching payment session",
        "already_completed": "Ignored: payment session already completed",
        "reference_not_found": "Logged: buyer or product missing",
    }.get(result.reason or "", "Logged")
