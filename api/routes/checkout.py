"""
结算API路由 - 买家获取待付金额、轮询支付状态、取消支付
"""
from fastapi import APIRouter, Depends

from application.dtos.payment_locks import LockStatusView, PaymentLockQuote, PaymentLockRequest
from application.services.checkout_service import CheckoutService
from api.dependencies import get_checkout_service
from core.response import success_response, Response as ApiResponse

router = APIRouter(
    prefix="/checkout",
    tags=["结算"]
)


@router.post("/payment-locks", summary="获取待付金额", response_model=ApiResponse[PaymentLockQuote])
async def request_payable_amount(
    body: PaymentLockRequest,
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    为买家分配一个唯一的待付金额并锁定

    - **amount**: 买家需要通过 UPI 支付的精确金额（基础价 + 附加分）
    - **expires_at** / **ttl_seconds**: 倒计时，过期后需重新获取
    - 同金额并发冲突且重试耗尽时返回 409，稍后再试
    """
    quote = await service.request_payable_amount(body.buyer_id, body.product_id)
    return success_response(data=quote, message="Payment amount reserved")


@router.get("/payment-locks/{lock_id}", summary="轮询支付状态", response_model=ApiResponse[LockStatusView])
async def poll_lock_status(
    lock_id: int,
    service: CheckoutService = Depends(get_checkout_service),
):
    """只读；seconds_remaining 为 0 时客户端应停止轮询"""
    view = await service.poll_lock_status(lock_id)
    return success_response(data=view)


@router.delete("/payment-locks/{lock_id}", summary="取消支付", response_model=ApiResponse)
async def cancel_lock(
    lock_id: int,
    service: CheckoutService = Depends(get_checkout_service),
):
    """尽力而为：锁不存在或已结束也返回成功"""
    await service.cancel_lock(lock_id)
    return success_response(data={"lock_id": lock_id}, message="Payment session released")
