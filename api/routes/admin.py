"""
管理端API路由 - 支付会话与付款确认日志的人工处理
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Security

from application.dtos.payment_locks import (
    ConfirmationRead,
    ManualApproveRequest,
    OrderRead,
    PaymentLockRead,
    ReconcileResult,
)
from application.services.lock_lifecycle_service import LockLifecycleService
from application.services.reconciliation_service import ReconciliationService
from api.dependencies import (
    get_lifecycle_service,
    get_reconciliation_service,
    require_admin,
)
from core.config import settings
from core.response import success_response, paginated_response, Response as ApiResponse, PaginatedData
from domain.confirmation.entity import ConfirmationStatus
from domain.payment_lock.entity import LockStatus

router = APIRouter(
    prefix="/admin",
    tags=["管理端"],
    dependencies=[Security(require_admin)],
)


@router.get(
    "/payment-locks",
    summary="支付会话列表",
    response_model=ApiResponse[PaginatedData[PaymentLockRead]],
)
async def list_payment_locks(
    search: Optional[str] = Query(None, description="按游戏ID或商品名模糊搜索"),
    status: Optional[LockStatus] = Query(None, description="按状态筛选"),
    page: int = Query(1, ge=1),
    size: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: LockLifecycleService = Depends(get_lifecycle_service),
):
    """列表前会先清理已过期的 active 锁；按创建时间倒序"""
    locks, total = await service.list_locks(search=search, status=status, page=page, size=size)
    items = [PaymentLockRead.model_validate(lock) for lock in locks]
    return paginated_response(items=items, total=total, page=page, size=size)


@router.post("/payment-locks/sweep", summary="立即清理过期锁", response_model=ApiResponse)
async def sweep_payment_locks(
    service: LockLifecycleService = Depends(get_lifecycle_service),
):
    swept = await service.sweep_expired()
    return success_response(data={"swept": swept})


@router.post("/payment-locks/{lock_id}/expire", summary="强制过期", response_model=ApiResponse)
async def force_expire_lock(
    lock_id: int,
    service: LockLifecycleService = Depends(get_lifecycle_service),
):
    """仅 active 锁会被过期；已过期或已完成的锁原样返回 expired=false"""
    expired = await service.force_expire(lock_id)
    return success_response(data={"lock_id": lock_id, "expired": expired})


@router.post(
    "/payment-locks/{lock_id}/approve",
    summary="人工确认收款",
    response_model=ApiResponse[OrderRead],
)
async def approve_payment_lock(
    lock_id: int,
    body: Optional[ManualApproveRequest] = Body(default=None),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """
    管理员在银行流水中核实到账后直接生成订单

    - 锁已完成返回 409
    - 可选 **confirmation_id**：同时把对应的确认日志标记为 verified
    """
    confirmation_id = body.confirmation_id if body else None
    order = await service.manual_approve(lock_id, confirmation_id=confirmation_id)
    return success_response(data=OrderRead.model_validate(order), message="Payment approved")


@router.get(
    "/confirmations",
    summary="付款确认日志",
    response_model=ApiResponse[PaginatedData[ConfirmationRead]],
)
async def list_confirmations(
    status: Optional[ConfirmationStatus] = Query(None, description="按处理状态筛选"),
    page: int = Query(1, ge=1),
    size: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    entries, total = await service.list_confirmations(status=status, page=page, size=size)
    items = [ConfirmationRead.model_validate(entry) for entry in entries]
    return paginated_response(items=items, total=total, page=page, size=size)


@router.post(
    "/confirmations/{confirmation_id}/replay",
    summary="重新对账",
    response_model=ApiResponse[ReconcileResult],
)
async def replay_confirmation(
    confirmation_id: int,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    result = await service.replay(confirmation_id)
    return success_response(data=result)
