"""
统一响应信封

所有接口返回 ``{code, message, data, error}``；金额字段（Decimal）按字符串序列化，
避免浮点误差让买家看到 399.99999。
"""
from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_serializer

from shared.codes import BusinessCode


T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorDetail(BaseModel):
    type: str
    details: Optional[dict] = None
    field: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utc_now)

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime) -> str:
        # UTC ISO8601，统一 Z 结尾
        ts = timestamp.replace(tzinfo=timezone.utc) if timestamp.tzinfo is None else timestamp.astimezone(timezone.utc)
        return ts.isoformat().replace("+00:00", "Z")


class Response(BaseModel, Generic[T]):
    code: int
    message: str
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None


class PaginatedData(BaseModel, Generic[T]):
    """管理端列表分页，page 从 1 开始"""
    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_more: bool = False


def success_response(
    data: Any = None,
    message: str = "Success",
    code: int = BusinessCode.SUCCESS,
) -> Response:
    return Response(code=code, message=message, data=data)


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Response:
    """业务异常、参数校验失败与未捕获异常共用的错误信封"""
    error = ErrorDetail(type=error_type, details=details, field=field, request_id=request_id)
    return Response(code=code, message=message, error=error)


def paginated_response(
    items: list,
    total: int,
    page: int,
    size: int,
    message: str = "Success",
) -> Response[PaginatedData]:
    pages = -(-total // size) if size > 0 else 0
    page_data = PaginatedData(
        items=items,
        total=total,
        page=page,
        size=size,
        pages=pages,
        has_more=page * size < total,
    )
    return Response(code=BusinessCode.SUCCESS, message=message, data=page_data)
