"""
订单实体 - 仅在对账物化时创建
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.payment_lock.entity import quantize_amount


class OrderStatus(str, Enum):
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass
class Order:
    id: Optional[int]
    buyer_pk: Optional[int]
    buyer_id: str
    product_id: int
    product_name: str
    product_price: Decimal
    final_price: Decimal
    payment_method: str
    status: OrderStatus
    lock_id: int
    product_image_url: Optional[str] = None
    utr: Optional[str] = None
    referral_code: Optional[str] = None
    coins_used: int = 0
    is_coin_product: bool = False
    coins_at_time_of_purchase: int = 0
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = OrderStatus(self.status)
        self.product_price = quantize_amount(self.product_price)
        self.final_price = quantize_amount(self.final_price)

    @property
    def is_completed(self) -> bool:
        return self.status == OrderStatus.COMPLETED
