"""
商品实体 - 目录由运营后台维护，这里只读
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from domain.payment_lock.entity import quantize_amount


@dataclass
class Product:
    id: Optional[int]
    name: str
    price: Decimal
    purchase_price: Optional[Decimal] = None
    quantity: int = 0
    image_url: Optional[str] = None
    coins_applicable: int = 0
    is_coin_product: bool = False
    is_available: bool = True
    is_vanished: bool = False

    def __post_init__(self):
        self.price = quantize_amount(self.price)
        if self.purchase_price is not None:
            self.purchase_price = quantize_amount(self.purchase_price)

    @property
    def is_purchasable(self) -> bool:
        return self.is_available and not self.is_vanished

    def base_amount_for(self, buyer_coins: int) -> Decimal:
        """
        业务规则：结算基础价
        - 金币商品：按采购价（未配置时按标价），不能用金币抵扣
        - 普通商品：标价减去可抵扣金币，最低 0.01
        """
        if self.is_coin_product:
            return self.purchase_price or self.price
        coins_to_use = max(0, min(buyer_coins, self.coins_applicable))
        base = self.price - Decimal(coins_to_use)
        return max(base, Decimal("0.01"))
