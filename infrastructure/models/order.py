"""
订单数据库模型（订单子系统所有，本服务只在对账物化时写入）
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    buyer_pk = Column(Integer, nullable=True, index=True, comment="买家主键")
    buyer_id = Column(String(100), nullable=False, index=True, comment="买家游戏ID")

    product_id = Column(Integer, nullable=False, comment="商品ID")
    product_name = Column(String(255), nullable=False)
    product_price = Column(Numeric(precision=10, scale=2), nullable=False, comment="商品标价")
    product_image_url = Column(String(500), nullable=True)

    payment_method = Column(String(30), nullable=False, comment="UPI-Auto/UPI-Manual")
    status = Column(String(20), nullable=False, index=True, comment="Processing/Completed/Failed")
    utr = Column(String(200), nullable=True, comment="付款参考号")
    referral_code = Column(String(100), nullable=True)

    coins_used = Column(Integer, nullable=False, default=0)
    final_price = Column(Numeric(precision=10, scale=2), nullable=False, comment="实付金额")
    is_coin_product = Column(Boolean, nullable=False, default=False)
    coins_at_time_of_purchase = Column(Integer, nullable=False, default=0)

    # 一个锁只能生成一个订单
    lock_id = Column(Integer, nullable=False, unique=True, comment="来源支付锁ID")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        comment="创建时间"
    )

    def __repr__(self):
        return (
            f"<OrderModel(id={self.id}, buyer_id='{self.buyer_id}', "
            f"lock_id={self.lock_id}, status='{self.status}')>"
        )
