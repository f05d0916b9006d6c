"""
支付金额锁数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Index, text
from datetime import datetime, timezone

from .base import Base


class PaymentLockModel(Base):
    """
    支付金额锁数据库模型

    所有业务规则都在 domain.payment_lock.entity.PaymentLock 中；
    “同一金额最多一个 active 锁” 由下面的部分唯一索引兜底
    """
    __tablename__ = "payment_locks"

    id = Column(Integer, primary_key=True, index=True)

    buyer_id = Column(String(100), nullable=False, index=True, comment="买家游戏ID")
    product_id = Column(Integer, nullable=False, comment="商品ID")
    product_name = Column(String(255), nullable=False, comment="商品名称（下单时快照）")

    # 待付金额，创建后不可变
    amount = Column(Numeric(precision=10, scale=2), nullable=False, comment="待付金额")

    status = Column(
        String(20),
        nullable=False,
        default="active",
        index=True,
        comment="锁状态: active/expired/completed"
    )

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        comment="创建时间"
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, comment="过期时间")

    __table_args__ = (
        Index(
            "uq_payment_locks_active_amount",
            "amount",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_payment_locks_amount_status", "amount", "status"),
        Index("ix_payment_locks_status_expires", "status", "expires_at"),
    )

    def __repr__(self):
        return (
            f"<PaymentLockModel(id={self.id}, buyer_id='{self.buyer_id}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
