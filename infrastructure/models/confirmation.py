"""
付款确认日志数据库模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, Index
from datetime import datetime, timezone

from .base import Base


class PaymentConfirmationModel(Base):
    __tablename__ = "payment_confirmations"

    id = Column(Integer, primary_key=True, index=True)

    channel = Column(String(20), nullable=False, index=True, comment="来源渠道: sms/razorpay")
    sender = Column(String(100), nullable=True, comment="短信发送方等")
    raw_payload = Column(Text, nullable=False, comment="原始报文")

    parsed_amount = Column(Numeric(precision=10, scale=2), nullable=True, comment="解析出的金额")
    provider_ref = Column(String(200), nullable=True, index=True, comment="UPI参考号/网关支付ID")

    status = Column(
        String(30),
        nullable=False,
        default="unprocessed",
        index=True,
        comment="处理状态: unprocessed/verified/ignored_not_payment/ignored_no_match"
    )
    matched_lock_id = Column(Integer, nullable=True, index=True, comment="匹配到的锁ID")
    matched_buyer_id = Column(String(100), nullable=True, comment="匹配到的买家游戏ID")
    error = Column(Text, nullable=True, comment="最近一次处理失败原因")

    received_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        comment="接收时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        Index("ix_payment_confirmations_status_received", "status", "received_at"),
    )

    def __repr__(self):
        return (
            f"<PaymentConfirmationModel(id={self.id}, channel='{self.channel}', "
            f"amount={self.parsed_amount}, status='{self.status}')>"
        )
