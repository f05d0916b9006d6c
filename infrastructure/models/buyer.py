"""
买家与推荐人钱包数据库模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Text
from datetime import datetime, timezone

from .base import Base


class BuyerModel(Base):
    __tablename__ = "buyers"

    id = Column(Integer, primary_key=True, index=True)
    gaming_id = Column(String(100), unique=True, index=True, nullable=False, comment="游戏ID")
    coins = Column(Integer, nullable=False, default=0, comment="金币余额")
    referred_by_code = Column(String(100), nullable=True, comment="注册时使用的推荐码")
    fcm_token = Column(String(500), nullable=True, comment="推送令牌")
    is_banned = Column(Boolean, nullable=False, default=False)
    ban_message = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )


class ReferralAccountModel(Base):
    """推荐人钱包（历史用户表 legacy_users）"""
    __tablename__ = "legacy_users"

    id = Column(Integer, primary_key=True, index=True)
    referral_code = Column(String(100), unique=True, index=True, nullable=False)
    wallet_balance = Column(Numeric(precision=12, scale=2), nullable=False, default=0)
