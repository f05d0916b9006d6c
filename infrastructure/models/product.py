"""
商品数据库模型（只读）
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean

from .base import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(precision=10, scale=2), nullable=False, comment="标价")
    purchase_price = Column(Numeric(precision=10, scale=2), nullable=True, comment="金币商品采购价")
    quantity = Column(Integer, nullable=False, default=0, comment="金币商品包含的金币数")
    image_url = Column(String(500), nullable=True)
    coins_applicable = Column(Integer, nullable=False, default=0, comment="最多可抵扣金币")
    is_coin_product = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    is_vanished = Column(Boolean, nullable=False, default=False)
