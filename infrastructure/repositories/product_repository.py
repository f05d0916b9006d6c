"""
商品仓储实现（只读）
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.catalog.entity import Product
from domain.catalog.repository import ProductRepository
from infrastructure.models.product import ProductModel


class SQLAlchemyProductRepository(ProductRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ProductModel) -> Product:
        return Product(
            id=model.id,
            name=model.name,
            price=Decimal(str(model.price)),
            purchase_price=Decimal(str(model.purchase_price)) if model.purchase_price is not None else None,
            quantity=model.quantity,
            image_url=model.image_url,
            coins_applicable=model.coins_applicable,
            is_coin_product=model.is_coin_product,
            is_available=model.is_available,
            is_vanished=model.is_vanished,
        )

    async def create(self, product: Product) -> Product:
        db_product = ProductModel(
            name=product.name,
            price=product.price,
            purchase_price=product.purchase_price,
            quantity=product.quantity,
            image_url=product.image_url,
            coins_applicable=product.coins_applicable,
            is_coin_product=product.is_coin_product,
            is_available=product.is_available,
            is_vanished=product.is_vanished,
        )
        self.session.add(db_product)
        await self.session.flush()
        await self.session.refresh(db_product)
        return self._to_entity(db_product)

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        result = await self.session.execute(
            select(ProductModel).where(ProductModel.id == product_id)
        )
        db_product = result.scalar_one_or_none()
        return self._to_entity(db_product) if db_product else None
