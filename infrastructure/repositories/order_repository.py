"""
订单仓储实现
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import AlreadyCompletedException
from domain.order.entity import Order, OrderStatus
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        return Order(
            id=model.id,
            buyer_pk=model.buyer_pk,
            buyer_id=model.buyer_id,
            product_id=model.product_id,
            product_name=model.product_name,
            product_price=Decimal(str(model.product_price)),
            final_price=Decimal(str(model.final_price)),
            payment_method=model.payment_method,
            status=OrderStatus(model.status),
            lock_id=model.lock_id,
            product_image_url=model.product_image_url,
            utr=model.utr,
            referral_code=model.referral_code,
            coins_used=model.coins_used,
            is_coin_product=model.is_coin_product,
            coins_at_time_of_purchase=model.coins_at_time_of_purchase,
            created_at=model.created_at,
        )

    def _to_model(self, entity: Order) -> OrderModel:
        model = OrderModel(
            buyer_pk=entity.buyer_pk,
            buyer_id=entity.buyer_id,
            product_id=entity.product_id,
            product_name=entity.product_name,
            product_price=entity.product_price,
            product_image_url=entity.product_image_url,
            payment_method=entity.payment_method,
            status=entity.status.value,
            utr=entity.utr,
            referral_code=entity.referral_code,
            coins_used=entity.coins_used,
            final_price=entity.final_price,
            is_coin_product=entity.is_coin_product,
            coins_at_time_of_purchase=entity.coins_at_time_of_purchase,
            lock_id=entity.lock_id,
        )
        if entity.created_at is not None:
            model.created_at = entity.created_at
        return model

    async def create(self, order: Order) -> Order:
        db_order = self._to_model(order)
        try:
            self.session.add(db_order)
            await self.session.flush()
        except IntegrityError as e:
            if "lock_id" in str(e).lower():
                logger.warning("order_create_conflict", lock_id=order.lock_id)
                raise AlreadyCompletedException(order.lock_id)
            raise
        await self.session.refresh(db_order)
        logger.info(
            "order_created",
            order_id=db_order.id,
            lock_id=db_order.lock_id,
            buyer_id=db_order.buyer_id,
            status=db_order.status,
        )
        return self._to_entity(db_order)

    async def get_by_lock_id(self, lock_id: int) -> Optional[Order]:
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.lock_id == lock_id)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None
