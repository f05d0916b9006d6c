"""
付款确认日志仓储实现
"""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import ConfirmationNotFoundException
from domain.confirmation.entity import (
    ConfirmationChannel,
    ConfirmationStatus,
    PaymentConfirmation,
)
from domain.confirmation.repository import ConfirmationRepository
from infrastructure.models.confirmation import PaymentConfirmationModel


logger = get_logger(__name__)


class SQLAlchemyConfirmationRepository(ConfirmationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PaymentConfirmationModel) -> PaymentConfirmation:
        return PaymentConfirmation(
            id=model.id,
            channel=ConfirmationChannel(model.channel),
            raw_payload=model.raw_payload,
            received_at=model.received_at,
            status=ConfirmationStatus(model.status),
            sender=model.sender,
            parsed_amount=Decimal(str(model.parsed_amount)) if model.parsed_amount is not None else None,
            provider_ref=model.provider_ref,
            matched_lock_id=model.matched_lock_id,
            matched_buyer_id=model.matched_buyer_id,
            error=model.error,
            updated_at=model.updated_at,
        )

    async def append(self, confirmation: PaymentConfirmation) -> PaymentConfirmation:
        db_conf = PaymentConfirmationModel(
            channel=confirmation.channel.value,
            sender=confirmation.sender,
            raw_payload=confirmation.raw_payload,
            status=confirmation.status.value,
            received_at=confirmation.received_at,
            updated_at=confirmation.updated_at or confirmation.received_at,
        )
        self.session.add(db_conf)
        await self.session.flush()
        await self.session.refresh(db_conf)
        logger.info(
            "confirmation_journaled",
            confirmation_id=db_conf.id,
            channel=db_conf.channel,
        )
        return self._to_entity(db_conf)

    async def update(self, confirmation: PaymentConfirmation) -> PaymentConfirmation:
        # 已核验的记录是终态，这里只写未核验的行
        result = await self.session.execute(
            update(PaymentConfirmationModel)
            .where(
                PaymentConfirmationModel.id == confirmation.id,
                PaymentConfirmationModel.status != ConfirmationStatus.VERIFIED.value,
            )
            .values(**self._outcome_values(confirmation))
            .execution_options(synchronize_session=False)
        )
        stored = await self.get_by_id(confirmation.id)
        if stored is None:
            raise ConfirmationNotFoundException(confirmation.id)
        if result.rowcount == 0:
            logger.info(
                "confirmation_update_skipped_verified",
                confirmation_id=stored.id,
                matched_lock_id=stored.matched_lock_id,
            )
            return stored

        logger.info(
            "confirmation_updated",
            confirmation_id=stored.id,
            status=stored.status.value,
            matched_lock_id=stored.matched_lock_id,
        )
        return stored

    async def mark_verified(self, confirmation: PaymentConfirmation) -> bool:
        result = await self.session.execute(
            update(PaymentConfirmationModel)
            .where(
                PaymentConfirmationModel.id == confirmation.id,
                PaymentConfirmationModel.status != ConfirmationStatus.VERIFIED.value,
            )
            .values(**self._outcome_values(confirmation))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def _outcome_values(self, confirmation: PaymentConfirmation) -> dict:
        values = {
            "parsed_amount": confirmation.parsed_amount,
            "provider_ref": confirmation.provider_ref,
            "status": confirmation.status.value,
            "matched_lock_id": confirmation.matched_lock_id,
            "matched_buyer_id": confirmation.matched_buyer_id,
            "error": confirmation.error,
        }
        if confirmation.updated_at is not None:
            values["updated_at"] = confirmation.updated_at
        return values

    async def get_by_id(self, confirmation_id: int) -> Optional[PaymentConfirmation]:
        result = await self.session.execute(
            select(PaymentConfirmationModel)
            .where(PaymentConfirmationModel.id == confirmation_id)
            .execution_options(populate_existing=True)
        )
        db_conf = result.scalar_one_or_none()
        return self._to_entity(db_conf) if db_conf else None

    async def list(
        self,
        *,
        status: Optional[ConfirmationStatus] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[PaymentConfirmation]:
        query = select(PaymentConfirmationModel)
        if status:
            query = query.where(PaymentConfirmationModel.status == ConfirmationStatus(status).value)
        query = (
            query.order_by(PaymentConfirmationModel.received_at.desc(), PaymentConfirmationModel.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count(self, *, status: Optional[ConfirmationStatus] = None) -> int:
        query = select(func.count(PaymentConfirmationModel.id))
        if status:
            query = query.where(PaymentConfirmationModel.status == ConfirmationStatus(status).value)
        result = await self.session.execute(query)
        return result.scalar_one()
