"""
支付金额锁仓储实现 - 所有状态变更都是带条件的 UPDATE
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import AmountCollisionException
from domain.payment_lock.entity import LockStatus, PaymentLock, quantize_amount
from domain.payment_lock.repository import PaymentLockRepository
from infrastructure.models.payment_lock import PaymentLockModel


logger = get_logger(__name__)


class SQLAlchemyPaymentLockRepository(PaymentLockRepository):
    """支付金额锁仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PaymentLockModel) -> PaymentLock:
        return PaymentLock(
            id=model.id,
            buyer_id=model.buyer_id,
            product_id=model.product_id,
            product_name=model.product_name,
            amount=Decimal(str(model.amount)),
            status=LockStatus(model.status),
            created_at=model.created_at,
            expires_at=model.expires_at,
        )

    def _to_model(self, entity: PaymentLock) -> PaymentLockModel:
        return PaymentLockModel(
            id=entity.id,
            buyer_id=entity.buyer_id,
            product_id=entity.product_id,
            product_name=entity.product_name,
            amount=entity.amount,
            status=entity.status.value,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
        )

    async def create(self, lock: PaymentLock) -> PaymentLock:
        """创建 active 锁；同金额已有 active 锁时抛出 AmountCollisionException"""
        if await self.find_active_by_amount(lock.amount) is not None:
            logger.info("payment_lock_collision", amount=str(lock.amount), stage="precheck")
            raise AmountCollisionException(lock.amount)

        db_lock = self._to_model(lock)
        try:
            # 保存点：唯一索引冲突只回滚本次插入
            async with self.session.begin_nested():
                self.session.add(db_lock)
                await self.session.flush()
        except IntegrityError:
            logger.info("payment_lock_collision", amount=str(lock.amount), stage="insert")
            raise AmountCollisionException(lock.amount)

        await self.session.refresh(db_lock)
        logger.info(
            "payment_lock_created",
            lock_id=db_lock.id,
            buyer_id=db_lock.buyer_id,
            amount=str(db_lock.amount),
            expires_at=db_lock.expires_at,
        )
        return self._to_entity(db_lock)

    async def get_by_id(self, lock_id: int) -> Optional[PaymentLock]:
        result = await self.session.execute(
            select(PaymentLockModel).where(PaymentLockModel.id == lock_id)
        )
        db_lock = result.scalar_one_or_none()
        return self._to_entity(db_lock) if db_lock else None

    async def find_active_or_grace_expired(
        self, amount: Decimal, now: datetime, grace: timedelta
    ) -> Optional[PaymentLock]:
        result = await self.session.execute(
            select(PaymentLockModel)
            .where(
                PaymentLockModel.amount == quantize_amount(amount),
                or_(
                    PaymentLockModel.status == LockStatus.ACTIVE.value,
                    and_(
                        PaymentLockModel.status == LockStatus.EXPIRED.value,
                        PaymentLockModel.expires_at >= now - grace,
                    ),
                ),
            )
            .limit(1)
        )
        db_lock = result.scalars().first()
        return self._to_entity(db_lock) if db_lock else None

    async def find_active_by_amount(self, amount: Decimal) -> Optional[PaymentLock]:
        result = await self.session.execute(
            select(PaymentLockModel)
            .where(
                PaymentLockModel.amount == quantize_amount(amount),
                PaymentLockModel.status == LockStatus.ACTIVE.value,
            )
            .limit(1)
        )
        db_lock = result.scalars().first()
        return self._to_entity(db_lock) if db_lock else None

    async def find_latest_grace_expired(
        self, amount: Decimal, now: datetime, grace: timedelta
    ) -> Optional[PaymentLock]:
        result = await self.session.execute(
            select(PaymentLockModel)
            .where(
                PaymentLockModel.amount == quantize_amount(amount),
                PaymentLockModel.status == LockStatus.EXPIRED.value,
                PaymentLockModel.expires_at >= now - grace,
            )
            .order_by(PaymentLockModel.expires_at.desc(), PaymentLockModel.id.desc())
            .limit(1)
        )
        db_lock = result.scalars().first()
        return self._to_entity(db_lock) if db_lock else None

    async def expire(self, lock_id: int, *, expires_at: Optional[datetime] = None) -> bool:
        values = {"status": LockStatus.EXPIRED.value}
        if expires_at is not None:
            values["expires_at"] = expires_at
        result = await self.session.execute(
            update(PaymentLockModel)
            .where(
                PaymentLockModel.id == lock_id,
                PaymentLockModel.status == LockStatus.ACTIVE.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        expired = result.rowcount > 0
        if expired:
            logger.info("payment_lock_expired", lock_id=lock_id, expires_at=expires_at)
        return expired

    async def mark_completed(self, lock_id: int) -> bool:
        result = await self.session.execute(
            update(PaymentLockModel)
            .where(
                PaymentLockModel.id == lock_id,
                PaymentLockModel.status != LockStatus.COMPLETED.value,
            )
            .values(status=LockStatus.COMPLETED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def sweep_expired(self, now: datetime) -> int:
        result = await self.session.execute(
            update(PaymentLockModel)
            .where(
                PaymentLockModel.status == LockStatus.ACTIVE.value,
                PaymentLockModel.expires_at < now,
            )
            .values(status=LockStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def _filtered(self, query, search: Optional[str], status: Optional[LockStatus]):
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    PaymentLockModel.buyer_id.ilike(pattern),
                    PaymentLockModel.product_name.ilike(pattern),
                )
            )
        if status:
            query = query.where(PaymentLockModel.status == LockStatus(status).value)
        return query

    async def list(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[LockStatus] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[PaymentLock]:
        query = self._filtered(select(PaymentLockModel), search, status)
        query = (
            query.order_by(PaymentLockModel.created_at.desc(), PaymentLockModel.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[LockStatus] = None,
    ) -> int:
        query = self._filtered(select(func.count(PaymentLockModel.id)), search, status)
        result = await self.session.execute(query)
        return result.scalar_one()
