"""
买家与推荐人钱包仓储实现
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.buyer.entity import Buyer, ReferralAccount
from domain.buyer.repository import BuyerRepository, ReferralAccountRepository
from infrastructure.models.buyer import BuyerModel, ReferralAccountModel


logger = get_logger(__name__)


class SQLAlchemyBuyerRepository(BuyerRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: BuyerModel) -> Buyer:
        return Buyer(
            id=model.id,
            gaming_id=model.gaming_id,
            coins=model.coins,
            referred_by_code=model.referred_by_code,
            fcm_token=model.fcm_token,
            is_banned=model.is_banned,
            ban_message=model.ban_message,
            created_at=model.created_at,
        )

    async def create(self, buyer: Buyer) -> Buyer:
        db_buyer = BuyerModel(
            gaming_id=buyer.gaming_id,
            coins=buyer.coins,
            referred_by_code=buyer.referred_by_code,
            fcm_token=buyer.fcm_token,
            is_banned=buyer.is_banned,
            ban_message=buyer.ban_message,
        )
        self.session.add(db_buyer)
        await self.session.flush()
        await self.session.refresh(db_buyer)
        return self._to_entity(db_buyer)

    async def get_by_gaming_id(self, gaming_id: str) -> Optional[Buyer]:
        result = await self.session.execute(
            select(BuyerModel).where(BuyerModel.gaming_id == gaming_id)
        )
        db_buyer = result.scalar_one_or_none()
        return self._to_entity(db_buyer) if db_buyer else None

    async def adjust_coins(self, gaming_id: str, delta: int) -> None:
        if not delta:
            return
        await self.session.execute(
            update(BuyerModel)
            .where(BuyerModel.gaming_id == gaming_id)
            .values(coins=BuyerModel.coins + delta)
            .execution_options(synchronize_session=False)
        )
        logger.info("buyer_coins_adjusted", buyer_id=gaming_id, delta=delta)


class SQLAlchemyReferralAccountRepository(ReferralAccountRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ReferralAccountModel) -> ReferralAccount:
        return ReferralAccount(
            id=model.id,
            referral_code=model.referral_code,
            wallet_balance=Decimal(str(model.wallet_balance)),
        )

    async def create(self, account: ReferralAccount) -> ReferralAccount:
        db_account = ReferralAccountModel(
            referral_code=account.referral_code,
            wallet_balance=account.wallet_balance,
        )
        self.session.add(db_account)
        await self.session.flush()
        await self.session.refresh(db_account)
        return self._to_entity(db_account)

    async def get_by_code(self, referral_code: str) -> Optional[ReferralAccount]:
        result = await self.session.execute(
            select(ReferralAccountModel).where(ReferralAccountModel.referral_code == referral_code)
        )
        db_account = result.scalar_one_or_none()
        return self._to_entity(db_account) if db_account else None

    async def credit_wallet(self, referral_code: str, amount: Decimal) -> bool:
        result = await self.session.execute(
            update(ReferralAccountModel)
            .where(ReferralAccountModel.referral_code == referral_code)
            .values(wallet_balance=ReferralAccountModel.wallet_balance + amount)
            .execution_options(synchronize_session=False)
        )
        credited = result.rowcount > 0
        if credited:
            logger.info("referral_wallet_credited", referral_code=referral_code, amount=str(amount))
        else:
            logger.warning("referral_account_missing", referral_code=referral_code)
        return credited
