"""
AnaPro Platform - Investment Repository
"""
from datetime import datetime
from typing import Optional, List
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc, or_

from anapro.db.models.investment import Investment, InvestmentStatus


class InvestmentRepository:
    """Database operations for investments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, investment: Investment) -> Investment:
        self.db.add(investment)
        await self.db.flush()
        await self.db.refresh(investment)
        return investment

    async def get_by_id(self, investment_id: uuid.UUID) -> Optional[Investment]:
        result = await self.db.execute(
            select(Investment)
            .where(Investment.id == investment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_wallet(
        self,
        wallet_address: str,
        status: Optional[InvestmentStatus] = None,
    ) -> List[Investment]:
        """List a wallet's investments, newest first."""
        query = select(Investment).where(Investment.wallet_address == wallet_address)
        if status is not None:
            query = query.where(Investment.status == status)
        result = await self.db.execute(query.order_by(desc(Investment.created_at)))
        return list(result.scalars().all())

    async def list_active(self) -> List[Investment]:
        """All active investments, oldest first."""
        result = await self.db.execute(
            select(Investment)
            .where(Investment.status == InvestmentStatus.ACTIVE)
            .order_by(Investment.created_at)
        )
        return list(result.scalars().all())

    async def list_ids_awaiting_settlement(self) -> List[uuid.UUID]:
        """Completed investments whose principal is still locked."""
        result = await self.db.execute(
            select(Investment.id).where(
                Investment.status == InvestmentStatus.COMPLETED,
                Investment.principal_unlocked_at.is_(None),
            )
        )
        return list(result.scalars().all())

    async def claim_accrual(
        self,
        investment_id: uuid.UUID,
        day_start: datetime,
        now: datetime,
        profit,
        matures: bool,
    ) -> bool:
        """
        Record one day of profit on an investment, at most once per day.

        The guard on ``last_profit_date`` and ``status`` makes concurrent
        runs race on a single row update; only the winner sees rowcount 1.

        Args:
            investment_id: Investment to credit
            day_start: Midnight of the current UTC day
            now: Timestamp written to last_profit_date
            profit: Amount added to profit_earned
            matures: Whether this credit also moves the investment to completed

        Returns:
            True if the claim succeeded
        """
        values = {
            "profit_earned": Investment.profit_earned + profit,
            "last_profit_date": now,
            "updated_at": now,
        }
        if matures:
            values["status"] = InvestmentStatus.COMPLETED
            values["end_date"] = now

        result = await self.db.execute(
            update(Investment)
            .where(
                Investment.id == investment_id,
                Investment.status == InvestmentStatus.ACTIVE,
                or_(
                    Investment.last_profit_date.is_(None),
                    Investment.last_profit_date < day_start,
                ),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def claim_settlement(self, investment_id: uuid.UUID, now: datetime) -> bool:
        """Mark a completed investment's principal as released, at most once."""
        result = await self.db.execute(
            update(Investment)
            .where(
                Investment.id == investment_id,
                Investment.status == InvestmentStatus.COMPLETED,
                Investment.principal_unlocked_at.is_(None),
            )
            .values(principal_unlocked_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def transition(
        self,
        investment_id: uuid.UUID,
        from_status: InvestmentStatus,
        to_status: InvestmentStatus,
        now: datetime,
    ) -> bool:
        """Move an investment between statuses if it is still in ``from_status``."""
        result = await self.db.execute(
            update(Investment)
            .where(Investment.id == investment_id, Investment.status == from_status)
            .values(status=to_status, end_date=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
