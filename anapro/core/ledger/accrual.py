"""
AnaPro Platform - Profit Accrual Job

Daily profit crediting and maturity settlement, triggered by an external
scheduler through the cron endpoint or scripts/run_daily_profit.py.

Each investment is handled in its own database transaction. A failure on
one investment is counted and the batch carries on.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

from loguru import logger

from anapro.core.ledger.balance_ledger import BalanceLedger, CreditSource
from anapro.db.database import Database
from anapro.db.models.investment import Investment, InvestmentStatus
from anapro.db.models.transaction import TransactionType, TransactionStatus
from anapro.db.repositories.investment import InvestmentRepository
from anapro.db.repositories.transaction import TransactionRepository
from anapro.utils.clock import utcnow, start_of_day
from anapro.utils.currency import quantize_amount


@dataclass
class AccrualReport:
    """Outcome of one daily accrual pass."""
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    completed: int = 0


@dataclass
class SettlementReport:
    """Outcome of one maturity settlement pass."""
    settled: int = 0
    failed: int = 0


class ProfitAccrualJob:
    """
    Profit Accrual Job

    Responsible for:
    - Crediting one day of profit per active investment per UTC day
    - Completing investments that reached maturity
    - Returning matured principal from locked to available exactly once
    """

    def __init__(self, database: Database):
        self.database = database

    async def run(self, now: Optional[datetime] = None) -> dict:
        """Accrual pass followed by settlement pass."""
        now = now or utcnow()
        accrual = await self.run_daily_accrual(now)
        settlement = await self.settle_matured(now)
        return {
            **asdict(accrual),
            "settled": settlement.settled,
            "settlement_failed": settlement.failed,
        }

    # ==================== Accrual ====================

    async def run_daily_accrual(self, now: Optional[datetime] = None) -> AccrualReport:
        """
        Credit one day of profit to every active investment not yet
        credited today.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            AccrualReport with processed/skipped/failed/completed counts
        """
        now = now or utcnow()
        day_start = start_of_day(now)
        report = AccrualReport()

        async with self.database.session() as db:
            investments = await InvestmentRepository(db).list_active()

        logger.info(f"Daily accrual started for {len(investments)} active investments")

        for investment in investments:
            paid_today = investment.last_profit_date is not None and investment.last_profit_date >= day_start
            fully_paid = investment.days_paid >= investment.duration_days
            if paid_today or fully_paid:
                report.skipped += 1
                # No credit due; still close it out once the term has run
                if fully_paid or now >= investment.maturity_date:
                    try:
                        if await self._complete_matured(investment.id, now):
                            report.completed += 1
                    except Exception as e:
                        report.failed += 1
                        logger.exception(f"Completing investment {investment.id} failed: {e}")
                continue
            try:
                outcome = await self._accrue_one(investment.id, day_start, now)
            except Exception as e:
                report.failed += 1
                logger.exception(f"Accrual failed for investment {investment.id}: {e}")
                continue

            if outcome is None:
                report.skipped += 1
            else:
                report.processed += 1
                if outcome:
                    report.completed += 1

        logger.info(
            f"Daily accrual finished: processed={report.processed} skipped={report.skipped} "
            f"failed={report.failed} completed={report.completed}"
        )
        return report

    async def _accrue_one(
        self,
        investment_id: uuid.UUID,
        day_start: datetime,
        now: datetime,
    ) -> Optional[bool]:
        """
        Returns None if another run already credited today, otherwise
        whether this credit completed the investment.
        """
        async with self.database.session() as db:
            repo = InvestmentRepository(db)
            investment = await repo.get_by_id(investment_id)
            if investment is None or investment.status is not InvestmentStatus.ACTIVE:
                return None

            profit = quantize_amount(investment.daily_profit)
            if investment.days_paid >= investment.duration_days:
                return None
            # The last daily credit ends the term whatever the time of day
            matures = (
                now >= investment.maturity_date
                or investment.days_paid + 1 >= investment.duration_days
            )

            if not await repo.claim_accrual(investment.id, day_start, now, profit, matures):
                await db.rollback()
                return None

            await BalanceLedger(db).credit(
                investment.wallet_address,
                investment.currency,
                profit,
                CreditSource.PROFIT,
                user_id=investment.user_id,
            )
            await TransactionRepository(db).append(
                user_id=investment.user_id,
                wallet_address=investment.wallet_address,
                type=TransactionType.PROFIT,
                amount=profit,
                currency=investment.currency,
                status=TransactionStatus.COMPLETED,
                description=f"Daily profit from {investment.plan_name}",
                meta={"investmentId": str(investment.id)},
            )
            await db.commit()

        logger.debug(
            f"Credited {profit} {investment.currency.value} to {investment.wallet_address} "
            f"from investment {investment.id}"
        )
        if matures:
            logger.info(f"Investment {investment.id} reached maturity")
        return matures

    async def _complete_matured(self, investment_id: uuid.UUID, now: datetime) -> bool:
        async with self.database.session() as db:
            moved = await InvestmentRepository(db).transition(
                investment_id, InvestmentStatus.ACTIVE, InvestmentStatus.COMPLETED, now
            )
            await db.commit()
        if moved:
            logger.info(f"Investment {investment_id} reached maturity")
        return moved

    # ==================== Settlement ====================

    async def settle_matured(self, now: Optional[datetime] = None) -> SettlementReport:
        """
        Unlock principal of completed investments that have not been
        settled yet.
        """
        now = now or utcnow()
        report = SettlementReport()

        async with self.database.session() as db:
            pending = await InvestmentRepository(db).list_ids_awaiting_settlement()

        for investment_id in pending:
            try:
                if await self._settle_one(investment_id, now):
                    report.settled += 1
            except Exception as e:
                report.failed += 1
                logger.exception(f"Settlement failed for investment {investment_id}: {e}")

        if pending:
            logger.info(f"Maturity settlement finished: settled={report.settled} failed={report.failed}")
        return report

    async def _settle_one(self, investment_id: uuid.UUID, now: datetime) -> bool:
        async with self.database.session() as db:
            repo = InvestmentRepository(db)
            if not await repo.claim_settlement(investment_id, now):
                await db.rollback()
                return False

            investment: Investment = await repo.get_by_id(investment_id)
            principal = Decimal(investment.amount)

            await BalanceLedger(db).unlock(
                investment.wallet_address, investment.currency, principal, Decimal("0")
            )
            await TransactionRepository(db).append(
                user_id=investment.user_id,
                wallet_address=investment.wallet_address,
                type=TransactionType.REFUND,
                amount=principal,
                currency=investment.currency,
                status=TransactionStatus.COMPLETED,
                description=f"Principal returned from {investment.plan_name}",
                meta={"investmentId": str(investment.id)},
            )
            await db.commit()

        logger.info(
            f"Unlocked {principal} {investment.currency.value} for {investment.wallet_address} "
            f"(investment {investment_id})"
        )
        return True
