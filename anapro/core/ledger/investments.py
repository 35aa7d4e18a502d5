"""
AnaPro Platform - Investment Service

Creation, cancellation and listing of fixed-term investments.

States: active -> completed (maturity, driven by the accrual job) or
active -> cancelled (user request). Terminal states have no way out.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from anapro.core.ledger.balance_ledger import BalanceLedger
from anapro.core.ledger.plans import get_plan
from anapro.db.models.investment import Investment, InvestmentStatus
from anapro.db.models.transaction import TransactionType, TransactionStatus
from anapro.db.models.user import User
from anapro.db.repositories.investment import InvestmentRepository
from anapro.db.repositories.transaction import TransactionRepository
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency, quantize_amount, require_positive
from anapro.utils.exceptions import (
    InsufficientBalanceError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)


class InvestmentService:
    """
    Service for investment lifecycle operations.

    Usage:
        service = InvestmentService(db_session)

        investment = await service.create_investment(
            user=current_user,
            plan_name="starter",
            amount=Decimal("1000"),
            currency="USDC",
        )
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = BalanceLedger(db)
        self.investments = InvestmentRepository(db)
        self.transactions = TransactionRepository(db)

    # ==================== Create ====================

    async def create_investment(
        self,
        user: User,
        plan_name: str,
        amount,
        currency,
        now: Optional[datetime] = None,
    ) -> Investment:
        """
        Lock principal and open an investment.

        The lock is committed on its own; if the investment row cannot be
        written afterwards the principal is unlocked again before the error
        propagates.

        Args:
            user: Owner
            plan_name: Plan id or display name
            amount: Principal
            currency: SOL, USDC or USDT
            now: Creation time (defaults to the current UTC time)

        Returns:
            The active Investment

        Raises:
            ValidationError: unknown plan/currency or amount outside the plan bounds
            InsufficientBalanceError: available balance does not cover the principal
        """
        plan = get_plan(plan_name)
        currency = Currency.parse(currency)
        amount = quantize_amount(require_positive(amount))
        wallet = user.wallet_address
        now = now or utcnow()

        if not await self.ledger.has_sufficient_balance(wallet, amount, currency):
            available = await self.ledger.get_available(wallet, currency)
            raise InsufficientBalanceError(currency.value, amount, available)

        if not plan.accepts(amount):
            raise ValidationError(
                f"Amount must be between {plan.min_investment} and {plan.max_investment} for {plan.name}",
                details={
                    "plan": plan.id,
                    "min": str(plan.min_investment),
                    "max": str(plan.max_investment),
                },
            )

        await self.ledger.lock(wallet, currency, amount)
        await self.db.commit()

        try:
            investment = await self.investments.create(Investment(
                user_id=user.id,
                wallet_address=wallet,
                plan_name=plan.name,
                amount=amount,
                currency=currency,
                daily_return=plan.daily_return,
                duration_days=plan.duration_days,
                expected_return=quantize_amount(plan.expected_profit(amount)),
                start_date=now,
                maturity_date=now + timedelta(days=plan.duration_days),
                last_profit_date=now,
                status=InvestmentStatus.ACTIVE,
                profit_earned=Decimal("0"),
                created_at=now,
                updated_at=now,
            ))
            await self.transactions.append(
                user_id=user.id,
                wallet_address=wallet,
                type=TransactionType.INVESTMENT,
                amount=amount,
                currency=currency,
                status=TransactionStatus.COMPLETED,
                description=f"Investment in {plan.name}",
                meta={"investmentId": str(investment.id), "plan": plan.id},
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Investment creation failed for {wallet}, unlocking {amount} {currency.value}: {e}")
            await self.ledger.unlock(wallet, currency, amount, Decimal("0"))
            await self.db.commit()
            raise

        logger.info(f"Investment {investment.id} opened: {plan.name} {amount} {currency.value} for {wallet}")
        return investment

    # ==================== Cancel ====================

    async def cancel_investment(
        self,
        user: User,
        investment_id: uuid.UUID,
        now: Optional[datetime] = None,
    ) -> Investment:
        """
        Move an active investment to cancelled.

        No funds move: principal stays locked and credited profit stays
        available until cancellation terms are settled by an administrator.

        Raises:
            NotFoundError: unknown investment or owned by another user
            InvalidStateTransitionError: investment is no longer active
        """
        investment = await self.investments.get_by_id(investment_id)
        if investment is None or investment.user_id != user.id:
            raise NotFoundError("Investment not found")

        if investment.status is not InvestmentStatus.ACTIVE:
            raise InvalidStateTransitionError(
                f"Cannot cancel an investment that is {investment.status.value}",
                details={"status": investment.status.value},
            )

        now = now or utcnow()
        moved = await self.investments.transition(
            investment.id, InvestmentStatus.ACTIVE, InvestmentStatus.CANCELLED, now
        )
        if not moved:
            await self.db.rollback()
            raise InvalidStateTransitionError("Investment is no longer active")
        await self.db.commit()

        logger.warning(
            f"Investment {investment.id} cancelled by {user.wallet_address}; "
            f"{investment.amount} {investment.currency.value} remains locked pending reconciliation"
        )
        return await self.investments.get_by_id(investment.id)

    # ==================== Read ====================

    async def list_investments(
        self,
        user: User,
        status: Optional[InvestmentStatus] = None,
    ) -> List[Investment]:
        """A user's investments, newest first."""
        return await self.investments.list_for_wallet(user.wallet_address, status=status)

    async def get_investment(self, user: User, investment_id: uuid.UUID) -> Investment:
        investment = await self.investments.get_by_id(investment_id)
        if investment is None or investment.user_id != user.id:
            raise NotFoundError("Investment not found")
        return investment
