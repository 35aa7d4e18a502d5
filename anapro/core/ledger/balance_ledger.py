"""
AnaPro Platform - Balance Ledger

Per-user available/locked balances for SOL, USDC and USDT.

Every mutation is one guarded UPDATE whose WHERE clause carries the
precondition, so the check and the write cannot be interleaved by a
concurrent request on the same row. The caller owns the surrounding
database transaction (commit or rollback).
"""
from decimal import Decimal
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, case
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from anapro.db.models.platform_balance import PlatformBalance
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency, quantize_amount, to_decimal
from anapro.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from anapro.utils.logger import ledger_logger


ZERO = Decimal("0")


class CreditSource(str, Enum):
    """Origin of a credit; decides which lifetime counter moves."""
    DEPOSIT = "deposit"
    PROFIT = "profit"
    REFUND = "refund"


def _positive(value, field: str = "amount") -> Decimal:
    amount = quantize_amount(to_decimal(value, field))
    if amount <= ZERO:
        raise ValidationError(f"{field.capitalize()} must be positive", details={field: str(value)})
    return amount


def _non_negative(value, field: str) -> Decimal:
    amount = quantize_amount(to_decimal(value, field))
    if amount < ZERO:
        raise ValidationError(f"{field.capitalize()} must not be negative", details={field: str(value)})
    return amount


class BalanceLedger:
    """
    Balance Ledger

    Responsible for:
    - Lazy creation of the zeroed balance row
    - credit / debit / lock / unlock with non-negativity preserved
    - Lifetime counters (deposited, withdrawn, profit)

    Usage:
        ledger = BalanceLedger(db_session)
        await ledger.credit(wallet, Currency.SOL, Decimal("2"), CreditSource.DEPOSIT)
        await ledger.lock(wallet, Currency.USDC, Decimal("1000"))
        await db_session.commit()
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== READ ====================

    async def get_balance(self, wallet_address: str) -> Optional[PlatformBalance]:
        """Current balance row of a wallet (re-read from the database)."""
        result = await self.db.execute(
            select(PlatformBalance)
            .where(PlatformBalance.wallet_address == wallet_address)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def require_balance(self, wallet_address: str) -> PlatformBalance:
        balance = await self.get_balance(wallet_address)
        if balance is None:
            raise NotFoundError(f"No balance found for wallet {wallet_address}")
        return balance

    async def get_available(self, wallet_address: str, currency: Currency) -> Decimal:
        balance = await self.get_balance(wallet_address)
        if balance is None:
            return ZERO
        return balance.available(currency)

    async def has_sufficient_balance(
        self,
        wallet_address: str,
        amount: Decimal,
        currency: Currency,
    ) -> bool:
        """Advisory check; lock/debit re-check atomically."""
        return await self.get_available(wallet_address, currency) >= amount

    async def ensure_balance(self, wallet_address: str, user_id: uuid.UUID) -> PlatformBalance:
        """
        Return the wallet's balance row, creating a zeroed one if missing.

        Uses INSERT .. ON CONFLICT DO NOTHING so two requests touching a new
        wallet at once both end up reading the same row.

        Args:
            wallet_address: Owner wallet
            user_id: Owner user id

        Returns:
            The balance row
        """
        balance = await self.get_balance(wallet_address)
        if balance is not None:
            return balance

        if self.db.get_bind().dialect.name == "postgresql":
            insert = pg_insert
        else:
            insert = sqlite_insert
        result = await self.db.execute(
            insert(PlatformBalance)
            .values(user_id=user_id, wallet_address=wallet_address)
            .on_conflict_do_nothing()
        )
        if result.rowcount == 1:
            ledger_logger.info(f"Initialized zero balance for {wallet_address}")

        return await self.require_balance(wallet_address)

    # ==================== MUTATIONS ====================

    async def credit(
        self,
        wallet_address: str,
        currency: Currency,
        amount: Decimal,
        source: CreditSource = CreditSource.DEPOSIT,
        user_id: Optional[uuid.UUID] = None,
    ) -> PlatformBalance:
        """
        Add to the available balance.

        Args:
            wallet_address: Target wallet
            currency: Ledger currency
            amount: Positive amount
            source: deposit bumps total_deposited, profit bumps
                total_profit_earned, refund touches no counter
            user_id: Owner id; when given a missing row is created first

        Returns:
            Updated balance row

        Raises:
            ValidationError: non-positive amount
            NotFoundError: no balance row and no user_id to create one
        """
        currency = Currency.parse(currency)
        amount = _positive(amount)
        available_col, _ = PlatformBalance.columns_for(currency)

        if user_id is not None:
            await self.ensure_balance(wallet_address, user_id)

        values = {available_col.key: available_col + amount, "last_updated": utcnow()}
        if source is CreditSource.DEPOSIT:
            values["total_deposited"] = PlatformBalance.total_deposited + amount
        elif source is CreditSource.PROFIT:
            values["total_profit_earned"] = PlatformBalance.total_profit_earned + amount

        result = await self.db.execute(
            update(PlatformBalance)
            .where(PlatformBalance.wallet_address == wallet_address)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError(f"No balance found for wallet {wallet_address}")

        ledger_logger.info(f"CREDIT {wallet_address} {amount} {currency.value} ({source.value})")
        return await self.require_balance(wallet_address)

    async def debit(
        self,
        wallet_address: str,
        currency: Currency,
        amount: Decimal,
    ) -> PlatformBalance:
        """
        Remove from the available balance.

        Raises:
            InsufficientBalanceError: available < amount
        """
        currency = Currency.parse(currency)
        amount = _positive(amount)
        available_col, _ = PlatformBalance.columns_for(currency)

        result = await self.db.execute(
            update(PlatformBalance)
            .where(
                PlatformBalance.wallet_address == wallet_address,
                available_col >= amount,
            )
            .values({available_col.key: available_col - amount, "last_updated": utcnow()})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self._raise_insufficient(wallet_address, currency, amount)

        ledger_logger.info(f"DEBIT {wallet_address} {amount} {currency.value}")
        return await self.require_balance(wallet_address)

    async def lock(
        self,
        wallet_address: str,
        currency: Currency,
        amount: Decimal,
    ) -> PlatformBalance:
        """
        Move funds from available to locked in one statement.

        Raises:
            InsufficientBalanceError: available < amount
        """
        currency = Currency.parse(currency)
        amount = _positive(amount)
        available_col, locked_col = PlatformBalance.columns_for(currency)

        result = await self.db.execute(
            update(PlatformBalance)
            .where(
                PlatformBalance.wallet_address == wallet_address,
                available_col >= amount,
            )
            .values({
                available_col.key: available_col - amount,
                locked_col.key: locked_col + amount,
                "last_updated": utcnow(),
            })
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self._raise_insufficient(wallet_address, currency, amount)

        ledger_logger.info(f"LOCK {wallet_address} {amount} {currency.value}")
        return await self.require_balance(wallet_address)

    async def unlock(
        self,
        wallet_address: str,
        currency: Currency,
        principal: Decimal,
        profit: Decimal = ZERO,
    ) -> PlatformBalance:
        """
        Release principal from locked to available, adding any profit.

        Locked is floored at zero; a shortfall is logged since it means the
        row was edited outside the ledger.

        Args:
            wallet_address: Target wallet
            currency: Ledger currency
            principal: Amount to release (>= 0)
            profit: Extra amount credited to available and total_profit_earned (>= 0)

        Returns:
            Updated balance row
        """
        currency = Currency.parse(currency)
        principal = _non_negative(principal, "principal")
        profit = _non_negative(profit, "profit")
        available_col, locked_col = PlatformBalance.columns_for(currency)

        current = await self.require_balance(wallet_address)
        if current.locked(currency) < principal:
            ledger_logger.warning(
                f"UNLOCK shortfall for {wallet_address}: locked {current.locked(currency)} "
                f"< principal {principal} {currency.value}; flooring at 0"
            )

        values = {
            locked_col.key: case(
                (locked_col >= principal, locked_col - principal),
                else_=ZERO,
            ),
            available_col.key: available_col + principal + profit,
            "last_updated": utcnow(),
        }
        if profit > ZERO:
            values["total_profit_earned"] = PlatformBalance.total_profit_earned + profit

        await self.db.execute(
            update(PlatformBalance)
            .where(PlatformBalance.wallet_address == wallet_address)
            .values(values)
            .execution_options(synchronize_session=False)
        )

        ledger_logger.info(
            f"UNLOCK {wallet_address} principal={principal} profit={profit} {currency.value}"
        )
        return await self.require_balance(wallet_address)

    async def record_withdrawn(self, wallet_address: str, amount: Decimal) -> PlatformBalance:
        """Bump total_withdrawn once a payout has been confirmed."""
        amount = _positive(amount)
        result = await self.db.execute(
            update(PlatformBalance)
            .where(PlatformBalance.wallet_address == wallet_address)
            .values(
                total_withdrawn=PlatformBalance.total_withdrawn + amount,
                last_updated=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError(f"No balance found for wallet {wallet_address}")
        return await self.require_balance(wallet_address)

    # ==================== HELPERS ====================

    async def _raise_insufficient(
        self,
        wallet_address: str,
        currency: Currency,
        amount: Decimal,
    ) -> None:
        balance = await self.get_balance(wallet_address)
        available = balance.available(currency) if balance is not None else ZERO
        ledger_logger.info(
            f"REJECT {wallet_address} needs {amount} {currency.value}, has {available}"
        )
        raise InsufficientBalanceError(currency.value, amount, available)
