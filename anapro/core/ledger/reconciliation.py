"""
AnaPro Platform - Reconciliation

Compares what the transaction log says a wallet should hold with what the
balance row holds, per currency:

    expected = deposits(completed) + profit(completed) - withdrawals(pending|completed)
    actual   = available + locked
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from anapro.core.ledger.balance_ledger import BalanceLedger
from anapro.db.models.transaction import TransactionType, TransactionStatus
from anapro.db.models.user import User
from anapro.db.repositories.transaction import TransactionRepository
from anapro.utils.currency import Currency


@dataclass
class CurrencyReconciliation:
    """Reconciliation line for one currency."""
    currency: Currency
    deposits: Decimal
    profit: Decimal
    withdrawals: Decimal
    available: Decimal
    locked: Decimal

    @property
    def expected(self) -> Decimal:
        return self.deposits + self.profit - self.withdrawals

    @property
    def actual(self) -> Decimal:
        return self.available + self.locked

    @property
    def difference(self) -> Decimal:
        return self.actual - self.expected

    @property
    def balanced(self) -> bool:
        return self.difference == 0

    def to_dict(self) -> dict:
        return {
            "currency": self.currency.value,
            "deposits": str(self.deposits),
            "profit": str(self.profit),
            "withdrawals": str(self.withdrawals),
            "available": str(self.available),
            "locked": str(self.locked),
            "expected": str(self.expected),
            "actual": str(self.actual),
            "difference": str(self.difference),
            "balanced": self.balanced,
        }


@dataclass
class ReconciliationReport:
    wallet_address: str
    lines: List[CurrencyReconciliation] = field(default_factory=list)

    @property
    def balanced(self) -> bool:
        return all(line.balanced for line in self.lines)

    def line(self, currency: Currency) -> CurrencyReconciliation:
        return next(line for line in self.lines if line.currency is currency)


async def reconcile_wallet(db: AsyncSession, user: User) -> ReconciliationReport:
    """
    Build the reconciliation report of one user.

    Args:
        db: Database session
        user: User to reconcile

    Returns:
        ReconciliationReport with one line per supported currency
    """
    transactions = TransactionRepository(db)
    completed = [TransactionStatus.COMPLETED]

    deposits: Dict[Currency, Decimal] = await transactions.sum_by_currency(
        user.id, TransactionType.DEPOSIT, completed
    )
    profit = await transactions.sum_by_currency(user.id, TransactionType.PROFIT, completed)
    withdrawals = await transactions.sum_by_currency(
        user.id,
        TransactionType.WITHDRAWAL,
        [TransactionStatus.PENDING, TransactionStatus.COMPLETED],
    )

    balance = await BalanceLedger(db).get_balance(user.wallet_address)
    report = ReconciliationReport(wallet_address=user.wallet_address)
    for currency in Currency:
        report.lines.append(CurrencyReconciliation(
            currency=currency,
            deposits=deposits[currency],
            profit=profit[currency],
            withdrawals=withdrawals[currency],
            available=balance.available(currency) if balance else Decimal("0"),
            locked=balance.locked(currency) if balance else Decimal("0"),
        ))

    if not report.balanced:
        for line in report.lines:
            if not line.balanced:
                logger.warning(
                    f"Reconciliation mismatch for {user.wallet_address} {line.currency.value}: "
                    f"expected {line.expected}, actual {line.actual}"
                )
    return report
