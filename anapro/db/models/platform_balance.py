"""
AnaPro Platform - Platform Balance Model

One row per user holding available and locked amounts for each currency
plus lifetime counters. Rows are only mutated through BalanceLedger.
"""
import uuid
from decimal import Decimal
from typing import Tuple

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.orm import relationship, InstrumentedAttribute

from anapro.db.database import Base
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency
from anapro.utils.exceptions import UnsupportedCurrencyError


AMOUNT = Numeric(20, 8)


class PlatformBalance(Base):
    """Per-user custodial balance."""

    __tablename__ = "platform_balances"
    __table_args__ = (
        CheckConstraint('sol_balance >= 0', name='ck_platform_balances_sol_balance'),
        CheckConstraint('usdc_balance >= 0', name='ck_platform_balances_usdc_balance'),
        CheckConstraint('usdt_balance >= 0', name='ck_platform_balances_usdt_balance'),
        CheckConstraint('sol_locked >= 0', name='ck_platform_balances_sol_locked'),
        CheckConstraint('usdc_locked >= 0', name='ck_platform_balances_usdc_locked'),
        CheckConstraint('usdt_locked >= 0', name='ck_platform_balances_usdt_locked'),
        CheckConstraint('total_deposited >= 0', name='ck_platform_balances_total_deposited'),
        CheckConstraint('total_withdrawn >= 0', name='ck_platform_balances_total_withdrawn'),
        CheckConstraint('total_profit_earned >= 0', name='ck_platform_balances_total_profit'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    wallet_address = Column(String(44), unique=True, index=True, nullable=False)

    # Available balances
    sol_balance = Column(AMOUNT, default=Decimal("0"), nullable=False)
    usdc_balance = Column(AMOUNT, default=Decimal("0"), nullable=False)
    usdt_balance = Column(AMOUNT, default=Decimal("0"), nullable=False)

    # Locked balances
    sol_locked = Column(AMOUNT, default=Decimal("0"), nullable=False)
    usdc_locked = Column(AMOUNT, default=Decimal("0"), nullable=False)
    usdt_locked = Column(AMOUNT, default=Decimal("0"), nullable=False)

    # Lifetime statistics
    total_deposited = Column(AMOUNT, default=Decimal("0"), nullable=False)
    total_withdrawn = Column(AMOUNT, default=Decimal("0"), nullable=False)
    total_profit_earned = Column(AMOUNT, default=Decimal("0"), nullable=False)

    # Timestamps
    last_updated = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="balance")

    @classmethod
    def columns_for(cls, currency: Currency) -> Tuple[InstrumentedAttribute, InstrumentedAttribute]:
        """(available, locked) columns of a currency."""
        if currency is Currency.SOL:
            return cls.sol_balance, cls.sol_locked
        if currency is Currency.USDC:
            return cls.usdc_balance, cls.usdc_locked
        if currency is Currency.USDT:
            return cls.usdt_balance, cls.usdt_locked
        raise UnsupportedCurrencyError(currency)

    def available(self, currency: Currency) -> Decimal:
        column, _ = self.columns_for(currency)
        return Decimal(getattr(self, column.key) or 0)

    def locked(self, currency: Currency) -> Decimal:
        _, column = self.columns_for(currency)
        return Decimal(getattr(self, column.key) or 0)

    def __repr__(self):
        return f"<PlatformBalance {self.wallet_address}>"
