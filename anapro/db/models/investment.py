"""
AnaPro Platform - Investment Model
"""
import uuid
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, ForeignKey, Uuid,
    CheckConstraint, Index, Enum as SQLEnum,
)
import enum

from anapro.db.database import Base
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency, quantize_amount


class InvestmentStatus(str, enum.Enum):
    """Investment lifecycle state."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not InvestmentStatus.ACTIVE


class Investment(Base):
    """Fixed-term investment holding locked principal."""

    __tablename__ = "investments"
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_investments_amount_positive'),
        CheckConstraint('duration_days > 0', name='ck_investments_duration_positive'),
        CheckConstraint('profit_earned >= 0', name='ck_investments_profit_non_negative'),
        Index("ix_investments_status_unlocked", "status", "principal_unlocked_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_address = Column(String(44), nullable=False, index=True)
    plan_name = Column(String(100), nullable=False)

    # Terms
    amount = Column(Numeric(20, 8), nullable=False)
    currency = Column(
        SQLEnum(Currency, name="currency", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    daily_return = Column(Numeric(5, 2), nullable=False)  # percent per day
    duration_days = Column(Integer, nullable=False)
    expected_return = Column(Numeric(20, 8), nullable=False)  # total profit over the term

    # Schedule
    start_date = Column(DateTime, default=utcnow, nullable=False)
    maturity_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)  # left the active state
    principal_unlocked_at = Column(DateTime, nullable=True)  # principal returned to available

    status = Column(
        SQLEnum(InvestmentStatus, name="investment_status", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        default=InvestmentStatus.ACTIVE,
        nullable=False,
    )

    # Accrual
    profit_earned = Column(Numeric(20, 8), default=Decimal("0"), nullable=False)
    last_profit_date = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def daily_profit(self) -> Decimal:
        return Decimal(self.amount) * Decimal(self.daily_return) / Decimal("100")

    @property
    def days_paid(self) -> int:
        """Number of daily credits already paid."""
        daily = quantize_amount(self.daily_profit)
        if daily <= 0:
            return 0
        return int(Decimal(self.profit_earned) / daily)

    def __repr__(self):
        return f"<Investment {self.plan_name} {self.amount} {self.currency.value} [{self.status.value}]>"
