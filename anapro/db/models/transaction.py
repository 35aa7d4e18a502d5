"""
AnaPro Platform - Transaction Model

Audit trail of every ledger-affecting event. A completed record is never
mutated; a signature can only appear once with status completed.
"""
import uuid
from sqlalchemy import (
    Column, String, Numeric, DateTime, ForeignKey, Boolean, Text, JSON, Uuid,
    CheckConstraint, Index, Enum as SQLEnum, text,
)
from sqlalchemy.dialects.postgresql import JSONB
import enum

from anapro.db.database import Base
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency


class TransactionType(str, enum.Enum):
    """Ledger event type."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INVESTMENT = "investment"
    PROFIT = "profit"
    REFUND = "refund"


class TransactionStatus(str, enum.Enum):
    """Ledger event status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Transaction(Base):
    """Ledger transaction record."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
        Index(
            "uq_transactions_completed_deposit_tx_hash",
            "tx_hash",
            unique=True,
            postgresql_where=text("status = 'completed' AND type = 'deposit'"),
            sqlite_where=text("status = 'completed' AND type = 'deposit'"),
        ),
        Index("ix_transactions_wallet_created", "wallet_address", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_address = Column(String(44), nullable=False)

    type = Column(
        SQLEnum(TransactionType, name="transaction_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    amount = Column(Numeric(20, 8), nullable=False)
    currency = Column(
        SQLEnum(Currency, name="currency", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    status = Column(
        SQLEnum(TransactionStatus, name="transaction_status", native_enum=False, values_callable=_enum_values),
        default=TransactionStatus.PENDING,
        nullable=False,
    )

    # On-chain proof
    tx_hash = Column(String(128), nullable=True, index=True)
    tx_verified = Column(Boolean, default=False, nullable=False)
    tx_verified_at = Column(DateTime, nullable=True)

    description = Column(Text, nullable=True)
    meta = Column("metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Transaction {self.type.value} {self.amount} {self.currency.value} [{self.status.value}]>"
