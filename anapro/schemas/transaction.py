"""
AnaPro Platform - Pydantic Schemas
Transaction log schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import uuid

from pydantic import Field

from anapro.schemas.common import CamelModel


class TransactionRead(CamelModel):
    """Schema for a transaction record."""
    id: uuid.UUID
    wallet_address: str
    type: str
    amount: Decimal
    currency: str
    status: str
    tx_hash: Optional[str] = None
    tx_verified: bool = False
    tx_verified_at: Optional[datetime] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="meta")
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record) -> "TransactionRead":
        return cls(
            id=record.id,
            wallet_address=record.wallet_address,
            type=record.type.value,
            amount=record.amount,
            currency=record.currency.value,
            status=record.status.value,
            tx_hash=record.tx_hash,
            tx_verified=record.tx_verified,
            tx_verified_at=record.tx_verified_at,
            description=record.description,
            meta=record.meta,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class TransactionList(CamelModel):
    success: bool = True
    data: List[TransactionRead]
    total: int


class PendingDepositCreate(CamelModel):
    """Schema for announcing a deposit before it is verified."""
    amount: Decimal
    currency: str
    description: Optional[str] = None


class ReconciliationLine(CamelModel):
    currency: str
    deposits: Decimal
    profit: Decimal
    withdrawals: Decimal
    available: Decimal
    locked: Decimal
    expected: Decimal
    actual: Decimal
    difference: Decimal
    balanced: bool


class ReconciliationResponse(CamelModel):
    wallet_address: str
    balanced: bool
    currencies: List[ReconciliationLine]
