"""
AnaPro Platform - Pydantic Schemas
Withdrawal schemas
"""
from decimal import Decimal
from typing import Optional

from anapro.schemas.common import CamelModel
from anapro.schemas.transaction import TransactionRead


class WithdrawalCreate(CamelModel):
    """Schema for requesting a withdrawal."""
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    destination_address: Optional[str] = None


class WithdrawalComplete(CamelModel):
    """Admin confirmation of an on-chain payout."""
    tx_signature: str


class WithdrawalFail(CamelModel):
    """Admin rejection of a withdrawal."""
    reason: Optional[str] = None


class WithdrawalResponse(CamelModel):
    success: bool = True
    message: str
    transaction: TransactionRead
