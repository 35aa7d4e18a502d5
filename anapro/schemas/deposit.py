"""
AnaPro Platform - Pydantic Schemas
Deposit verification schemas
"""
from decimal import Decimal
from typing import Optional
import uuid

from pydantic import ConfigDict

from anapro.schemas.common import CamelModel
from anapro.schemas.transaction import TransactionRead


class DepositVerifyRequest(CamelModel):
    """Schema for verifying an on-chain deposit."""
    tx_signature: Optional[str] = None
    wallet_address: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    transaction_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "txSignature": "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW",
                "walletAddress": "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
                "amount": "2.0",
                "currency": "SOL",
            }
        }
    )


class DepositVerifyResponse(CamelModel):
    success: bool = True
    verified: bool = True
    message: str = "Deposit verified and credited"
    transaction: TransactionRead
