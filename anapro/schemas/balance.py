"""
AnaPro Platform - Pydantic Schemas
Balance schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from anapro.schemas.common import CamelModel
from anapro.utils.currency import Currency


class CurrencyBalance(CamelModel):
    available: Decimal
    locked: Decimal


class BalanceResponse(CamelModel):
    """Schema for a wallet's balances."""
    wallet_address: str
    balances: Dict[str, CurrencyBalance]
    total_deposited: Decimal
    total_withdrawn: Decimal
    total_profit_earned: Decimal
    last_updated: Optional[datetime] = None

    @classmethod
    def from_balance(cls, balance) -> "BalanceResponse":
        return cls(
            wallet_address=balance.wallet_address,
            balances={
                currency.value: CurrencyBalance(
                    available=balance.available(currency),
                    locked=balance.locked(currency),
                )
                for currency in Currency
            },
            total_deposited=balance.total_deposited,
            total_withdrawn=balance.total_withdrawn,
            total_profit_earned=balance.total_profit_earned,
            last_updated=balance.last_updated,
        )
