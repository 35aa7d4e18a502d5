"""
AnaPro Platform - Balance Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.core.ledger.balance_ledger import BalanceLedger
from anapro.dependencies import get_current_user, get_db
from anapro.db.models.user import User
from anapro.schemas.balance import BalanceResponse

router = APIRouter()


@router.get(
    "/me",
    response_model=BalanceResponse,
    summary="Get my balances",
    description="Available and locked balance per currency for the session's wallet."
)
async def get_my_balance(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> BalanceResponse:
    ledger = BalanceLedger(db)
    balance = await ledger.get_balance(current_user.wallet_address)
    if balance is None:
        balance = await ledger.ensure_balance(current_user.wallet_address, current_user.id)
        await db.commit()
    return BalanceResponse.from_balance(balance)
