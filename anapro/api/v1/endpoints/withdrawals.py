"""
AnaPro Platform - Withdrawal Endpoints
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.core.ledger.withdrawals import WithdrawalService
from anapro.dependencies import get_current_user, get_db
from anapro.db.models.user import User
from anapro.schemas.transaction import TransactionRead
from anapro.schemas.withdrawal import WithdrawalCreate, WithdrawalResponse
from anapro.utils.exceptions import ValidationError

router = APIRouter()


@router.post(
    "",
    response_model=WithdrawalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a withdrawal",
    description="Debit the available balance and queue the payout for an administrator."
)
async def request_withdrawal(
    payload: WithdrawalCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> WithdrawalResponse:
    if payload.amount is None or not payload.currency or not payload.destination_address:
        raise ValidationError("Missing required fields")

    record = await WithdrawalService(db).request_withdrawal(
        current_user, payload.amount, payload.currency, payload.destination_address
    )
    return WithdrawalResponse(
        message="Withdrawal request submitted",
        transaction=TransactionRead.from_record(record),
    )
