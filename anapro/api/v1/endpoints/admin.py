"""
AnaPro Platform - Admin Endpoints
Manual processing of withdrawal payouts
"""
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.core.auth import SessionContext
from anapro.core.ledger.withdrawals import WithdrawalService
from anapro.dependencies import get_db, require_admin
from anapro.schemas.transaction import TransactionRead
from anapro.schemas.withdrawal import (
    WithdrawalComplete,
    WithdrawalFail,
    WithdrawalResponse,
)

router = APIRouter()


@router.post(
    "/withdrawals/{transaction_id}/complete",
    response_model=WithdrawalResponse,
    summary="Complete a withdrawal",
    description="Record the on-chain payout of a pending withdrawal."
)
async def complete_withdrawal(
    transaction_id: uuid.UUID,
    payload: WithdrawalComplete,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> WithdrawalResponse:
    record = await WithdrawalService(db).complete_withdrawal(
        transaction_id, payload.tx_signature, admin_wallet=admin.user.wallet_address
    )
    return WithdrawalResponse(message="Withdrawal completed", transaction=TransactionRead.from_record(record))


@router.post(
    "/withdrawals/{transaction_id}/fail",
    response_model=WithdrawalResponse,
    summary="Fail a withdrawal",
    description="Reject a pending withdrawal and credit the amount back."
)
async def fail_withdrawal(
    transaction_id: uuid.UUID,
    payload: WithdrawalFail,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> WithdrawalResponse:
    record = await WithdrawalService(db).fail_withdrawal(
        transaction_id, payload.reason, admin_wallet=admin.user.wallet_address
    )
    return WithdrawalResponse(message="Withdrawal failed and refunded", transaction=TransactionRead.from_record(record))
