"""
AnaPro Platform - Transaction Log Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.core.ledger.reconciliation import reconcile_wallet
from anapro.db.models.transaction import TransactionStatus, TransactionType
from anapro.db.models.user import User
from anapro.db.repositories.transaction import TransactionRepository
from anapro.dependencies import get_current_user, get_db
from anapro.schemas.transaction import (
    PendingDepositCreate,
    ReconciliationLine,
    ReconciliationResponse,
    TransactionList,
    TransactionRead,
)
from anapro.utils.currency import Currency, quantize_amount, require_positive
from anapro.utils.exceptions import ValidationError

router = APIRouter()


def _parse_filter(enum_cls, value: Optional[str], label: str):
    if not value:
        return None
    try:
        return enum_cls(value.lower())
    except ValueError:
        raise ValidationError(f"Unknown transaction {label}: {value}")


@router.get(
    "",
    response_model=TransactionList,
    summary="List my transactions",
    description="Transaction log of the session's wallet, newest first."
)
async def list_transactions(
    type_filter: Optional[str] = Query(None, alias="type"),
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> TransactionList:
    tx_type = _parse_filter(TransactionType, type_filter, "type")
    tx_status = _parse_filter(TransactionStatus, status_filter, "status")

    repo = TransactionRepository(db)
    records = await repo.list_for_wallet(
        current_user.wallet_address, type=tx_type, status=tx_status, limit=limit, offset=offset
    )
    total = await repo.count_for_wallet(current_user.wallet_address, type=tx_type, status=tx_status)
    return TransactionList(data=[TransactionRead.from_record(r) for r in records], total=total)


@router.post(
    "",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Announce a deposit",
    description="Record a pending deposit that a later verification call completes."
)
async def create_pending_deposit(
    payload: PendingDepositCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> TransactionRead:
    currency = Currency.parse(payload.currency)
    amount = quantize_amount(require_positive(payload.amount))

    record = await TransactionRepository(db).append(
        user_id=current_user.id,
        wallet_address=current_user.wallet_address,
        type=TransactionType.DEPOSIT,
        amount=amount,
        currency=currency,
        status=TransactionStatus.PENDING,
        description=payload.description or "Deposit",
    )
    await db.commit()
    return TransactionRead.from_record(record)


@router.get(
    "/reconciliation",
    response_model=ReconciliationResponse,
    summary="Reconcile my balances",
    description="Compare the transaction log with the balance row, per currency."
)
async def get_reconciliation(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ReconciliationResponse:
    report = await reconcile_wallet(db, current_user)
    return ReconciliationResponse(
        wallet_address=report.wallet_address,
        balanced=report.balanced,
        currencies=[ReconciliationLine(**line.to_dict()) for line in report.lines],
    )
