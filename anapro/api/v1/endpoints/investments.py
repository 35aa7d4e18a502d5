"""
AnaPro Platform - Investment Endpoints
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.core.ledger.investments import InvestmentService
from anapro.core.ledger.plans import get_all_plans
from anapro.dependencies import get_current_user, get_db
from anapro.db.models.investment import InvestmentStatus
from anapro.db.models.user import User
from anapro.schemas.investment import (
    InvestmentCreate,
    InvestmentList,
    InvestmentRead,
    PlanRead,
)
from anapro.utils.exceptions import ValidationError

router = APIRouter()


@router.get(
    "/plans",
    response_model=List[PlanRead],
    summary="List investment plans"
)
async def list_plans() -> List[PlanRead]:
    return [PlanRead.from_plan(plan) for plan in get_all_plans()]


@router.get(
    "",
    response_model=InvestmentList,
    summary="List my investments",
    description="Investments of the session's wallet, newest first."
)
async def list_investments(
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> InvestmentList:
    investment_status = None
    if status_filter:
        try:
            investment_status = InvestmentStatus(status_filter.lower())
        except ValueError:
            raise ValidationError(f"Unknown investment status: {status_filter}")

    investments = await InvestmentService(db).list_investments(current_user, investment_status)
    return InvestmentList(data=[InvestmentRead.from_model(item) for item in investments])


@router.post(
    "",
    response_model=InvestmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Open an investment",
    description="Lock the principal and start a plan."
)
async def create_investment(
    payload: InvestmentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> InvestmentRead:
    """
    Open an investment.

    - **plan_name**: Plan id or name (e.g. "starter" or "Starter Plan")
    - **amount**: Principal to lock
    - **currency**: SOL, USDC or USDT
    """
    if not payload.plan_name or payload.amount is None or not payload.currency:
        raise ValidationError("Missing required fields")

    investment = await InvestmentService(db).create_investment(
        current_user, payload.plan_name, payload.amount, payload.currency
    )
    return InvestmentRead.from_model(investment)


@router.get(
    "/{investment_id}",
    response_model=InvestmentRead,
    summary="Get one of my investments"
)
async def get_investment(
    investment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> InvestmentRead:
    investment = await InvestmentService(db).get_investment(current_user, investment_id)
    return InvestmentRead.from_model(investment)


@router.post(
    "/{investment_id}/cancel",
    response_model=InvestmentRead,
    summary="Cancel an investment",
    description="Stop accrual on an active investment. Funds are not moved."
)
async def cancel_investment(
    investment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> InvestmentRead:
    investment = await InvestmentService(db).cancel_investment(current_user, investment_id)
    return InvestmentRead.from_model(investment)
