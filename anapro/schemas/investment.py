"""
AnaPro Platform - Pydantic Schemas
Investment schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from anapro.schemas.common import CamelModel


class InvestmentCreate(CamelModel):
    """Schema for opening an investment."""
    plan_name: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None


class InvestmentRead(CamelModel):
    """Schema for an investment."""
    id: uuid.UUID
    wallet_address: str
    plan_name: str
    amount: Decimal
    currency: str
    daily_return: Decimal
    duration_days: int
    expected_return: Decimal
    profit_earned: Decimal
    status: str
    start_date: datetime
    maturity_date: datetime
    end_date: Optional[datetime] = None
    last_profit_date: Optional[datetime] = None
    principal_unlocked_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_model(cls, investment) -> "InvestmentRead":
        return cls(
            id=investment.id,
            wallet_address=investment.wallet_address,
            plan_name=investment.plan_name,
            amount=investment.amount,
            currency=investment.currency.value,
            daily_return=investment.daily_return,
            duration_days=investment.duration_days,
            expected_return=investment.expected_return,
            profit_earned=investment.profit_earned,
            status=investment.status.value,
            start_date=investment.start_date,
            maturity_date=investment.maturity_date,
            end_date=investment.end_date,
            last_profit_date=investment.last_profit_date,
            principal_unlocked_at=investment.principal_unlocked_at,
            created_at=investment.created_at,
        )


class InvestmentList(CamelModel):
    success: bool = True
    data: List[InvestmentRead]


class PlanRead(CamelModel):
    """Schema for an investment plan."""
    id: str
    name: str
    daily_return: Decimal
    duration_days: int
    total_return: Decimal
    min_investment: Decimal
    max_investment: Decimal
    features: List[str]

    @classmethod
    def from_plan(cls, plan) -> "PlanRead":
        return cls(
            id=plan.id,
            name=plan.name,
            daily_return=plan.daily_return,
            duration_days=plan.duration_days,
            total_return=plan.total_return,
            min_investment=plan.min_investment,
            max_investment=plan.max_investment,
            features=list(plan.features),
        )
