"""
AnaPro Platform - Scheduled Job Endpoints
Called by an external scheduler with the shared cron secret
"""
from fastapi import APIRouter, Depends, Request

from anapro.core.auth import AuthService
from anapro.core.ledger.accrual import ProfitAccrualJob
from anapro.dependencies import verify_cron_secret
from anapro.schemas.common import Message
from anapro.schemas.cron import DailyProfitReport

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


@router.post(
    "/daily-profit",
    response_model=DailyProfitReport,
    summary="Run daily profit accrual",
    description="Credit one day of profit to every active investment and settle matured ones."
)
async def run_daily_profit(request: Request) -> DailyProfitReport:
    counts = await ProfitAccrualJob(request.app.state.db).run()
    return DailyProfitReport(**counts)


@router.post(
    "/expire-sessions",
    response_model=Message,
    summary="Deactivate expired sessions"
)
async def expire_sessions(request: Request) -> Message:
    async with request.app.state.db.session() as db:
        count = await AuthService(db).deactivate_expired_sessions()
    return Message(message=f"Deactivated {count} expired sessions")
