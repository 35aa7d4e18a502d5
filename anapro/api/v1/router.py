"""
AnaPro Platform - API v1 Router
"""
from fastapi import APIRouter

from anapro.api.v1.endpoints import (
    auth, balances, deposits, investments, withdrawals, transactions, users, cron, admin
)

api_router = APIRouter()


# API v1 root endpoint
@api_router.get("/", tags=["API Info"])
async def api_root():
    """API v1 root - returns version info."""
    return {
        "api": "AnaPro Platform",
        "version": "v1",
        "status": "operational"
    }


# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(balances.router, prefix="/balances", tags=["Balances"])
api_router.include_router(deposits.router, prefix="/deposits", tags=["Deposits"])
api_router.include_router(investments.router, prefix="/investments", tags=["Investments"])
api_router.include_router(withdrawals.router, prefix="/withdrawals", tags=["Withdrawals"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(cron.router, prefix="/cron", tags=["Scheduled Jobs"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
