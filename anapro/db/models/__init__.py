"""
AnaPro Platform - Database Models
"""
from anapro.db.models.user import User
from anapro.db.models.platform_balance import PlatformBalance
from anapro.db.models.transaction import Transaction, TransactionType, TransactionStatus
from anapro.db.models.investment import Investment, InvestmentStatus
from anapro.db.models.user_session import UserSession

__all__ = [
    "User",
    "PlatformBalance",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "Investment",
    "InvestmentStatus",
    "UserSession",
]
