"""
AnaPro Platform - Repositories
"""
from anapro.db.repositories.user import UserRepository
from anapro.db.repositories.transaction import TransactionRepository
from anapro.db.repositories.investment import InvestmentRepository
from anapro.db.repositories.session import SessionRepository

__all__ = [
    "UserRepository",
    "TransactionRepository",
    "InvestmentRepository",
    "SessionRepository",
]
