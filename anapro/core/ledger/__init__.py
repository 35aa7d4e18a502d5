"""
AnaPro Platform - Ledger Module

Core balance ledger functionality including:
- Balance mutations (credit, debit, lock, unlock)
- Deposit verification and replay protection
- Investment lifecycle and daily accrual
- Withdrawals and reconciliation
"""
from anapro.core.ledger.balance_ledger import BalanceLedger, CreditSource
from anapro.core.ledger.deposits import DepositService
from anapro.core.ledger.investments import InvestmentService
from anapro.core.ledger.accrual import ProfitAccrualJob, AccrualReport, SettlementReport
from anapro.core.ledger.withdrawals import WithdrawalService
from anapro.core.ledger.reconciliation import (
    reconcile_wallet,
    ReconciliationReport,
    CurrencyReconciliation,
)
from anapro.core.ledger.plans import InvestmentPlan, get_plan, get_all_plans

__all__ = [
    # Balances
    "BalanceLedger",
    "CreditSource",

    # Deposits
    "DepositService",

    # Investments
    "InvestmentService",
    "ProfitAccrualJob",
    "AccrualReport",
    "SettlementReport",
    "InvestmentPlan",
    "get_plan",
    "get_all_plans",

    # Withdrawals
    "WithdrawalService",

    # Reconciliation
    "reconcile_wallet",
    "ReconciliationReport",
    "CurrencyReconciliation",
]
