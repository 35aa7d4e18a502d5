"""
AnaPro Platform - Pydantic Schemas
Scheduled job schemas
"""
from pydantic import BaseModel


class DailyProfitReport(BaseModel):
    """Counts returned by the daily profit run."""
    success: bool = True
    processed: int
    skipped: int
    failed: int
    completed: int
    settled: int
    settlement_failed: int
