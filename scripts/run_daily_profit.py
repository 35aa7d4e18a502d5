#!/usr/bin/env python3
"""
Daily Profit Runner

Runs the profit accrual and maturity settlement passes once, outside the
HTTP server. Safe to re-run: an investment is credited at most once per
UTC day and settled at most once.

Usage:
    python scripts/run_daily_profit.py

    # Also deactivate expired sessions:
    python scripts/run_daily_profit.py --expire-sessions
"""
import asyncio
import argparse
import sys
from pathlib import Path

from loguru import logger

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from anapro.config import settings
from anapro.core.auth import AuthService
from anapro.core.ledger.accrual import ProfitAccrualJob
from anapro.db.database import Database
from anapro.utils.logger import configure_logging


async def main(expire_sessions: bool = False) -> int:
    database = Database.from_settings(settings)
    try:
        counts = await ProfitAccrualJob(database).run()
        logger.info(f"Daily profit run: {counts}")

        if expire_sessions:
            async with database.session() as db:
                await AuthService(db).deactivate_expired_sessions()
    finally:
        await database.dispose()

    return 1 if counts["failed"] or counts["settlement_failed"] else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Run daily profit accrual and maturity settlement')
    parser.add_argument('--expire-sessions', action='store_true', help='Also deactivate expired sessions')
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(main(expire_sessions=args.expire_sessions)))
