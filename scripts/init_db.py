#!/usr/bin/env python3
"""
Development database bootstrap

Creates every table straight from the models. Production schemas are
managed with ``alembic upgrade head`` instead.

Usage:
    python scripts/init_db.py
"""
import asyncio
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from anapro.config import settings
from anapro.db.database import Database
from anapro.utils.logger import configure_logging


async def main() -> None:
    database = Database.from_settings(settings)
    try:
        await database.create_all()
    finally:
        await database.dispose()


if __name__ == "__main__":
    configure_logging(to_file=False)
    asyncio.run(main())
