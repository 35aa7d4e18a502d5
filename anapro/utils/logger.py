"""
AnaPro Platform - Logger Configuration
Centralized logging with loguru
"""
import sys
from pathlib import Path
from loguru import logger

from anapro.config import settings


def configure_logging(
    level: str = settings.LOG_LEVEL,
    log_dir: str = settings.LOG_DIR,
    to_file: bool = settings.LOG_TO_FILE,
) -> None:
    """
    Install the console and file sinks.

    Called once from the application factory and from scripts; tests skip it
    and keep loguru's default stderr sink.
    """
    # Remove default handler
    logger.remove()

    # Console handler with custom format
    logger.add(
        sys.stdout,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if settings.DEBUG else level,
    )

    if not to_file:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # File handler for all logs
    logger.add(
        log_path / "app.log",
        rotation="10 MB",
        retention="30 days",
        compression="gz",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
    )

    # Ledger audit trail: every balance mutation is logged with bind(ledger=True)
    logger.add(
        log_path / "ledger.log",
        rotation="10 MB",
        retention="90 days",
        compression="gz",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
        level="INFO",
        filter=lambda record: record["extra"].get("ledger", False),
    )

    # File handler for errors only
    logger.add(
        log_path / "error.log",
        rotation="10 MB",
        retention="30 days",
        compression="gz",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="ERROR",
    )


# Bound logger for ledger mutations
ledger_logger = logger.bind(ledger=True)


__all__ = ["logger", "ledger_logger", "configure_logging"]
