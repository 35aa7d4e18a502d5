"""
Platform clock helpers.

All persisted timestamps are naive UTC, matching the DateTime columns.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(moment: datetime) -> datetime:
    """Midnight (UTC) of the calendar day containing ``moment``."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)
