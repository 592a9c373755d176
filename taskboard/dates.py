"""Due date helpers for card rendering."""
import math
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def _now(now: Optional[datetime], like: datetime) -> datetime:
    if now is None:
        now = datetime.now(timezone.utc)
    # Compare naive with naive and aware with aware
    if like.tzinfo is None and now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    elif like.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone()
    return now


def days_until(due: datetime, now: Optional[datetime] = None) -> int:
    """Whole days until due, rounded up (negative when overdue)."""
    now = _now(now, due)
    return math.ceil((due - now).total_seconds() / SECONDS_PER_DAY)


def format_due_date(due: Optional[datetime], now: Optional[datetime] = None) -> str:
    if due is None:
        return ""
    diff = days_until(due, now)
    if diff < 0:
        return f"{abs(diff)} days overdue"
    if diff == 0:
        return "Due today"
    if diff == 1:
        return "Due tomorrow"
    if diff <= 7:
        return f"Due in {diff} days"
    return f"{due.strftime('%b')} {due.day}, {due.year}"


def is_overdue(due: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when the due day is strictly before today."""
    if due is None:
        return False
    return due.date() < _now(now, due).date()


def is_upcoming(due: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when due within the next two days (today included)."""
    if due is None:
        return False
    return 0 <= days_until(due, now) <= 2


def format_date_for_input(due: Optional[datetime]) -> str:
    if due is None:
        return ""
    return due.date().isoformat()
