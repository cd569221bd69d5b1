"""
Date helpers for menu weeks and selection dates
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def weekday_offset(day: str) -> int:
    """Offset of a weekday name from Monday. Raises ValueError for unknown names."""
    try:
        return WEEKDAYS.index(day)
    except ValueError:
        raise ValueError(f"Unknown day: {day}") from None


def selection_date_for(week_start: date, day: str) -> date:
    """Calendar date a selection for `day` falls on in the week starting `week_start`"""
    return week_start + timedelta(days=weekday_offset(day))


def start_of_week(value: date) -> date:
    """Monday of the week containing `value`"""
    return value - timedelta(days=value.weekday())


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as SQLite returns them) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def deadline_passed(deadline: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if deadline is None:
        return False
    now = now or datetime.now(timezone.utc)
    return as_utc(now) > as_utc(deadline)
