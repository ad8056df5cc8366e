# src/skincare_engine/routines/periods.py
"""Period keys for routines: calendar month and ISO week (Monday start)."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def month_start(today: Optional[date] = None) -> date:
    today = today or today_utc()
    return today.replace(day=1)


def month_key(today: Optional[date] = None) -> str:
    """First-of-month date, e.g. '2024-05-01'."""
    return month_start(today).isoformat()


def week_range(today: Optional[date] = None) -> Tuple[str, str]:
    """(monday, sunday) of the ISO week containing `today`, as ISO dates."""
    today = today or today_utc()
    start = today - timedelta(days=today.weekday())
    end = start + timedelta(days=6)
    return start.isoformat(), end.isoformat()
