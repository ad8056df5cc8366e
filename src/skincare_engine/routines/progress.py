# src/skincare_engine/routines/progress.py
"""
progress.py

Check-ins are an append-only log per weekly routine. The completed count is
never stored: it is re-derived from the log on every read, one per distinct
UTC calendar day inside the routine's week.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Tuple

from skincare_engine.logging_utils import get_logger
from skincare_engine.routines.schema import WeeklyProgress, WeeklyRoutine
from skincare_engine.taxonomy.need_catalog import NeedCatalog, default_catalog

logger = get_logger("progress")

MODULE_PURPOSE = "Count weekly check-ins by calendar day"

_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def day_key(timestamp: Any) -> Optional[str]:
    """UTC calendar day (YYYY-MM-DD) of a check-in timestamp, or None."""
    if isinstance(timestamp, datetime):
        moment = timestamp
    elif isinstance(timestamp, str) and timestamp.strip():
        text = timestamp.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            match = _DATE_PREFIX.match(text)
            return match.group(1) if match else None
    else:
        return None

    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date().isoformat()


def check_in_window(week_start: str, week_end: str) -> Tuple[str, str]:
    """Inclusive created_at bounds covering every instant of the week in UTC."""
    return f"{week_start}T00:00:00+00:00", f"{week_end}T23:59:59.999999+00:00"


def compute_progress(
    timestamps: Iterable[Any],
    week_start: str,
    week_end: str,
    target: int,
) -> WeeklyProgress:
    # ISO dates compare correctly as strings; both ends inclusive
    days = set()
    for ts in timestamps:
        day = day_key(ts)
        if day is None:
            continue
        if week_start <= day <= week_end:
            days.add(day)
    checked = tuple(sorted(days))
    return WeeklyProgress(completed=len(checked), target=target, days_checked=checked)


class ProgressTracker:
    """Check-in log access on top of a store (SupabaseStore or MemoryStore)."""

    def __init__(self, store: Any, catalog: Optional[NeedCatalog] = None) -> None:
        self.store = store
        self.catalog = catalog or default_catalog()

    def record_check_in(self, routine: WeeklyRoutine, at: Optional[datetime] = None) -> WeeklyProgress:
        """Append a check-in; a second one on the same day does not add to the count."""
        moment = at or now_utc()
        self.store.append_check_in(routine.id, moment.isoformat())
        progress = self.get_progress(routine)

        logger.info(
            "Check-in recorded routine_id=%s day=%s completed=%d/%d",
            routine.id,
            day_key(moment),
            progress.completed,
            progress.target,
            extra={
                "invoking_func": "ProgressTracker.record_check_in",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Return progress",
                "resolution": "",
            },
        )
        return progress

    def get_progress(self, routine: WeeklyRoutine) -> WeeklyProgress:
        start, end = check_in_window(routine.week_start, routine.week_end)
        timestamps = self.store.fetch_check_ins(routine.id, start, end)
        target = routine.progress_target(self.catalog.routine.min_target_days)
        return compute_progress(timestamps, routine.week_start, routine.week_end, target)
