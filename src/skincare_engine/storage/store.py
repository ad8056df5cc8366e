# src/skincare_engine/storage/store.py
from __future__ import annotations

"""
store.py

Purpose:
    Storage adapters used by SkinRecommender and RoutineService.

      - SupabaseStore : reads signals / catalog rows and reads + writes
                        routines through a supabase.Client.
      - MemoryStore   : the same surface kept in process (tests, local runs).

Ensure semantics:
    insert_*_if_absent() never overwrites. SupabaseStore relies on the
    unique (user_id, period) constraints: upsert(..., ignore_duplicates=True)
    returns no row when another writer got there first, and the canonical
    row is read back. MemoryStore does the same check-then-insert under a
    lock.

Failures of required reads / writes raise StorageError; optional reads
(profile metadata, cached narrative) degrade to None.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from supabase import Client

from skincare_engine.config import TableNames
from skincare_engine.errors import StorageError
from skincare_engine.logging_utils import get_logger
from skincare_engine.routines.deriver import apply_weekly_update
from skincare_engine.routines.schema import MonthlyRoutine, WeeklyRoutine, WeeklyRoutineUpdate
from skincare_engine.signals.base import (
    SCOPE_PROFILE,
    SCOPE_SESSION,
    AnswerSignal,
    CatalogItem,
    PhotoSignal,
    ProfileDetails,
    parse_profile_details,
)
from skincare_engine.taxonomy.need_catalog import NeedCatalog, default_catalog

logger = get_logger("store")

MODULE_PURPOSE = "Supabase / in-memory storage adapters"

MONTHLY_CONFLICT = "user_id,period_month"
WEEKLY_CONFLICT = "user_id,week_start"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ----------------------------------------------------------------------
# Supabase
# ----------------------------------------------------------------------
class SupabaseStore:
    def __init__(
        self,
        client: Client,
        tables: Optional[TableNames] = None,
        catalog: Optional[NeedCatalog] = None,
    ) -> None:
        self.client = client
        self.tables = tables or TableNames()
        self.catalog = catalog or default_catalog()

    def _execute(self, invoking_func: str, build: Callable[[], Any]) -> List[Dict[str, Any]]:
        try:
            resp = build().execute()
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Supabase call failed: %s",
                exc,
                extra={
                    "invoking_func": invoking_func,
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Raise StorageError to caller",
                    "resolution": "",
                },
            )
            raise StorageError(f"{invoking_func} failed: {exc}") from exc
        return list(resp.data or [])

    # ------------------------------------------------------------------
    # Signals + catalog
    # ------------------------------------------------------------------
    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(
            "SupabaseStore.get_session",
            lambda: self.client.table(self.tables.analysis_sessions)
            .select("id, user_id, created_at")
            .eq("id", session_id)
            .limit(1),
        )
        return rows[0] if rows else None

    def get_latest_session(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(
            "SupabaseStore.get_latest_session",
            lambda: self.client.table(self.tables.analysis_sessions)
            .select("id, user_id, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(1),
        )
        return rows[0] if rows else None

    def fetch_photos(self, session_id: str) -> List[PhotoSignal]:
        rows = self._execute(
            "SupabaseStore.fetch_photos",
            lambda: self.client.table(self.tables.photos)
            .select("id, session_id, shot_type, focus_area, image_url, created_at")
            .eq("session_id", session_id),
        )
        return [PhotoSignal.from_row(r) for r in rows]

    def fetch_session_answers(self, session_id: str) -> List[AnswerSignal]:
        rows = self._execute(
            "SupabaseStore.fetch_session_answers",
            lambda: self.client.table(self.tables.ox_responses)
            .select("session_id, question_key, answer, created_at")
            .eq("session_id", session_id),
        )
        return [AnswerSignal.from_row(r, SCOPE_SESSION) for r in rows]

    def fetch_profile_answers(self, user_id: str) -> List[AnswerSignal]:
        rows = self._execute(
            "SupabaseStore.fetch_profile_answers",
            lambda: self.client.table(self.tables.profile_ox)
            .select("user_id, question_key, answer, created_at, updated_at")
            .eq("user_id", user_id),
        )
        return [AnswerSignal.from_row(r, SCOPE_PROFILE) for r in rows]

    def fetch_catalog(self, limit: int) -> List[CatalogItem]:
        rows = self._execute(
            "SupabaseStore.fetch_catalog",
            lambda: self.client.table(self.tables.products)
            .select("id, name, brand, category, effect_tags, key_ingredients, note, image_url")
            .limit(limit),
        )
        return [CatalogItem.from_row(r) for r in rows]

    def fetch_profile(self, user_id: str) -> Optional[ProfileDetails]:
        try:
            resp = (
                self.client.table(self.tables.profiles)
                .select("id, metadata")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Could not load profile details for user_id=%s: %s",
                user_id,
                exc,
                extra={
                    "invoking_func": "SupabaseStore.fetch_profile",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Derive routine without profile concerns",
                    "resolution": "",
                },
            )
            return None
        rows = resp.data or []
        if not rows:
            return None
        return parse_profile_details(rows[0].get("metadata"))

    def fetch_narrative(self, session_id: str) -> Optional[Mapping[str, Any]]:
        """Cached narrative report payload for the session, if one was generated."""
        try:
            resp = (
                self.client.table(self.tables.ai_reports)
                .select("session_id, payload, generated_at")
                .eq("session_id", session_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Could not load cached narrative for session_id=%s: %s",
                session_id,
                exc,
                extra={
                    "invoking_func": "SupabaseStore.fetch_narrative",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Use fallback tables",
                    "resolution": "",
                },
            )
            return None
        rows = resp.data or []
        payload = rows[0].get("payload") if rows else None
        return payload if isinstance(payload, dict) else None

    # ------------------------------------------------------------------
    # Monthly routines
    # ------------------------------------------------------------------
    def get_monthly(self, user_id: str, period_key: str) -> Optional[MonthlyRoutine]:
        rows = self._execute(
            "SupabaseStore.get_monthly",
            lambda: self.client.table(self.tables.monthly_routines)
            .select("*")
            .eq("user_id", user_id)
            .eq("period_month", period_key)
            .limit(1),
        )
        return MonthlyRoutine.from_row(rows[0]) if rows else None

    def insert_monthly_if_absent(self, routine: MonthlyRoutine) -> MonthlyRoutine:
        rows = self._execute(
            "SupabaseStore.insert_monthly_if_absent",
            lambda: self.client.table(self.tables.monthly_routines).upsert(
                routine.to_row(),
                on_conflict=MONTHLY_CONFLICT,
                ignore_duplicates=True,
            ),
        )
        if rows:
            return MonthlyRoutine.from_row(rows[0])

        # Another writer won the race; the unique row is the canonical one
        logger.info(
            "Monthly routine already existed user_id=%s period=%s",
            routine.user_id,
            routine.period_key,
            extra={
                "invoking_func": "SupabaseStore.insert_monthly_if_absent",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Re-read canonical row",
                "resolution": "concurrent_create",
            },
        )
        existing = self.get_monthly(routine.user_id, routine.period_key)
        if existing is None:
            raise StorageError(
                f"monthly routine missing after insert: user_id={routine.user_id} period={routine.period_key}"
            )
        return existing

    # ------------------------------------------------------------------
    # Weekly routines
    # ------------------------------------------------------------------
    def _weekly_from_row(self, row: Dict[str, Any]) -> WeeklyRoutine:
        defaults = self.catalog.routine
        return WeeklyRoutine.from_row(row, default_days=defaults.default_days, default_steps=defaults.optional_steps)

    def get_weekly(self, user_id: str, week_start: str) -> Optional[WeeklyRoutine]:
        rows = self._execute(
            "SupabaseStore.get_weekly",
            lambda: self.client.table(self.tables.weekly_routines)
            .select("*")
            .eq("user_id", user_id)
            .eq("week_start", week_start)
            .limit(1),
        )
        return self._weekly_from_row(rows[0]) if rows else None

    def insert_weekly_if_absent(self, routine: WeeklyRoutine) -> WeeklyRoutine:
        rows = self._execute(
            "SupabaseStore.insert_weekly_if_absent",
            lambda: self.client.table(self.tables.weekly_routines).upsert(
                routine.to_row(),
                on_conflict=WEEKLY_CONFLICT,
                ignore_duplicates=True,
            ),
        )
        if rows:
            return self._weekly_from_row(rows[0])

        logger.info(
            "Weekly routine already existed user_id=%s week_start=%s",
            routine.user_id,
            routine.week_start,
            extra={
                "invoking_func": "SupabaseStore.insert_weekly_if_absent",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Re-read canonical row",
                "resolution": "concurrent_create",
            },
        )
        existing = self.get_weekly(routine.user_id, routine.week_start)
        if existing is None:
            raise StorageError(
                f"weekly routine missing after insert: user_id={routine.user_id} week_start={routine.week_start}"
            )
        return existing

    def update_weekly(self, user_id: str, week_start: str, update: WeeklyRoutineUpdate) -> Optional[WeeklyRoutine]:
        """Write only the patched columns; None when no routine matched."""
        rows = self._execute(
            "SupabaseStore.update_weekly",
            lambda: self.client.table(self.tables.weekly_routines)
            .update(update.to_row())
            .eq("user_id", user_id)
            .eq("week_start", week_start),
        )
        return self._weekly_from_row(rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Check-in log
    # ------------------------------------------------------------------
    def append_check_in(self, routine_id: str, at: str) -> None:
        self._execute(
            "SupabaseStore.append_check_in",
            lambda: self.client.table(self.tables.weekly_checks).insert({"routine_id": routine_id, "created_at": at}),
        )

    def fetch_check_ins(self, routine_id: str, start: str, end: str) -> List[str]:
        rows = self._execute(
            "SupabaseStore.fetch_check_ins",
            lambda: self.client.table(self.tables.weekly_checks)
            .select("created_at")
            .eq("routine_id", routine_id)
            .gte("created_at", start)
            .lte("created_at", end)
            .order("created_at"),
        )
        return [r["created_at"] for r in rows if r.get("created_at")]


# ----------------------------------------------------------------------
# In-memory
# ----------------------------------------------------------------------
class MemoryStore:
    """Process-local store with the SupabaseStore surface plus seeding helpers."""

    def __init__(self, catalog: Optional[NeedCatalog] = None) -> None:
        self.catalog = catalog or default_catalog()
        self._lock = threading.Lock()
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.photos: Dict[str, List[PhotoSignal]] = {}
        self.session_answers: Dict[str, List[AnswerSignal]] = {}
        self.profile_answers: Dict[str, List[AnswerSignal]] = {}
        self.products: List[CatalogItem] = []
        self.profiles: Dict[str, ProfileDetails] = {}
        self.narratives: Dict[str, Mapping[str, Any]] = {}
        self.monthly: Dict[Tuple[str, str], MonthlyRoutine] = {}
        self.weekly: Dict[Tuple[str, str], WeeklyRoutine] = {}
        self.check_ins: Dict[str, List[str]] = {}

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------
    def add_session(self, user_id: Optional[str], session_id: Optional[str] = None, created_at: Optional[str] = None) -> str:
        session_id = session_id or uuid.uuid4().hex
        self.sessions[session_id] = {
            "id": session_id,
            "user_id": user_id,
            "created_at": created_at or _utc_now_iso(),
        }
        return session_id

    def add_photo(self, session_id: str, shot_type: Optional[str], focus_area: Optional[str] = None) -> None:
        self.photos.setdefault(session_id, []).append(PhotoSignal(shot_type=shot_type, focus_area=focus_area))

    def add_answer(self, session_id: str, question_key: str, answer: Optional[str]) -> None:
        self.session_answers.setdefault(session_id, []).append(
            AnswerSignal(question_key=question_key, answer=answer, scope=SCOPE_SESSION)
        )

    def add_profile_answer(self, user_id: str, question_key: str, answer: Optional[str]) -> None:
        self.profile_answers.setdefault(user_id, []).append(
            AnswerSignal(question_key=question_key, answer=answer, scope=SCOPE_PROFILE)
        )

    def add_catalog_item(self, item: CatalogItem) -> None:
        self.products.append(item)

    def set_profile(self, user_id: str, profile: ProfileDetails) -> None:
        self.profiles[user_id] = profile

    def set_narrative(self, session_id: str, payload: Mapping[str, Any]) -> None:
        self.narratives[session_id] = payload

    # ------------------------------------------------------------------
    # Signals + catalog
    # ------------------------------------------------------------------
    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.sessions.get(session_id)

    def get_latest_session(self, user_id: str) -> Optional[Dict[str, Any]]:
        owned = [(s["created_at"], idx, s) for idx, s in enumerate(self.sessions.values()) if s["user_id"] == user_id]
        if not owned:
            return None
        return max(owned, key=lambda entry: (entry[0], entry[1]))[2]

    def fetch_photos(self, session_id: str) -> List[PhotoSignal]:
        return list(self.photos.get(session_id, []))

    def fetch_session_answers(self, session_id: str) -> List[AnswerSignal]:
        return list(self.session_answers.get(session_id, []))

    def fetch_profile_answers(self, user_id: str) -> List[AnswerSignal]:
        return list(self.profile_answers.get(user_id, []))

    def fetch_catalog(self, limit: int) -> List[CatalogItem]:
        return self.products[:limit]

    def fetch_profile(self, user_id: str) -> Optional[ProfileDetails]:
        return self.profiles.get(user_id)

    def fetch_narrative(self, session_id: str) -> Optional[Mapping[str, Any]]:
        return self.narratives.get(session_id)

    # ------------------------------------------------------------------
    # Routines
    # ------------------------------------------------------------------
    def get_monthly(self, user_id: str, period_key: str) -> Optional[MonthlyRoutine]:
        return self.monthly.get((user_id, period_key))

    def insert_monthly_if_absent(self, routine: MonthlyRoutine) -> MonthlyRoutine:
        key = (routine.user_id, routine.period_key)
        with self._lock:
            existing = self.monthly.get(key)
            if existing is not None:
                return existing
            stored = replace(routine, id=uuid.uuid4().hex, generated_at=_utc_now_iso())
            self.monthly[key] = stored
            return stored

    def get_weekly(self, user_id: str, week_start: str) -> Optional[WeeklyRoutine]:
        return self.weekly.get((user_id, week_start))

    def insert_weekly_if_absent(self, routine: WeeklyRoutine) -> WeeklyRoutine:
        key = (routine.user_id, routine.week_start)
        with self._lock:
            existing = self.weekly.get(key)
            if existing is not None:
                return existing
            stored = replace(routine, id=uuid.uuid4().hex, generated_at=_utc_now_iso())
            self.weekly[key] = stored
            return stored

    def update_weekly(self, user_id: str, week_start: str, update: WeeklyRoutineUpdate) -> Optional[WeeklyRoutine]:
        key = (user_id, week_start)
        with self._lock:
            current = self.weekly.get(key)
            if current is None:
                return None
            updated = apply_weekly_update(current, update)
            self.weekly[key] = updated
            return updated

    def append_check_in(self, routine_id: str, at: str) -> None:
        with self._lock:
            self.check_ins.setdefault(routine_id, []).append(at)

    def fetch_check_ins(self, routine_id: str, start: str, end: str) -> List[str]:
        # window filtering happens in compute_progress
        return list(self.check_ins.get(routine_id, []))
