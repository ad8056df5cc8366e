# src/skincare_engine/routines/service.py
from __future__ import annotations

"""
service.py

Purpose:
    Period-scoped routine operations on top of a store:

      - ensure_monthly_routine / ensure_weekly_routine : get-or-create, one
        record per (user, month) / (user, ISO week),
      - update_weekly_routine / auto_rebalance          : merge-patch writes,
      - check_in / weekly_progress                      : check-in log.

    Derivation is pure (deriver.py); this module only decides when to derive
    and hands the snapshot to the store's insert-if-absent, which resolves
    concurrent creators to a single canonical record.

Usage:
    store = SupabaseStore(get_supabase_client())
    service = RoutineService(store)
    weekly = service.weekly_payload(user_id)
"""

import random
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from skincare_engine.errors import InvalidUpdateError, MissingSessionError, MissingUserError, RoutineNotFoundError
from skincare_engine.logging_utils import get_logger
from skincare_engine.recommendation.recommender import RecommendationPayload, SkinRecommender
from skincare_engine.routines.deriver import (
    auto_rebalance_days,
    build_weekly_update,
    derive_monthly_routine,
    derive_weekly_routine,
)
from skincare_engine.routines.envelope import sanitize_envelope
from skincare_engine.routines.periods import month_key, today_utc, week_range
from skincare_engine.routines.progress import ProgressTracker
from skincare_engine.routines.schema import MonthlyRoutine, WeeklyProgress, WeeklyRoutine, WeeklyRoutineUpdate
from skincare_engine.taxonomy.need_catalog import NeedCatalog, default_catalog

logger = get_logger("service")

MODULE_PURPOSE = "Ensure-once routines and check-ins against storage"


class RoutineService:
    def __init__(
        self,
        store: Any,
        recommender: Optional[SkinRecommender] = None,
        catalog: Optional[NeedCatalog] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.store = store
        self.catalog = catalog or default_catalog()
        self.recommender = recommender or SkinRecommender(store, self.catalog)
        self.clock = clock or today_utc
        self.tracker = ProgressTracker(store, self.catalog)

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise MissingUserError()
        return user_id

    def _log(self, message: str, *args: Any, func: str, next_step: str, resolution: str = "") -> None:
        logger.info(
            message,
            *args,
            extra={
                "invoking_func": f"RoutineService.{func}",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": next_step,
                "resolution": resolution,
            },
        )

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def ensure_monthly_routine(self, user_id: Optional[str]) -> MonthlyRoutine:
        """The user's routine for the current month, derived on first access."""
        user_id = self._require_user(user_id)
        period_key = month_key(self.clock())

        existing = self.store.get_monthly(user_id, period_key)
        if existing is not None:
            self._log(
                "Monthly routine hit user_id=%s period=%s",
                user_id,
                period_key,
                func="ensure_monthly_routine",
                next_step="Return stored snapshot",
                resolution="existing",
            )
            return existing

        payload: Optional[RecommendationPayload] = None
        try:
            payload = self.recommender.load_latest_for_user(user_id).payload
        except MissingSessionError:
            # monthly goals fall back to defaults without an analysis session
            payload = None

        profile = self.store.fetch_profile(user_id)
        routine = derive_monthly_routine(user_id, period_key, payload, profile, self.catalog)
        stored = self.store.insert_monthly_if_absent(routine)

        self._log(
            "Monthly routine created user_id=%s period=%s goal=%s",
            user_id,
            period_key,
            stored.goal,
            func="ensure_monthly_routine",
            next_step="Return new snapshot",
            resolution="created" if payload is not None else "created_from_defaults",
        )
        return stored

    def ensure_weekly_routine(self, user_id: Optional[str]) -> WeeklyRoutine:
        """
        The user's routine for the current ISO week, derived on first access.

        Raises MissingSessionError when the week has no routine yet and the
        user has no analysis session to derive one from.
        """
        user_id = self._require_user(user_id)
        week_start, week_end = week_range(self.clock())

        existing = self.store.get_weekly(user_id, week_start)
        if existing is not None:
            self._log(
                "Weekly routine hit user_id=%s week_start=%s",
                user_id,
                week_start,
                func="ensure_weekly_routine",
                next_step="Return stored routine",
                resolution="existing",
            )
            return existing

        bundle = self.recommender.load_latest_for_user(user_id)
        envelope = sanitize_envelope(self.store.fetch_narrative(bundle.session_id))
        profile = self.store.fetch_profile(user_id)

        routine = derive_weekly_routine(
            user_id,
            week_start,
            week_end,
            bundle.payload,
            envelope=envelope,
            profile=profile,
            catalog=self.catalog,
            session_id=bundle.session_id,
        )
        stored = self.store.insert_weekly_if_absent(routine)

        self._log(
            "Weekly routine created user_id=%s week_start=%s focus=%s",
            user_id,
            week_start,
            stored.focus_topic,
            func="ensure_weekly_routine",
            next_step="Attach progress",
            resolution="created",
        )
        return stored

    def monthly_payload(self, user_id: Optional[str]) -> Dict[str, Any]:
        return self.ensure_monthly_routine(user_id).to_payload()

    def weekly_payload(self, user_id: Optional[str]) -> Dict[str, Any]:
        routine = self.ensure_weekly_routine(user_id)
        return routine.to_payload(self.tracker.get_progress(routine))

    def update_weekly_routine(
        self,
        user_id: Optional[str],
        changes: Union[Mapping[str, Any], WeeklyRoutineUpdate],
    ) -> WeeklyRoutine:
        """Partial update of this week's routine; only supplied fields are written."""
        user_id = self._require_user(user_id)
        update = changes if isinstance(changes, WeeklyRoutineUpdate) else build_weekly_update(changes, self.catalog)
        if update.is_empty():
            raise InvalidUpdateError("No updates provided")

        week_start, _ = week_range(self.clock())
        updated = self.store.update_weekly(user_id, week_start, update)
        if updated is None:
            raise RoutineNotFoundError(user_id, week_start)

        self._log(
            "Weekly routine updated user_id=%s week_start=%s fields=%s",
            user_id,
            week_start,
            ",".join(update.changed_fields()),
            func="update_weekly_routine",
            next_step="Return updated routine",
        )
        return updated

    def auto_rebalance(self, user_id: Optional[str], rng: Optional[random.Random] = None) -> WeeklyRoutine:
        """Swap this week's recommended days for one of the fixed day sets."""
        user_id = self._require_user(user_id)
        week_start, _ = week_range(self.clock())
        days = auto_rebalance_days(user_id, week_start, rng=rng, catalog=self.catalog)
        return self.update_weekly_routine(user_id, WeeklyRoutineUpdate(recommended_days=days))

    def check_in(self, user_id: Optional[str], at: Optional[datetime] = None) -> Tuple[WeeklyRoutine, WeeklyProgress]:
        routine = self.ensure_weekly_routine(user_id)
        progress = self.tracker.record_check_in(routine, at)
        return routine, progress

    def weekly_progress(self, user_id: Optional[str]) -> WeeklyProgress:
        routine = self.ensure_weekly_routine(user_id)
        return self.tracker.get_progress(routine)
