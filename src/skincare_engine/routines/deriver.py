# src/skincare_engine/routines/deriver.py
from __future__ import annotations

"""
deriver.py

Purpose:
    Build MonthlyRoutine / WeeklyRoutine snapshots from a recommendation
    payload, the user's profile details and (weekly only) an optional
    narrative envelope, plus the weekly merge-patch helpers.

Monthly:
    goal     : profile concern label, else top need label, else default goal
    summary  : "title: description" of the first 3 report items
    cautions : first report item with status "caution", else fallback
    habits   : [concern habit] + first 2 tips, truncated to 3

Weekly:
    focus topic : envelope focus -> profile concern topic -> top need label
    actions     : envelope actions, else 2 fallback actions for the topic
    days / intensity / optional steps start from RoutineDefaults

Everything here is pure except auto_rebalance_days() when a random source
is passed in.
"""

import dataclasses
import hashlib
import random
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from skincare_engine.logging_utils import get_logger
from skincare_engine.recommendation.recommender import RecommendationPayload
from skincare_engine.routines.schema import (
    INTENSITIES,
    MonthlyRoutine,
    NarrativeEnvelope,
    RoutineStep,
    WeeklyRoutine,
    WeeklyRoutineUpdate,
    to_step_list,
)
from skincare_engine.scoring.need_scorer import STATUS_CAUTION
from skincare_engine.signals.base import ProfileDetails
from skincare_engine.taxonomy.need_catalog import NeedCatalog, default_catalog

logger = get_logger("deriver")

MODULE_PURPOSE = "Derive monthly and weekly routines from the recommendation payload"


def _primary_concern(profile: Optional[ProfileDetails], catalog: NeedCatalog) -> Optional[str]:
    if profile is None:
        return None
    return catalog.concerns.pick_primary(profile.concerns)


def _report_lines(payload: Optional[RecommendationPayload], limit: int) -> List[str]:
    if payload is None:
        return []
    return [f"{item.title}: {item.description}" for item in payload.items[:limit]]


# ----------------------------------------------------------------------
# Monthly
# ----------------------------------------------------------------------
def derive_monthly_routine(
    user_id: str,
    period_key: str,
    payload: Optional[RecommendationPayload],
    profile: Optional[ProfileDetails] = None,
    catalog: Optional[NeedCatalog] = None,
) -> MonthlyRoutine:
    """Unsaved monthly snapshot; a missing payload falls back to defaults."""
    catalog = catalog or default_catalog()
    defaults = catalog.routine

    concern_label = catalog.concerns.label_for(_primary_concern(profile, catalog))
    top_need = payload.needs[0] if payload is not None and payload.needs else None

    if concern_label:
        goal = defaults.goal_template.format(label=concern_label)
    elif top_need is not None:
        goal = defaults.goal_template.format(label=top_need.label)
    else:
        goal = defaults.default_goal

    summary = _report_lines(payload, defaults.max_summary_lines) or list(defaults.summary_fallback)

    cautions = defaults.caution_fallback
    if payload is not None:
        flagged = next((item for item in payload.items if item.status == STATUS_CAUTION), None)
        if flagged is not None:
            cautions = flagged.description

    base_habits = list(payload.tips[:2]) if payload is not None and payload.tips else list(defaults.habit_fallback)
    habits = base_habits
    if concern_label:
        habits = [defaults.concern_habit_template.format(label=concern_label), *base_habits]
    habits = habits[: defaults.max_habits]

    return MonthlyRoutine(
        id=None,
        user_id=user_id,
        period_key=period_key,
        goal=goal,
        summary=tuple(summary),
        cautions=cautions,
        habits=tuple(habits),
    )


# ----------------------------------------------------------------------
# Weekly
# ----------------------------------------------------------------------
def resolve_focus_topic(
    payload: RecommendationPayload,
    envelope: Optional[NarrativeEnvelope],
    profile: Optional[ProfileDetails],
    catalog: NeedCatalog,
) -> str:
    if envelope is not None and envelope.focus is not None:
        return envelope.focus.topic
    concern = _primary_concern(profile, catalog)
    if concern:
        return catalog.concerns.focus_for(concern)
    label = payload.needs[0].label if payload.needs else None
    return catalog.routine.topic_for_label(label)


def derive_weekly_routine(
    user_id: str,
    week_start: str,
    week_end: str,
    payload: RecommendationPayload,
    envelope: Optional[NarrativeEnvelope] = None,
    profile: Optional[ProfileDetails] = None,
    catalog: Optional[NeedCatalog] = None,
    session_id: Optional[str] = None,
) -> WeeklyRoutine:
    """Unsaved weekly snapshot for the ISO week [week_start, week_end]."""
    catalog = catalog or default_catalog()
    defaults = catalog.routine

    topic = resolve_focus_topic(payload, envelope, profile, catalog)
    concern_label = catalog.concerns.label_for(_primary_concern(profile, catalog))

    if envelope is not None and envelope.focus is not None and envelope.focus.reason:
        focus_reason = envelope.focus.reason
    elif concern_label:
        focus_reason = defaults.concern_reason_template.format(label=concern_label)
    else:
        focus_reason = defaults.default_focus_reason

    conclusion = (envelope.one_liner if envelope is not None else None) or defaults.default_conclusion
    actions = envelope.actions if envelope is not None and envelope.actions else defaults.actions_for(topic)
    warnings = envelope.warnings if envelope is not None and envelope.warnings else defaults.default_warnings
    base_routine = _report_lines(payload, defaults.max_base_routine) or list(defaults.base_routine_fallback)

    return WeeklyRoutine(
        id=None,
        user_id=user_id,
        week_start=week_start,
        week_end=week_end,
        focus_topic=topic,
        focus=defaults.focus_label(topic),
        focus_reason=focus_reason,
        conclusion=conclusion,
        recommended_days=defaults.default_days,
        intensity=defaults.intensity,
        optional_steps=defaults.optional_steps,
        base_routine=tuple(base_routine),
        actions=tuple(actions),
        warnings=tuple(warnings),
        session_id=session_id,
    )


# ----------------------------------------------------------------------
# Weekly merge-patch
# ----------------------------------------------------------------------
def normalize_days(value: Any, catalog: Optional[NeedCatalog] = None) -> Optional[Tuple[str, ...]]:
    """Known day codes in week order; None when nothing usable was given."""
    catalog = catalog or default_catalog()
    if not isinstance(value, (list, tuple)):
        return None
    order = catalog.routine.day_order
    wanted = {str(day).strip().capitalize() for day in value if day is not None}
    days = tuple(day for day in order if day in wanted)
    return days or None


def build_weekly_update(changes: Mapping[str, Any], catalog: Optional[NeedCatalog] = None) -> WeeklyRoutineUpdate:
    """
    Read a merge-patch from request-style input (camelCase or snake_case).

    Fields with unusable values are left out of the patch instead of
    raising; the caller decides what an empty patch means.
    """
    catalog = catalog or default_catalog()

    raw_days = changes.get("recommendedDays", changes.get("recommended_days"))
    days = normalize_days(raw_days, catalog)

    intensity: Optional[str] = None
    raw_intensity = changes.get("intensity")
    if isinstance(raw_intensity, str) and raw_intensity.strip().lower() in INTENSITIES:
        intensity = raw_intensity.strip().lower()

    steps: Optional[Tuple[RoutineStep, ...]] = None
    raw_steps = changes.get("optionalSteps", changes.get("optional_steps"))
    if isinstance(raw_steps, (list, tuple)):
        parsed = to_step_list(raw_steps, ())
        if parsed:
            steps = tuple(parsed)

    return WeeklyRoutineUpdate(recommended_days=days, intensity=intensity, optional_steps=steps)


def apply_weekly_update(routine: WeeklyRoutine, update: WeeklyRoutineUpdate) -> WeeklyRoutine:
    """New record with only the patched fields replaced."""
    changes = {name: getattr(update, name) for name in update.changed_fields()}
    if not changes:
        return routine
    return dataclasses.replace(routine, **changes)


def auto_rebalance_days(
    user_id: str,
    week_start: str,
    rng: Optional[random.Random] = None,
    catalog: Optional[NeedCatalog] = None,
) -> Tuple[str, ...]:
    """
    Pick one of the fixed day sets.

    Without `rng` the choice is a rotation keyed by (user_id, week_start), so
    the same user gets the same set for a given week.
    """
    catalog = catalog or default_catalog()
    day_sets: Sequence[Tuple[str, ...]] = catalog.routine.day_sets
    if rng is not None:
        picked = rng.choice(list(day_sets))
    else:
        digest = hashlib.sha256(f"{user_id}:{week_start}".encode("utf-8")).hexdigest()
        picked = day_sets[int(digest, 16) % len(day_sets)]

    logger.debug(
        "Rebalanced days user_id=%s week_start=%s days=%s",
        user_id,
        week_start,
        ",".join(picked),
        extra={
            "invoking_func": "auto_rebalance_days",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Persist recommended_days",
            "resolution": "seeded" if rng is None else "random",
        },
    )
    return tuple(picked)
