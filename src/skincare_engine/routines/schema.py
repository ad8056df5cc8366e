# src/skincare_engine/routines/schema.py
from __future__ import annotations

"""
schema.py

Purpose:
    Immutable records for the routine layer:
      - MonthlyRoutine / WeeklyRoutine (one per user per month / ISO week),
      - RoutineStep / RoutineAction (weekly building blocks),
      - NarrativeEnvelope (optional richer report input),
      - WeeklyProgress (derived from the check-in log).

    Storage rows are snake_case dicts; to_row() / from_row() convert between
    the two. from_row() is lenient: bad optional data falls back to defaults
    instead of raising.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

INTENSITIES: Tuple[str, ...] = ("gentle", "standard", "focus")
DEFAULT_INTENSITY = "standard"


@dataclass(frozen=True)
class RoutineStep:
    key: str
    label: str
    enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "label": self.label, "enabled": self.enabled}


@dataclass(frozen=True)
class RoutineAction:
    title: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "description": self.description}


@dataclass(frozen=True)
class NarrativeFocus:
    topic: str
    reason: str = ""


@dataclass(frozen=True)
class NarrativeEnvelope:
    """Richer narrative (e.g. a generated report); every field is optional."""

    focus: Optional[NarrativeFocus] = None
    one_liner: Optional[str] = None
    actions: Tuple[RoutineAction, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WeeklyProgress:
    completed: int
    target: int
    days_checked: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed": self.completed,
            "target": self.target,
            "daysChecked": list(self.days_checked),
        }


# ----------------------------------------------------------------------
# Lenient readers for stored JSON columns
# ----------------------------------------------------------------------
def to_string_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    return []


def to_action_list(value: Any) -> List[RoutineAction]:
    if not isinstance(value, (list, tuple)):
        return []
    out: List[RoutineAction] = []
    for entry in value:
        if isinstance(entry, RoutineAction):
            out.append(entry)
            continue
        if not isinstance(entry, dict):
            continue
        title = str(entry.get("title") or "").strip()
        description = str(entry.get("description") or "").strip()
        if title and description:
            out.append(RoutineAction(title=title, description=description))
    return out


def to_step_list(value: Any, default: Sequence[RoutineStep]) -> List[RoutineStep]:
    if not isinstance(value, (list, tuple)):
        return list(default)
    out: List[RoutineStep] = []
    for entry in value:
        if isinstance(entry, RoutineStep):
            out.append(entry)
            continue
        if not isinstance(entry, dict):
            continue
        key = str(entry.get("key") or "").strip()
        label = str(entry.get("label") or "").strip()
        if key and label:
            out.append(RoutineStep(key=key, label=label, enabled=bool(entry.get("enabled"))))
    return out


def normalize_intensity(value: Optional[str]) -> str:
    lowered = (value or "").strip().lower()
    return lowered if lowered in INTENSITIES else DEFAULT_INTENSITY


# ----------------------------------------------------------------------
# Routine records
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MonthlyRoutine:
    id: Optional[str]
    user_id: str
    period_key: str                 # first-of-month date, e.g. "2024-05-01"
    goal: str
    summary: Tuple[str, ...]
    cautions: Optional[str]
    habits: Tuple[str, ...]
    generated_at: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "user_id": self.user_id,
            "period_month": self.period_key,
            "goal": self.goal,
            "summary": list(self.summary),
            "cautions": self.cautions,
            "habits": list(self.habits),
        }
        if self.id is not None:
            row["id"] = self.id
        if self.generated_at is not None:
            row["generated_at"] = self.generated_at
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MonthlyRoutine":
        return cls(
            id=row.get("id"),
            user_id=str(row.get("user_id") or ""),
            period_key=str(row.get("period_month") or ""),
            goal=str(row.get("goal") or ""),
            summary=tuple(to_string_list(row.get("summary"))),
            cautions=row.get("cautions"),
            habits=tuple(to_string_list(row.get("habits"))),
            generated_at=row.get("generated_at"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "periodMonth": self.period_key,
            "goal": self.goal,
            "summary": list(self.summary),
            "cautions": self.cautions,
            "habits": list(self.habits),
            "generatedAt": self.generated_at,
        }


@dataclass(frozen=True)
class WeeklyRoutine:
    id: Optional[str]
    user_id: str
    week_start: str
    week_end: str
    focus_topic: str
    focus: str                       # display label of focus_topic
    focus_reason: str
    conclusion: str
    recommended_days: Tuple[str, ...]
    intensity: str
    optional_steps: Tuple[RoutineStep, ...]
    base_routine: Tuple[str, ...]
    actions: Tuple[RoutineAction, ...]
    warnings: Tuple[str, ...]
    session_id: Optional[str] = None
    generated_at: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "user_id": self.user_id,
            "session_id": self.session_id,
            "week_start": self.week_start,
            "week_end": self.week_end,
            "focus_topic": self.focus_topic,
            "focus": self.focus,
            "focus_reason": self.focus_reason,
            "conclusion": self.conclusion,
            "recommended_days": list(self.recommended_days),
            "intensity": self.intensity,
            "optional_steps": [s.to_dict() for s in self.optional_steps],
            "base_routine": list(self.base_routine),
            "actions": [a.to_dict() for a in self.actions],
            "warnings": list(self.warnings),
        }
        if self.id is not None:
            row["id"] = self.id
        if self.generated_at is not None:
            row["generated_at"] = self.generated_at
        return row

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        *,
        default_days: Sequence[str],
        default_steps: Sequence[RoutineStep],
    ) -> "WeeklyRoutine":
        days = to_string_list(row.get("recommended_days")) or list(default_days)
        return cls(
            id=row.get("id"),
            user_id=str(row.get("user_id") or ""),
            week_start=str(row.get("week_start") or ""),
            week_end=str(row.get("week_end") or ""),
            focus_topic=str(row.get("focus_topic") or ""),
            focus=str(row.get("focus") or ""),
            focus_reason=str(row.get("focus_reason") or ""),
            conclusion=str(row.get("conclusion") or ""),
            recommended_days=tuple(days),
            intensity=normalize_intensity(row.get("intensity")),
            optional_steps=tuple(to_step_list(row.get("optional_steps"), default_steps)),
            base_routine=tuple(to_string_list(row.get("base_routine"))),
            actions=tuple(to_action_list(row.get("actions"))),
            warnings=tuple(to_string_list(row.get("warnings"))),
            session_id=row.get("session_id"),
            generated_at=row.get("generated_at"),
        )

    def progress_target(self, floor: int) -> int:
        """Days to check in this week: the recommended days, never below floor."""
        return max(len(self.recommended_days), floor)

    def to_payload(self, progress: WeeklyProgress) -> Dict[str, Any]:
        return {
            "id": self.id,
            "weekStart": self.week_start,
            "weekEnd": self.week_end,
            "focusTopic": self.focus_topic,
            "focus": self.focus,
            "focusReason": self.focus_reason,
            "conclusion": self.conclusion,
            "recommendedDays": list(self.recommended_days),
            "intensity": self.intensity,
            "optionalSteps": [s.to_dict() for s in self.optional_steps],
            "baseRoutine": list(self.base_routine),
            "actions": [a.to_dict() for a in self.actions],
            "warnings": list(self.warnings),
            "generatedAt": self.generated_at,
            "progress": progress.to_dict(),
        }


@dataclass(frozen=True)
class WeeklyRoutineUpdate:
    """Merge-patch for a weekly routine; None means "leave unchanged"."""

    recommended_days: Optional[Tuple[str, ...]] = None
    intensity: Optional[str] = None
    optional_steps: Optional[Tuple[RoutineStep, ...]] = None

    def is_empty(self) -> bool:
        return self.recommended_days is None and self.intensity is None and self.optional_steps is None

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        if self.recommended_days is not None:
            row["recommended_days"] = list(self.recommended_days)
        if self.intensity is not None:
            row["intensity"] = self.intensity
        if self.optional_steps is not None:
            row["optional_steps"] = [s.to_dict() for s in self.optional_steps]
        return row

    def changed_fields(self) -> List[str]:
        return [name for name in ("recommended_days", "intensity", "optional_steps") if getattr(self, name) is not None]
