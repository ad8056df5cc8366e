# signals/base.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from skincare_engine.signals.cleaning import to_list

SCOPE_SESSION = "session"
SCOPE_PROFILE = "profile"


@dataclass(frozen=True)
# One captured photo's metadata (the image itself never reaches the engine)
class PhotoSignal:
    shot_type: Optional[str] = None
    focus_area: Optional[str] = None
    captured_at: Optional[str] = None
    id: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PhotoSignal":
        return cls(
            shot_type=row.get("shot_type"),
            focus_area=row.get("focus_area"),
            captured_at=row.get("created_at"),
            id=row.get("id"),
            image_url=row.get("image_url"),
        )


@dataclass(frozen=True)
# One yes/no answer; the raw answer is kept, validation happens in the aggregator
class AnswerSignal:
    question_key: str
    answer: Optional[str]
    scope: str = SCOPE_SESSION
    answered_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any], scope: str = SCOPE_SESSION) -> "AnswerSignal":
        return cls(
            question_key=str(row.get("question_key") or ""),
            answer=row.get("answer"),
            scope=scope,
            answered_at=row.get("updated_at") or row.get("created_at"),
        )


@dataclass(frozen=True)
class CatalogItem:
    id: str
    name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    effect_tags: Tuple[str, ...] = ()
    key_ingredients: Tuple[str, ...] = ()
    note: Optional[str] = None
    title: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CatalogItem":
        return cls(
            id=str(row.get("id")),
            name=row.get("name"),
            brand=row.get("brand"),
            category=row.get("category"),
            effect_tags=tuple(to_list(row.get("effect_tags"))),
            key_ingredients=tuple(to_list(row.get("key_ingredients"))),
            note=row.get("note"),
            title=row.get("title"),
            image_url=row.get("image_url"),
        )


@dataclass(frozen=True)
class ProfileDetails:
    gender: Optional[str] = None
    age_range: Optional[str] = None
    birth_year: Optional[int] = None
    concerns: Tuple[str, ...] = ()
    completed_at: Optional[str] = None


@dataclass
# Transient per-request accumulator for one need
class ScoreEntry:
    tag: str
    score: float = 0.0
    reasons: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------
# Profile metadata parsing (lenient: unknown shapes -> empty details)
# ---------------------------------------------------------------------
_GENDER_ALIASES = {
    "female": "female",
    "여성": "female",
    "male": "male",
    "남성": "male",
    "unspecified": "unspecified",
    "none": "unspecified",
    "선택하지 않음": "unspecified",
}


def _clean_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _clean_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_profile_details(metadata: Any) -> ProfileDetails:
    if not isinstance(metadata, dict):
        return ProfileDetails()

    nested = metadata.get("details") or metadata.get("profileDetails")
    source = nested if isinstance(nested, dict) else metadata

    gender_raw = _clean_str(source.get("gender"))
    gender = _GENDER_ALIASES.get(gender_raw) if gender_raw else None

    concerns_raw = source.get("concerns") or source.get("skinConcerns") or source.get("skin_concerns")
    concerns: Tuple[str, ...] = ()
    if isinstance(concerns_raw, list):
        concerns = tuple(c for c in (_clean_str(v) for v in concerns_raw) if c)

    return ProfileDetails(
        gender=gender,
        age_range=_clean_str(source.get("ageRange") or source.get("age_range")),
        birth_year=_clean_int(source.get("birthYear") or source.get("birth_year")),
        concerns=concerns,
        completed_at=_clean_str(source.get("completedAt") or source.get("completed_at")),
    )
