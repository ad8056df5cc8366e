# src/skincare_engine/signals/aggregator.py
from __future__ import annotations

"""
aggregator.py

Purpose:
    Reduce raw photo metadata and yes/no answers into an AnalysisContext:
      - booleans / counts describing the captured photos,
      - a question_key -> "O" | "X" lookup,
      - a need tag -> ScoreEntry accumulator filled by the catalog's rules.

Answer merging:
    Profile-scope answers are defaults; a session-scope answer for the same
    question key replaces it regardless of timestamps. Malformed answers are
    dropped before merging, so they never hide a valid profile answer and
    never bump a score.

Pure: the only state touched is the context built here.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from skincare_engine.logging_utils import get_logger
from skincare_engine.signals.base import SCOPE_PROFILE, AnswerSignal, PhotoSignal, ScoreEntry
from skincare_engine.signals.cleaning import normalize_answer
from skincare_engine.taxonomy.need_catalog import (
    FACT_BASELINE_PHOTO,
    FACT_CLOSEUP_PHOTO,
    FACT_PRESENT,
    NeedCatalog,
    default_catalog,
)

logger = get_logger("aggregator")

MODULE_PURPOSE = "Reduce photo metadata and yes/no answers into a scored context"


@dataclass
class AnalysisContext:
    has_baseline_photo: bool
    has_closeup_photo: bool
    photo_count: int
    answers: Dict[str, str] = field(default_factory=dict)
    # Insertion order is registration order; ranking relies on it for ties.
    scores: Dict[str, ScoreEntry] = field(default_factory=dict)

    def answer(self, question_key: str) -> Optional[str]:
        return self.answers.get(question_key)

    def score_for(self, tag: str) -> float:
        entry = self.scores.get(tag)
        return entry.score if entry else 0.0

    def facts(self) -> Dict[str, str]:
        out: Dict[str, str] = dict(self.answers)
        if self.has_baseline_photo:
            out[FACT_BASELINE_PHOTO] = FACT_PRESENT
        if self.has_closeup_photo:
            out[FACT_CLOSEUP_PHOTO] = FACT_PRESENT
        return out


def merge_answers(answers: Iterable[AnswerSignal]) -> Dict[str, str]:
    """Valid answers keyed by question; session scope beats profile scope."""
    profile: Dict[str, str] = {}
    session: Dict[str, str] = {}
    for signal in answers:
        value = normalize_answer(signal.answer)
        if value is None or not signal.question_key:
            logger.debug(
                "Ignoring malformed answer question_key=%r answer=%r",
                signal.question_key,
                signal.answer,
                extra={
                    "invoking_func": "merge_answers",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Continue with remaining answers",
                    "resolution": "malformed_signal_ignored",
                },
            )
            continue
        bucket = profile if signal.scope == SCOPE_PROFILE else session
        bucket[signal.question_key] = value

    merged = dict(profile)
    merged.update(session)
    return merged


def _is_baseline(photo: PhotoSignal, catalog: NeedCatalog) -> bool:
    return (photo.shot_type or "").lower() == catalog.baseline_shot_type


def _is_closeup(photo: PhotoSignal, catalog: NeedCatalog) -> bool:
    # focus_area is only consulted when the shot type is absent
    source = photo.shot_type if photo.shot_type is not None else photo.focus_area
    return catalog.closeup_marker in (source or "").lower()


def bump_need(scores: Dict[str, ScoreEntry], tag: str, weight: float, reason: Optional[str] = None) -> ScoreEntry:
    entry = scores.get(tag)
    if entry is None:
        entry = ScoreEntry(tag=tag)
        scores[tag] = entry
    entry.score += weight
    if reason:
        entry.reasons.append(reason)
    return entry


def apply_rules(context: AnalysisContext, catalog: NeedCatalog) -> List[str]:
    """Apply every firing rule to context.scores; returns the fired signal keys."""
    facts: Mapping[str, str] = context.facts()
    fired: List[str] = []
    for rule in catalog.rules:
        if not rule.fires(facts):
            continue
        fired.append(rule.signal)
        for bump in rule.bumps:
            bump_need(context.scores, bump.tag, bump.weight, bump.reason)
    return fired


def derive_context(
    photos: Sequence[PhotoSignal],
    answers: Iterable[AnswerSignal],
    catalog: Optional[NeedCatalog] = None,
) -> AnalysisContext:
    catalog = catalog or default_catalog()

    context = AnalysisContext(
        has_baseline_photo=any(_is_baseline(p, catalog) for p in photos),
        has_closeup_photo=any(_is_closeup(p, catalog) for p in photos),
        photo_count=len(photos),
        answers=merge_answers(answers),
    )
    fired = apply_rules(context, catalog)

    logger.debug(
        "Context derived photos=%d answers=%d rules_fired=%d scores=%s",
        context.photo_count,
        len(context.answers),
        len(fired),
        {tag: entry.score for tag, entry in context.scores.items()},
        extra={
            "invoking_func": "derive_context",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Rank needs",
            "resolution": "",
        },
    )
    return context
