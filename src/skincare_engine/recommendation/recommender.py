"""
recommender.py

A rule-based selector that attributes catalog items to prioritized skin needs.

Design goals:
  - Deterministic and explainable: every recommendation carries the reason
    recorded when its need was scored.
  - Storage-agnostic: the pure functions take plain records; SkinRecommender
    only adds the session lookup on top of a store.

Scoring (per item):
  - normalize category + effect tags (lowercase, non-alnum -> "_")
  - for each prioritized need whose synonyms intersect the effect tags:
        candidate = (len(needs) - rank) * 1.5 + (1.2 if category matches)
    keep the best need only; an item is never split across needs
  - +0.3 when the item lists at least one key ingredient
  - items matching no need are dropped

The list is not capped; paging is the caller's concern.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from skincare_engine.errors import MissingSessionError
from skincare_engine.logging_utils import get_logger
from skincare_engine.scoring.narrative import compose_narrative
from skincare_engine.scoring.need_scorer import (
    PrioritizedNeed,
    ReportItem,
    build_report_items,
    prioritize_needs,
)
from skincare_engine.signals.aggregator import AnalysisContext, derive_context
from skincare_engine.signals.base import AnswerSignal, CatalogItem, PhotoSignal
from skincare_engine.signals.cleaning import normalize_tag
from skincare_engine.taxonomy.need_catalog import NeedCatalog, default_catalog

logger = get_logger(__name__)

MODULE_PURPOSE = "Match catalog items to prioritized skin needs"


@dataclass(frozen=True)
class Recommendation:
    id: str
    name: str
    brand: Optional[str]
    category: Optional[str]
    reason: str
    focus: Tuple[str, ...]
    key_ingredients: Tuple[str, ...]
    note: Optional[str]
    image_url: Optional[str]
    need: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "reason": self.reason,
            "focus": list(self.focus),
            "keyIngredients": list(self.key_ingredients),
            "note": self.note,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class RecommendationPayload:
    session_label: str
    summary: str
    highlight: str
    items: Tuple[ReportItem, ...]
    tips: Tuple[str, ...]
    needs: Tuple[PrioritizedNeed, ...]
    recommendations: Tuple[Recommendation, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionLabel": self.session_label,
            "summary": self.summary,
            "highlight": self.highlight,
            "items": [i.to_dict() for i in self.items],
            "tips": list(self.tips),
            "needs": [n.to_dict() for n in self.needs],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


# ------------------------------------------------------------------
# Scoring + explanations
# ------------------------------------------------------------------
def build_reason(tag: str, context: AnalysisContext, catalog: NeedCatalog) -> str:
    """First reason recorded for the need, else the need's generic sentence."""
    entry = context.scores.get(tag)
    if entry is not None and entry.reasons:
        return entry.reasons[0]
    definition = catalog.find(tag)
    return definition.fallback_reason if definition else catalog.generic_reason


def _category_matches(category: str, preferred: Sequence[str]) -> bool:
    # substring match: "hydrating_serum" counts as a serum
    return any(cat and cat in category for cat in preferred)


def score_item(
    item: CatalogItem,
    needs: Sequence[PrioritizedNeed],
    catalog: NeedCatalog,
) -> Optional[Tuple[str, float]]:
    """(attributed need tag, final score) or None when no need matches."""
    category = normalize_tag(item.category or "")
    effect_tags = {normalize_tag(t) for t in item.effect_tags}
    effect_tags.discard("")

    best_tag: Optional[str] = None
    best_score = 0.0
    for rank, need in enumerate(needs):
        definition = catalog.need(need.id)
        synonyms = {normalize_tag(s) for s in definition.synonyms}
        if not effect_tags & synonyms:
            continue
        bonus = catalog.category_bonus if _category_matches(category, definition.categories) else 0.0
        candidate = (len(needs) - rank) * catalog.priority_weight + bonus
        if candidate > best_score:
            best_score = candidate
            best_tag = need.id

    if best_tag is None:
        return None
    if item.key_ingredients:
        best_score += catalog.ingredient_bonus
    return best_tag, best_score


def pick_recommendations(
    items: Sequence[CatalogItem],
    needs: Sequence[PrioritizedNeed],
    context: AnalysisContext,
    catalog: Optional[NeedCatalog] = None,
) -> List[Recommendation]:
    catalog = catalog or default_catalog()
    if not items or not needs:
        return []

    scored: List[Tuple[CatalogItem, str, float]] = []
    for item in items:
        result = score_item(item, needs, catalog)
        if result is None:
            continue
        tag, score = result
        scored.append((item, tag, score))

    # stable: equal scores keep catalog order
    scored.sort(key=lambda x: x[2], reverse=True)

    out: List[Recommendation] = []
    seen = set()
    for item, tag, score in scored:
        if item.id in seen:
            continue
        seen.add(item.id)
        out.append(
            Recommendation(
                id=item.id,
                name=item.name or item.title or catalog.default_item_name,
                brand=item.brand,
                category=item.category,
                reason=build_reason(tag, context, catalog),
                focus=(catalog.need(tag).label,),
                key_ingredients=tuple(item.key_ingredients[: catalog.max_key_ingredients]),
                note=item.note,
                image_url=item.image_url,
                need=tag,
                score=score,
            )
        )
    return out


def build_recommendation_payload(
    session_label: str,
    photos: Sequence[PhotoSignal],
    answers: Sequence[AnswerSignal],
    items: Sequence[CatalogItem],
    catalog: Optional[NeedCatalog] = None,
) -> RecommendationPayload:
    """Signals + catalog -> the full payload. Pure; same input, same output."""
    catalog = catalog or default_catalog()
    context = derive_context(photos, answers, catalog)
    needs = prioritize_needs(context, catalog)
    report_items = build_report_items(context, catalog)
    narrative = compose_narrative(context, needs, catalog)
    recommendations = pick_recommendations(items, needs, context, catalog)

    logger.info(
        "Recommendation payload built session=%s needs=%d recommendations=%d of %d items",
        session_label,
        len(needs),
        len(recommendations),
        len(items),
        extra={
            "invoking_func": "build_recommendation_payload",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Return payload to caller",
            "resolution": "",
        },
    )

    return RecommendationPayload(
        session_label=session_label,
        summary=narrative.summary,
        highlight=narrative.highlight,
        items=tuple(report_items),
        tips=narrative.tips,
        needs=tuple(needs),
        recommendations=tuple(recommendations),
    )


@dataclass(frozen=True)
class SessionBundle:
    """Everything loaded for one analysis session."""

    session_id: str
    user_id: Optional[str]
    photos: Tuple[PhotoSignal, ...]
    answers: Tuple[AnswerSignal, ...]
    payload: RecommendationPayload


class SkinRecommender:
    def __init__(self, store: Any, catalog: Optional[NeedCatalog] = None, catalog_limit: int = 80) -> None:
        self.store = store
        self.catalog = catalog or default_catalog()
        self.catalog_limit = catalog_limit

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def recommend_for_session(self, session_id: str) -> RecommendationPayload:
        """Payload for a known session; raises MissingSessionError otherwise."""
        session = self.store.get_session(session_id)
        if session is None:
            raise MissingSessionError(session_id=session_id)
        return self._bundle(session).payload

    def load_latest_for_user(self, user_id: str) -> SessionBundle:
        """Bundle for the user's most recent session (the routine layer's input)."""
        session = self.store.get_latest_session(user_id)
        if session is None:
            raise MissingSessionError(user_id=user_id)
        return self._bundle(session)

    # ------------------------------------------------------------------
    # Data fetch helpers
    # ------------------------------------------------------------------
    def _bundle(self, session: Dict[str, Any]) -> SessionBundle:
        session_id = str(session["id"])
        user_id = session.get("user_id")

        photos = tuple(self.store.fetch_photos(session_id))
        answers = list(self.store.fetch_session_answers(session_id))
        if user_id:
            answers.extend(self.store.fetch_profile_answers(user_id))
        items = self.store.fetch_catalog(self.catalog_limit)

        payload = build_recommendation_payload(session_id, photos, answers, items, self.catalog)
        return SessionBundle(
            session_id=session_id,
            user_id=user_id,
            photos=photos,
            answers=tuple(answers),
            payload=payload,
        )
