# src/skincare_engine/scoring/need_scorer.py
from __future__ import annotations

"""
need_scorer.py

Purpose:
    Turn the aggregated need scores into:
      - prioritized needs: top-N (default 3) by score, ties broken by the
        order the need was first bumped,
      - report items: one per report dimension, with a status computed from
        the full score map (not from the truncated top-N).

Thresholds (catalog defaults):
    level  : score >= 2 -> "high", else "medium"
    status : score >= 2 -> "caution", score >= 1 -> "neutral", else "good"
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from skincare_engine.logging_utils import get_logger
from skincare_engine.signals.aggregator import AnalysisContext
from skincare_engine.signals.base import ScoreEntry
from skincare_engine.taxonomy.need_catalog import NeedCatalog, ReportDimension, default_catalog

logger = get_logger("need_scorer")

MODULE_PURPOSE = "Rank need scores into prioritized needs and report items"

STATUS_GOOD = "good"
STATUS_NEUTRAL = "neutral"
STATUS_CAUTION = "caution"


@dataclass(frozen=True)
class PrioritizedNeed:
    id: str
    label: str
    level: str
    description: str
    reasons: Tuple[str, ...]
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "level": self.level,
            "description": self.description,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class ReportItem:
    id: str
    title: str
    description: str
    comparison: str
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "comparison": self.comparison,
            "status": self.status,
        }


def level_for(score: float, catalog: NeedCatalog) -> str:
    return "high" if score >= catalog.high_level_threshold else "medium"


def status_for(score: float, catalog: NeedCatalog) -> str:
    if score >= catalog.caution_threshold:
        return STATUS_CAUTION
    if score >= catalog.neutral_threshold:
        return STATUS_NEUTRAL
    return STATUS_GOOD


def rank_entries(context: AnalysisContext, catalog: NeedCatalog) -> List[ScoreEntry]:
    """Score-descending; the secondary key is registration order."""
    ordered = list(context.scores.values())
    keyed = sorted(enumerate(ordered), key=lambda pair: (-pair[1].score, pair[0]))
    ranked = [entry for _, entry in keyed]
    if not ranked:
        ranked.append(ScoreEntry(tag=catalog.default_need, score=catalog.default_need_score))
    return ranked


def prioritize_needs(context: AnalysisContext, catalog: Optional[NeedCatalog] = None) -> List[PrioritizedNeed]:
    catalog = catalog or default_catalog()
    prioritized: List[PrioritizedNeed] = []
    for entry in rank_entries(context, catalog)[: catalog.top_n]:
        definition = catalog.need(entry.tag)
        prioritized.append(
            PrioritizedNeed(
                id=entry.tag,
                label=definition.label,
                level=level_for(entry.score, catalog),
                description=definition.description,
                reasons=tuple(entry.reasons),
                score=entry.score,
            )
        )

    logger.info(
        "Prioritized needs: %s",
        ", ".join(f"{n.id}={n.score:g}" for n in prioritized),
        extra={
            "invoking_func": "prioritize_needs",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Compose narrative and pick recommendations",
            "resolution": "",
        },
    )
    return prioritized


def dimension_score(context: AnalysisContext, dimension: ReportDimension) -> float:
    return sum(context.score_for(tag) for tag in dimension.tags)


def build_report_items(context: AnalysisContext, catalog: Optional[NeedCatalog] = None) -> List[ReportItem]:
    catalog = catalog or default_catalog()
    items: List[ReportItem] = []
    for dimension in catalog.report_dimensions:
        score = dimension_score(context, dimension)
        attention = score >= catalog.neutral_threshold
        items.append(
            ReportItem(
                id=dimension.id,
                title=dimension.title,
                description=dimension.attention_description if attention else dimension.stable_description,
                comparison=dimension.attention_comparison if attention else dimension.stable_comparison,
                status=status_for(score, catalog),
            )
        )
    return items
