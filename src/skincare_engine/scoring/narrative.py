# src/skincare_engine/scoring/narrative.py
from __future__ import annotations

"""
narrative.py

Purpose:
    Fixed-template summary / highlight / tips for a recommendation payload.
    Every sentence comes from NarrativeTexts or a NeedDefinition, keyed by a
    photo fact, an answer or a prioritized need; nothing is generated.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from skincare_engine.scoring.need_scorer import PrioritizedNeed
from skincare_engine.signals.aggregator import AnalysisContext
from skincare_engine.taxonomy.need_catalog import ANSWER_YES, NeedCatalog, default_catalog


@dataclass(frozen=True)
class Narrative:
    summary: str
    highlight: str
    tips: Tuple[str, ...]


def needs_sun_safety_tip(context: AnalysisContext) -> bool:
    return context.answer("daily_sunscreen") != ANSWER_YES


def compose_summary(context: AnalysisContext, catalog: NeedCatalog) -> str:
    texts = catalog.narrative
    parts: List[str] = [
        texts.baseline_present if context.has_baseline_photo else texts.baseline_missing,
        texts.closeup_present if context.has_closeup_photo else texts.closeup_missing,
    ]
    if context.answer("recent_skin_trouble") == ANSWER_YES:
        parts.append(texts.recent_trouble)
    return " ".join(parts)


def compose_highlight(needs: Sequence[PrioritizedNeed], catalog: NeedCatalog) -> str:
    if not needs:
        return catalog.narrative.highlight_fallback
    return catalog.narrative.highlight_template.format(label=needs[0].label)


def compose_tips(context: AnalysisContext, needs: Sequence[PrioritizedNeed], catalog: NeedCatalog) -> List[str]:
    """One tip per need; the sun safety tip, when it applies, keeps the last slot."""
    limit = catalog.narrative.max_tips
    if limit <= 0:
        return []
    safety = needs_sun_safety_tip(context)
    need_slots = limit - 1 if safety else limit
    tips = [catalog.need(n.id).tip for n in needs][:need_slots]
    if safety:
        tips.append(catalog.narrative.sun_safety_tip)
    return tips


def compose_narrative(
    context: AnalysisContext,
    needs: Sequence[PrioritizedNeed],
    catalog: Optional[NeedCatalog] = None,
) -> Narrative:
    catalog = catalog or default_catalog()
    return Narrative(
        summary=compose_summary(context, catalog),
        highlight=compose_highlight(needs, catalog),
        tips=tuple(compose_tips(context, needs, catalog)),
    )
