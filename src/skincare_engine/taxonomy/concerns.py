# src/skincare_engine/taxonomy/concerns.py
from __future__ import annotations

"""
concerns.py

Purpose:
    Profile-declared skin concerns (chosen by the user at onboarding) and the
    lookups the routine layer needs from them:
      - which concern is "primary" when several are declared,
      - a friendly label for goals / habits,
      - the weekly focus topic it maps to.

    Focus topics are a small closed set shared with the narrative envelope:
        hydration | elasticity | wrinkle | radiance | trouble
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

FOCUS_TOPICS: Tuple[str, ...] = ("hydration", "elasticity", "wrinkle", "radiance", "trouble")
DEFAULT_FOCUS_TOPIC = "hydration"

# Earlier entries win when several concerns are declared.
CONCERN_PRIORITY: Tuple[str, ...] = (
    "wrinkle",
    "elasticity",
    "sagging",
    "dryness",
    "inner_dryness",
    "texture",
    "dullness",
    "radiance",
    "spots",
    "pigmentation",
    "redness",
    "sensitivity",
    "trouble",
    "sebum",
    "blackhead",
)

CONCERN_LABELS: Mapping[str, str] = MappingProxyType({
    "wrinkle": "주름",
    "elasticity": "탄력 저하",
    "sagging": "처짐(리프팅)",
    "dryness": "건조함",
    "inner_dryness": "속건조(당김)",
    "pores": "모공",
    "texture": "피부결",
    "dullness": "칙칙함",
    "radiance": "광채 부족",
    "spots": "기미/잡티",
    "pigmentation": "색소침착",
    "redness": "홍조",
    "sensitivity": "민감/자극",
    "trouble": "트러블",
    "sebum": "피지/번들거림",
    "blackhead": "블랙헤드/화이트헤드",
    "eye_wrinkle": "아이 주름",
    "dark_circle": "다크서클",
    "flakiness": "각질/들뜸",
    "makeup_caking": "메이크업 들뜸",
    "unknown": "잘 모르겠어요",
})

CONCERN_FOCUS: Mapping[str, str] = MappingProxyType({
    "wrinkle": "wrinkle",
    "eye_wrinkle": "wrinkle",
    "elasticity": "elasticity",
    "sagging": "elasticity",
    "dryness": "hydration",
    "inner_dryness": "hydration",
    "flakiness": "hydration",
    "dullness": "radiance",
    "radiance": "radiance",
    "pigmentation": "radiance",
    "spots": "radiance",
    "trouble": "trouble",
    "sebum": "trouble",
    "blackhead": "trouble",
})


@dataclass(frozen=True)
class ConcernTable:
    priority: Tuple[str, ...] = CONCERN_PRIORITY
    labels: Mapping[str, str] = field(default_factory=lambda: CONCERN_LABELS)
    focus: Mapping[str, str] = field(default_factory=lambda: CONCERN_FOCUS)
    default_topic: str = DEFAULT_FOCUS_TOPIC

    def _rank(self, concern: str) -> int:
        try:
            return self.priority.index(concern)
        except ValueError:
            return len(self.priority) + 1

    def pick_primary(self, concerns: Optional[Sequence[str]]) -> Optional[str]:
        """Highest-priority declared concern; unknown concerns keep their order at the back."""
        if not concerns:
            return None
        return sorted(concerns, key=self._rank)[0]

    def label_for(self, concern: Optional[str]) -> Optional[str]:
        if not concern:
            return None
        return self.labels.get(concern)

    def focus_for(self, concern: Optional[str]) -> str:
        if not concern:
            return self.default_topic
        return self.focus.get(concern, self.default_topic)
