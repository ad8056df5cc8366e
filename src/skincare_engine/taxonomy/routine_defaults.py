# src/skincare_engine/taxonomy/routine_defaults.py
from __future__ import annotations

"""
routine_defaults.py

Purpose:
    Every silent default the routine layer falls back to, kept next to the
    need catalog so scoring rules and defaults are edited in one place.

    - day patterns (the first one is the default for new weekly routines),
    - optional step toggles,
    - focus topic labels and the need-label -> topic lookup,
    - fallback actions (exactly two per focus topic),
    - monthly goal / summary / caution / habit fallbacks,
    - weekly reason / conclusion / warning / base-routine fallbacks.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from skincare_engine.routines.schema import DEFAULT_INTENSITY, RoutineAction, RoutineStep

DAY_ORDER: Tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

DAY_SETS: Tuple[Tuple[str, ...], ...] = (
    ("Mon", "Wed", "Fri"),
    ("Tue", "Thu", "Sat"),
    ("Wed", "Fri", "Sun"),
)

DEFAULT_OPTIONAL_STEPS: Tuple[RoutineStep, ...] = (
    RoutineStep(key="eye", label="아이크림", enabled=True),
    RoutineStep(key="mask", label="시트팩", enabled=False),
    RoutineStep(key="peel", label="부드러운 각질케어", enabled=False),
)

FOCUS_LABELS: Mapping[str, str] = MappingProxyType({
    "hydration": "건조",
    "elasticity": "탄력",
    "wrinkle": "주름",
    "radiance": "광채",
    "trouble": "트러블",
})

# Need label -> focus topic (used when neither narrative nor profile decides).
# Besides the exact topic labels, 진정 (soothing) maps to trouble and 톤 개선
# (tone) maps to radiance; any other label falls back to default_topic.
LABEL_TOPICS: Mapping[str, str] = MappingProxyType({
    "탄력": "elasticity",
    "주름": "wrinkle",
    "광채": "radiance",
    "톤 개선": "radiance",
    "트러블": "trouble",
    "진정": "trouble",
})

FALLBACK_ACTIONS: Mapping[str, Tuple[RoutineAction, ...]] = MappingProxyType({
    "elasticity": (
        RoutineAction("턱선 마사지", "저녁 루틴 후 턱선을 10초씩 부드럽게 눌러 주세요."),
        RoutineAction("리프팅 세럼 덧바르기", "볼과 턱에 한 번 더 겹쳐 발라 탄력을 유지하세요."),
    ),
    "wrinkle": (
        RoutineAction("아이존 패치", "화장 전 10분 붙였다가 떼고 가볍게 눌러주세요."),
        RoutineAction("잠들기 전 보습막", "아이크림을 살짝 도톰하게 얹어 건조를 막아 주세요."),
    ),
    "radiance": (
        RoutineAction("선크림 덧바르기", "외출 중 2~3시간 간격으로 선크림을 덧발라 톤 손실을 막아 주세요."),
        RoutineAction("광채 세럼 레이어링", "아침 루틴에 광채 세럼을 한 번 더 얹어 주세요."),
    ),
    "trouble": (
        RoutineAction("진정 팩", "트러블 부위에 5분 정도 얹어 열감을 내립니다."),
        RoutineAction("순한 세안", "욕심내지 말고 거품을 짧게 머물게 하세요."),
    ),
    "hydration": (
        RoutineAction("슬리핑 마스크", "주 3회, 저녁에 도톰하게 올리고 그대로 주무세요."),
        RoutineAction("미온수 스팀", "볼과 턱을 3분 정도 덮어 순환을 도와주세요."),
    ),
})


@dataclass(frozen=True)
class RoutineDefaults:
    day_order: Tuple[str, ...] = DAY_ORDER
    day_sets: Tuple[Tuple[str, ...], ...] = DAY_SETS
    intensity: str = DEFAULT_INTENSITY
    optional_steps: Tuple[RoutineStep, ...] = DEFAULT_OPTIONAL_STEPS
    focus_labels: Mapping[str, str] = field(default_factory=lambda: FOCUS_LABELS)
    label_topics: Mapping[str, str] = field(default_factory=lambda: LABEL_TOPICS)
    fallback_actions: Mapping[str, Tuple[RoutineAction, ...]] = field(default_factory=lambda: FALLBACK_ACTIONS)
    default_topic: str = "hydration"
    min_target_days: int = 3

    # Monthly
    goal_template: str = "{label} 집중하기"
    default_goal: str = "수분 밀도 유지"
    summary_fallback: Tuple[str, ...] = (
        "아침: 미온수 세안 → 수분 토너 → 탄력 세럼 → 선크림",
        "저녁: 저자극 세안 → 장벽 앰플 → 영양 크림",
    )
    caution_fallback: str = "피부가 예민하면 하루 정도 쉬어가도 충분해요."
    habit_fallback: Tuple[str, ...] = (
        "주 2회 미지근한 스팀타월로 얼굴을 감싸 주세요.",
        "잠들기 전 미온수 한 잔으로 몸을 편안하게 해 주세요.",
    )
    concern_habit_template: str = "{label} 완화를 위해 주 3회 루틴만 지켜도 충분합니다."
    max_habits: int = 3
    max_summary_lines: int = 3

    # Weekly
    concern_reason_template: str = "{label} 완화를 위해 이번 주 루틴 강도를 조정했어요."
    default_focus_reason: str = "이번 주는 느슨해진 루틴을 다시 붙잡는 데 집중해요."
    default_conclusion: str = "주 3회만 지켜도 충분합니다. 하루 정도는 쉬어가도 괜찮아요."
    default_warnings: Tuple[str, ...] = ("피부가 예민하게 느껴지는 날은 하루 쉬어도 괜찮아요.",)
    base_routine_fallback: Tuple[str, ...] = (
        "클렌징: 미온수와 순한 클렌저로 가볍게",
        "수분 충전: 토너 패드 후 베이스 세럼",
        "탄력케어: 리프팅 에센스 2회 레이어링",
        "마무리: 장벽 크림 + 아이크림",
    )
    max_base_routine: int = 4

    @property
    def default_days(self) -> Tuple[str, ...]:
        return self.day_sets[0]

    def focus_label(self, topic: Optional[str]) -> str:
        key = (topic or "").lower()
        return self.focus_labels.get(key, self.focus_labels[self.default_topic])

    def topic_for_label(self, label: Optional[str]) -> str:
        return self.label_topics.get(label or "", self.default_topic)

    def actions_for(self, topic: Optional[str]) -> Tuple[RoutineAction, ...]:
        key = (topic or "").lower()
        return self.fallback_actions.get(key, self.fallback_actions[self.default_topic])
