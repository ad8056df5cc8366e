# src/skincare_engine/taxonomy/need_catalog.py
from __future__ import annotations

"""
need_catalog.py

Purpose:
    The static configuration of the needs engine, exposed as one immutable
    registry object (NeedCatalog):

      - NEED_DEFINITIONS : label / description / synonyms / preferred
                           categories / tip / fallback reason per need tag
      - QUESTIONS        : the yes/no lifestyle questions we score on
      - SIGNAL_RULES     : ordered signal -> weighted need bumps
      - REPORT_DIMENSIONS: the fixed report items and their wording
      - narrative + recommendation constants
      - RoutineDefaults / ConcernTable (see routine_defaults.py, concerns.py)

    Components receive a NeedCatalog instead of importing module globals, so
    tests can build an alternate catalog with dataclasses.replace().

Rule order matters only for tie-breaking: a need registered earlier wins a
score tie when needs are ranked.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from skincare_engine.taxonomy.concerns import ConcernTable
from skincare_engine.taxonomy.routine_defaults import RoutineDefaults

NEED_TAGS: Tuple[str, ...] = (
    "hydration",
    "elasticity",
    "barrier",
    "soothing",
    "radiance",
    "pore_care",
    "sebum_control",
)

ANSWER_YES = "O"
ANSWER_NO = "X"
ANSWER_VALUES: Tuple[str, ...] = (ANSWER_YES, ANSWER_NO)

# Fact keys for photo-derived signals; answer facts use the question key.
FACT_BASELINE_PHOTO = "photo.baseline"
FACT_CLOSEUP_PHOTO = "photo.closeup"
FACT_PRESENT = "present"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class NeedDefinition:
    tag: str
    label: str
    description: str
    synonyms: Tuple[str, ...]
    categories: Tuple[str, ...]
    tip: str
    fallback_reason: str


@dataclass(frozen=True)
class Question:
    key: str
    category: str
    title: str


@dataclass(frozen=True)
class NeedBump:
    tag: str
    weight: float
    reason: str


@dataclass(frozen=True)
class SignalRule:
    """
    Fires when facts[signal] == expected (or != expected with negate=True).

    An unanswered question has no fact, so a negated rule fires for it.
    """

    signal: str
    expected: str
    bumps: Tuple[NeedBump, ...]
    negate: bool = False

    def fires(self, facts: Mapping[str, str]) -> bool:
        hit = facts.get(self.signal) == self.expected
        return not hit if self.negate else hit


@dataclass(frozen=True)
class ReportDimension:
    id: str
    title: str
    tags: Tuple[str, ...]          # scores are summed before thresholding
    attention_description: str
    attention_comparison: str
    stable_description: str
    stable_comparison: str


# ---------------------------------------------------------------------------
# Need definitions
# ---------------------------------------------------------------------------
NEED_DEFINITIONS: Tuple[NeedDefinition, ...] = (
    NeedDefinition(
        tag="hydration",
        label="수분 밀도",
        description="촬영된 볼 피부가 균일하게 보이도록 충분한 보습막을 유지해야 해요.",
        synonyms=("hydration", "moisture", "moisturizing", "water", "dew", "수분", "보습"),
        categories=("toner", "essence", "serum", "ampoule", "cream", "mask"),
        tip="세안 직후 토너와 세럼으로 빠르게 수분을 채운 후 크림으로 잠그면 밀도가 올라갑니다.",
        fallback_reason="볼 피부 결이 건조하게 읽혀 수분 레이어링을 권장합니다.",
    ),
    NeedDefinition(
        tag="elasticity",
        label="탄력",
        description="턱선과 볼 윤곽을 지탱하는 힘을 보완하면 전체 실루엣이 또렷해집니다.",
        synonyms=("elasticity", "firm", "lifting", "tightening", "탄력", "리프팅"),
        categories=("serum", "ampoule", "cream", "mask", "eye"),
        tip="저녁 루틴에 탄력 세럼을 추가하고 귀밑 림프를 부드럽게 마사지해 주세요.",
        fallback_reason="턱선 탄력이 쉽게 흐를 수 있어 리프팅 케어를 제안해요.",
    ),
    NeedDefinition(
        tag="barrier",
        label="장벽 강화",
        description="예민함이 느껴질 때는 장벽을 복구해 변동을 막는 것이 우선입니다.",
        synonyms=("barrier", "repair", "recovery", "장벽", "보호"),
        categories=("cream", "ampoule", "balm"),
        tip="세라마이드나 판테놀 계열 크림으로 보습막을 두껍게 올려 주세요.",
        fallback_reason="예민 신호를 최소화하기 위해 장벽 복구 루틴이 필요합니다.",
    ),
    NeedDefinition(
        tag="soothing",
        label="진정",
        description="열감을 빠르게 내려야 요철과 붉은기 악화를 막을 수 있어요.",
        synonyms=("soothing", "calming", "relief", "진정", "쿨링"),
        categories=("toner", "ampoule", "mask"),
        tip="녹차·시카 계열 앰플을 냉장 보관했다가 열감이 느껴질 때 얹어 주세요.",
        fallback_reason="열감/트러블 응답을 고려해 진정 제품을 추천합니다.",
    ),
    NeedDefinition(
        tag="radiance",
        label="톤 개선",
        description="자외선 관리가 느슨하면 피부가 칙칙해지기 쉬워요.",
        synonyms=("radiance", "brightening", "tone", "glow", "미백", "톤"),
        categories=("toner", "serum", "ampoule", "sunscreen"),
        tip="아침 루틴에 광채 세럼을 넣고, 2~3시간 간격으로 선크림을 덧바르세요.",
        fallback_reason="톤 저하를 늦추기 위해 광채/미백 기능을 우선 연결합니다.",
    ),
    NeedDefinition(
        tag="pore_care",
        label="모공 관리",
        description="메이크업과 피지가 겹치면 모공 윤곽이 쉽게 벌어집니다.",
        synonyms=("pore", "clarify", "clean", "모공", "각질"),
        categories=("toner", "serum", "ampoule", "mask"),
        tip="주 2회 정도 부드러운 각질 제거 후 수분팩으로 진정시켜 주세요.",
        fallback_reason="피지와 메이크업 누적으로 모공이 넓어질 수 있어요.",
    ),
    NeedDefinition(
        tag="sebum_control",
        label="피지 밸런스",
        description="유분이 높게 유지되면 결이 두꺼워지고 광택이 번들거립니다.",
        synonyms=("sebum", "oil", "balance", "유분", "피지", "지성"),
        categories=("toner", "emulsion", "serum", "gel", "mask"),
        tip="과도한 파우더 대신 수분 앰플로 유수분 밸런스를 맞춰 주세요.",
        fallback_reason="유분 밸런스를 맞춰야 결이 균일해질 수 있습니다.",
    ),
)


# ---------------------------------------------------------------------------
# Lifestyle questions (answered O / X)
# ---------------------------------------------------------------------------
QUESTIONS: Tuple[Question, ...] = (
    Question("recent_skin_trouble", "trouble", "최근 2주 안에 붉거나 올라온 트러블이 있었나요?"),
    Question("sensitive_skin", "barrier", "요즘 피부가 쉽게 예민해지나요?"),
    Question("daily_sunscreen", "sun", "자외선 차단제를 매일 발라요?"),
    Question("frequent_makeup", "makeup", "주 4회 이상 메이크업을 하나요?"),
    Question("oiliness_high", "oil", "T존 유분이 하루 중 자주 번들거리나요?"),
    Question("sleep_irregular", "lifestyle", "수면 시간이 6시간 이하로 불규칙한가요?"),
    Question("stress_high", "lifestyle", "최근 스트레스를 자주 느끼나요?"),
    Question("water_intake_low", "habit", "하루 물 섭취가 1리터 이하인가요?"),
    Question("touch_face_often", "habit", "얼굴을 자주 만지는 습관이 있나요?"),
)


# ---------------------------------------------------------------------------
# Signal rules (ordered)
# ---------------------------------------------------------------------------
SIGNAL_RULES: Tuple[SignalRule, ...] = (
    SignalRule(FACT_BASELINE_PHOTO, FACT_PRESENT, negate=True, bumps=(
        NeedBump("elasticity", 1.5, "기준 촬영이 부족해 탄력 지표를 보완할 필요가 있어요."),
    )),
    SignalRule(FACT_CLOSEUP_PHOTO, FACT_PRESENT, negate=True, bumps=(
        NeedBump("hydration", 1.0, "볼 클로즈업 데이터가 부족해 결이 건조하게 읽혔어요."),
    )),
    SignalRule("sensitive_skin", ANSWER_YES, bumps=(
        NeedBump("soothing", 2.0, "예민함을 느낀다고 응답했습니다."),
        NeedBump("barrier", 1.0, "예민 피부는 장벽 복구가 핵심이에요."),
    )),
    SignalRule("recent_skin_trouble", ANSWER_YES, bumps=(
        NeedBump("soothing", 1.5, "최근 트러블이 있다고 답했습니다."),
    )),
    SignalRule("daily_sunscreen", ANSWER_YES, negate=True, bumps=(
        NeedBump("radiance", 2.0, "자외선 차단을 자주 하지 않는다고 답했습니다."),
        NeedBump("elasticity", 0.5, "자외선 누적으로 탄력 저하가 빨라질 수 있어요."),
    )),
    SignalRule("frequent_makeup", ANSWER_YES, bumps=(
        NeedBump("pore_care", 2.0, "메이크업 빈도가 높아 모공 관리가 필요합니다."),
    )),
    SignalRule("oiliness_high", ANSWER_YES, bumps=(
        NeedBump("sebum_control", 2.0, "유분이 많다고 응답했습니다."),
        NeedBump("pore_care", 1.0, "피지 누적으로 모공이 넓어질 수 있어요."),
    )),
    SignalRule("oiliness_high", ANSWER_YES, negate=True, bumps=(
        NeedBump("hydration", 0.5, "유분 걱정이 낮아 수분 레이어링에 집중할 수 있어요."),
    )),
    SignalRule("sleep_irregular", ANSWER_YES, bumps=(
        NeedBump("elasticity", 1.0, "수면 부족은 탄력 회복을 더디게 만들어요."),
        NeedBump("hydration", 0.5, "불규칙한 수면은 수분 순환에도 영향을 줍니다."),
    )),
    SignalRule("stress_high", ANSWER_YES, bumps=(
        NeedBump("barrier", 1.5, "스트레스로 장벽이 불안정해질 수 있어요."),
        NeedBump("soothing", 1.0, "예민함 대비 진정 루틴을 강화해야 해요."),
    )),
    SignalRule("water_intake_low", ANSWER_YES, bumps=(
        NeedBump("hydration", 1.5, "체내 수분이 부족해 결이 거칠어질 수 있어요."),
    )),
    SignalRule("touch_face_often", ANSWER_YES, bumps=(
        NeedBump("soothing", 0.5, "얼굴을 자주 만지면 미세 자극이 누적돼요."),
        NeedBump("pore_care", 0.5, "손의 유분이 모공을 막을 수 있어요."),
    )),
)


# ---------------------------------------------------------------------------
# Report dimensions
# ---------------------------------------------------------------------------
REPORT_DIMENSIONS: Tuple[ReportDimension, ...] = (
    ReportDimension(
        id="hydration",
        title="수분 밀도",
        tags=("hydration",),
        attention_description="볼 데이터와 생활 습관을 기준으로 수분 보강이 필요해요.",
        attention_comparison="동연령 대비 보습 유지력이 다소 낮을 수 있어요.",
        stable_description="현재로선 수분 밸런스가 크게 흐트러지지 않았어요.",
        stable_comparison="평균 대비 안정적인 편이에요.",
    ),
    ReportDimension(
        id="elasticity",
        title="탄력",
        tags=("elasticity",),
        attention_description="턱선과 볼 라인이 쉽게 흐를 수 있어 탄력 세럼을 추천합니다.",
        attention_comparison="전반적인 리프팅 지표가 평균보다 느슨하게 읽혔어요.",
        stable_description="탄력 지표는 큰 하락 없이 유지되고 있어요.",
        stable_comparison="동연령 대비 비슷한 수준이에요.",
    ),
    ReportDimension(
        id="barrier",
        title="장벽",
        tags=("barrier",),
        attention_description="예민 응답으로 인해 장벽 복구 제품을 우선 고려했습니다.",
        attention_comparison="건조/자극 요인에 취약할 수 있어요.",
        stable_description="큰 자극 신호가 없어 기본 보습만으로도 충분해 보여요.",
        stable_comparison="환경 변화에도 비교적 안정적인 편이에요.",
    ),
    ReportDimension(
        id="radiance",
        title="톤 균형",
        tags=("radiance",),
        attention_description="자외선 응답을 기준으로 광채가 쉽게 떨어질 수 있습니다.",
        attention_comparison="차단 루틴을 강화하면 톤 저하를 늦출 수 있어요.",
        stable_description="광채 밸런스가 안정적으로 유지되고 있어요.",
        stable_comparison="평균 대비 특별한 이슈가 없어요.",
    ),
    ReportDimension(
        id="pore",
        title="모공·피지",
        tags=("pore_care", "sebum_control"),
        attention_description="모공/피지 항목이 강조되어 가벼운 각질 케어가 권장됩니다.",
        attention_comparison="메이크업/유분 요인으로 넓어질 수 있으니 주의해 주세요.",
        stable_description="현재 모공은 안정적으로 보입니다.",
        stable_comparison="평균 대비 크게 벌어지지 않았어요.",
    ),
)


@dataclass(frozen=True)
class NarrativeTexts:
    baseline_present: str = "기준 얼굴 촬영으로 전체 윤곽과 톤을 안정적으로 읽을 수 있었어요."
    baseline_missing: str = "기준 촬영이 부족해 톤 해석은 보수적으로 진행됐어요."
    closeup_present: str = "볼 클로즈업 데이터 덕분에 결과 모공 변화를 명확히 확인했습니다."
    closeup_missing: str = "볼 촬영이 아쉬워 결 정보를 주관적인 응답으로 보완했어요."
    recent_trouble: str = "최근 트러블 응답을 반영해 자극 케어 항목을 우선 배치했습니다."
    highlight_template: str = "{label} 케어가 이번 세션의 최우선 과제로 감지됐어요."
    highlight_fallback: str = "큰 이상 징후는 없지만 기본 루틴을 유지해 주세요."
    sun_safety_tip: str = (
        "외출 15분 전에 선크림을 도포하고, 야외 활동 시 2시간 간격으로 덧바르면 톤 손실을 줄일 수 있어요."
    )
    max_tips: int = 3


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class NeedCatalog:
    definitions: Tuple[NeedDefinition, ...] = NEED_DEFINITIONS
    questions: Tuple[Question, ...] = QUESTIONS
    rules: Tuple[SignalRule, ...] = SIGNAL_RULES
    report_dimensions: Tuple[ReportDimension, ...] = REPORT_DIMENSIONS
    narrative: NarrativeTexts = NarrativeTexts()
    routine: RoutineDefaults = RoutineDefaults()
    concerns: ConcernTable = ConcernTable()

    # Need scoring
    top_n: int = 3
    high_level_threshold: float = 2.0
    caution_threshold: float = 2.0
    neutral_threshold: float = 1.0
    default_need: str = "hydration"
    default_need_score: float = 1.0

    # Recommendation scoring
    priority_weight: float = 1.5
    category_bonus: float = 1.2
    ingredient_bonus: float = 0.3
    max_key_ingredients: int = 4
    baseline_shot_type: str = "base"
    closeup_marker: str = "cheek"
    default_item_name: str = "추천 제품"
    generic_reason: str = "이번 세션의 우선 과제를 기반으로 선택했습니다."

    _index: Mapping[str, NeedDefinition] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: Dict[str, NeedDefinition] = {d.tag: d for d in self.definitions}
        object.__setattr__(self, "_index", MappingProxyType(index))

    def need(self, tag: str) -> NeedDefinition:
        return self._index[tag]

    def find(self, tag: str) -> Optional[NeedDefinition]:
        return self._index.get(tag)

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(d.tag for d in self.definitions)

    @property
    def question_keys(self) -> Tuple[str, ...]:
        return tuple(q.key for q in self.questions)


_DEFAULT_CATALOG: Optional[NeedCatalog] = None


def default_catalog() -> NeedCatalog:
    """The production catalog (built once; it is immutable)."""
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        _DEFAULT_CATALOG = NeedCatalog()
    return _DEFAULT_CATALOG
