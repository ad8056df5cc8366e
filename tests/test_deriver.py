"""Tests for monthly / weekly derivation and the weekly merge-patch."""

import random

import pytest

from skincare_engine.recommendation.recommender import build_recommendation_payload
from skincare_engine.routines.deriver import (
    apply_weekly_update,
    auto_rebalance_days,
    build_weekly_update,
    derive_monthly_routine,
    derive_weekly_routine,
    normalize_days,
)
from skincare_engine.routines.envelope import sanitize_envelope
from skincare_engine.signals.base import ProfileDetails
from skincare_engine.taxonomy.routine_defaults import DAY_SETS


@pytest.fixture
def payload(sensitive_no_sunscreen, products):
    photos, answers = sensitive_no_sunscreen
    return build_recommendation_payload("sess-1", photos, answers, products)


@pytest.fixture
def weekly(payload):
    return derive_weekly_routine("user-1", "2024-05-13", "2024-05-19", payload)


class TestMonthly:
    def test_from_payload(self, payload, catalog):
        routine = derive_monthly_routine("user-1", "2024-05-01", payload)
        assert routine.goal == "진정 집중하기"
        assert routine.summary == (
            "수분 밀도: 볼 데이터와 생활 습관을 기준으로 수분 보강이 필요해요.",
            "탄력: 탄력 지표는 큰 하락 없이 유지되고 있어요.",
            "장벽: 예민 응답으로 인해 장벽 복구 제품을 우선 고려했습니다.",
        )
        assert routine.cautions == "자외선 응답을 기준으로 광채가 쉽게 떨어질 수 있습니다."
        assert routine.habits == payload.tips[:2]
        assert routine.id is None

    def test_profile_concern_wins(self, payload):
        profile = ProfileDetails(concerns=("dryness", "wrinkle"))
        routine = derive_monthly_routine("user-1", "2024-05-01", payload, profile)
        assert routine.goal == "주름 집중하기"
        assert routine.habits[0] == "주름 완화를 위해 주 3회 루틴만 지켜도 충분합니다."
        assert len(routine.habits) == 3

    def test_without_payload(self, catalog):
        routine = derive_monthly_routine("user-1", "2024-05-01", None)
        defaults = catalog.routine
        assert routine.goal == defaults.default_goal
        assert routine.summary == defaults.summary_fallback
        assert routine.cautions == defaults.caution_fallback
        assert routine.habits == defaults.habit_fallback

    def test_deterministic(self, payload):
        assert derive_monthly_routine("u", "2024-05-01", payload) == derive_monthly_routine("u", "2024-05-01", payload)


class TestWeekly:
    def test_defaults_from_top_need(self, weekly, catalog):
        defaults = catalog.routine
        # top need label "진정" maps to the trouble topic
        assert weekly.focus_topic == "trouble"
        assert weekly.focus == "트러블"
        assert weekly.focus_reason == defaults.default_focus_reason
        assert weekly.conclusion == defaults.default_conclusion
        assert weekly.recommended_days == ("Mon", "Wed", "Fri")
        assert weekly.intensity == "standard"
        assert [s.enabled for s in weekly.optional_steps] == [True, False, False]
        assert weekly.actions == defaults.fallback_actions["trouble"]
        assert len(weekly.actions) == 2
        assert weekly.warnings == defaults.default_warnings
        assert len(weekly.base_routine) == 4
        assert weekly.base_routine[0].startswith("수분 밀도: ")

    def test_profile_concern_topic(self, payload):
        profile = ProfileDetails(concerns=("dryness",))
        routine = derive_weekly_routine("u", "2024-05-13", "2024-05-19", payload, profile=profile)
        assert routine.focus_topic == "hydration"
        assert routine.focus_reason == "건조함 완화를 위해 이번 주 루틴 강도를 조정했어요."

    def test_envelope_wins(self, payload):
        envelope = sanitize_envelope({
            "focus": {"topic": "glow", "reason": "톤이 흐려졌어요."},
            "oneLiner": "이번 주는 광채",
            "actions": [{"title": "T", "description": "D"}],
            "warnings": ["조심"],
        })
        profile = ProfileDetails(concerns=("wrinkle",))
        routine = derive_weekly_routine("u", "2024-05-13", "2024-05-19", payload, envelope, profile)
        assert routine.focus_topic == "radiance"
        assert routine.focus == "광채"
        assert routine.focus_reason == "톤이 흐려졌어요."
        assert routine.conclusion == "이번 주는 광채"
        assert [a.title for a in routine.actions] == ["T"]
        assert routine.warnings == ("조심",)

    def test_empty_envelope_falls_back(self, payload, catalog):
        routine = derive_weekly_routine("u", "2024-05-13", "2024-05-19", payload, sanitize_envelope({}))
        assert routine.focus_topic == "trouble"
        assert routine.warnings == catalog.routine.default_warnings


class TestWeeklyUpdate:
    def test_intensity_only_keeps_days(self, weekly):
        updated = apply_weekly_update(weekly, build_weekly_update({"intensity": "focus"}))
        assert updated.intensity == "focus"
        assert updated.recommended_days == ("Mon", "Wed", "Fri")
        assert weekly.intensity == "standard"

    def test_invalid_fields_ignored(self):
        update = build_weekly_update({"intensity": "extreme", "recommendedDays": "Mon", "optionalSteps": [{}]})
        assert update.is_empty()

    def test_days_normalized(self):
        update = build_weekly_update({"recommended_days": ["sun", "Tue", "Tue", "noday"]})
        assert update.recommended_days == ("Tue", "Sun")
        assert update.changed_fields() == ["recommended_days"]

    def test_optional_steps(self, weekly):
        update = build_weekly_update({"optionalSteps": [{"key": "mask", "label": "시트팩", "enabled": True}]})
        updated = apply_weekly_update(weekly, update)
        assert [s.key for s in updated.optional_steps] == ["mask"]
        assert updated.optional_steps[0].enabled

    def test_normalize_days_none(self):
        assert normalize_days(None) is None
        assert normalize_days([]) is None


class TestAutoRebalance:
    def test_seeded_rotation_is_stable(self):
        first = auto_rebalance_days("user-1", "2024-05-13")
        assert first == auto_rebalance_days("user-1", "2024-05-13")
        assert first in DAY_SETS

    def test_rotation_varies_across_weeks(self):
        picks = {auto_rebalance_days("user-1", f"2024-{m:02d}-01") for m in range(1, 13)}
        assert len(picks) > 1

    def test_explicit_rng(self):
        expected = random.Random(7).choice(list(DAY_SETS))
        assert auto_rebalance_days("user-1", "2024-05-13", rng=random.Random(7)) == expected
