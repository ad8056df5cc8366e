"""Tests for signal aggregation: answer merging, photo facts, rule bumps."""

from dataclasses import replace

from skincare_engine.signals.aggregator import derive_context, merge_answers
from skincare_engine.signals.base import SCOPE_PROFILE, AnswerSignal, PhotoSignal
from skincare_engine.taxonomy.need_catalog import NeedBump, SignalRule


def _answer(key, value, scope="session"):
    return AnswerSignal(question_key=key, answer=value, scope=scope)


class TestMergeAnswers:
    def test_session_overrides_profile(self):
        merged = merge_answers([
            _answer("daily_sunscreen", "O", SCOPE_PROFILE),
            _answer("daily_sunscreen", "X"),
        ])
        assert merged == {"daily_sunscreen": "X"}

    def test_profile_order_does_not_matter(self):
        merged = merge_answers([
            _answer("daily_sunscreen", "X"),
            _answer("daily_sunscreen", "O", SCOPE_PROFILE),
        ])
        assert merged["daily_sunscreen"] == "X"

    def test_profile_answers_are_defaults(self):
        merged = merge_answers([
            _answer("stress_high", "O", SCOPE_PROFILE),
            _answer("sensitive_skin", "X"),
        ])
        assert merged == {"stress_high": "O", "sensitive_skin": "X"}

    def test_malformed_session_answer_keeps_profile_answer(self):
        merged = merge_answers([
            _answer("daily_sunscreen", "O", SCOPE_PROFILE),
            _answer("daily_sunscreen", "maybe"),
        ])
        assert merged == {"daily_sunscreen": "O"}

    def test_blank_question_key_dropped(self):
        assert merge_answers([_answer("", "O")]) == {}


class TestPhotoFacts:
    def test_baseline_and_closeup(self):
        ctx = derive_context([PhotoSignal(shot_type="base"), PhotoSignal(shot_type="cheek_left")], [])
        assert ctx.has_baseline_photo
        assert ctx.has_closeup_photo
        assert ctx.photo_count == 2

    def test_focus_area_used_when_shot_type_missing(self):
        ctx = derive_context([PhotoSignal(shot_type=None, focus_area="Cheek")], [])
        assert ctx.has_closeup_photo
        assert not ctx.has_baseline_photo

    def test_shot_type_wins_over_focus_area(self):
        ctx = derive_context([PhotoSignal(shot_type="forehead", focus_area="cheek")], [])
        assert not ctx.has_closeup_photo


class TestRuleBumps:
    def test_sensitive_skin_without_sunscreen(self, sensitive_no_sunscreen):
        photos, answers = sensitive_no_sunscreen
        ctx = derive_context(photos, answers)
        assert ctx.score_for("soothing") == 2.0
        assert ctx.score_for("barrier") == 1.0
        assert ctx.score_for("radiance") == 2.0
        assert ctx.score_for("elasticity") == 0.5
        # no closeup (+1) and oiliness not confirmed (+0.5)
        assert ctx.score_for("hydration") == 1.5
        assert list(ctx.scores) == ["hydration", "soothing", "barrier", "radiance", "elasticity"]

    def test_missing_baseline_bumps_elasticity(self):
        ctx = derive_context([PhotoSignal(shot_type="cheek")], [_answer("daily_sunscreen", "O")])
        assert ctx.score_for("elasticity") == 1.5
        assert ctx.scores["elasticity"].reasons == ["기준 촬영이 부족해 탄력 지표를 보완할 필요가 있어요."]

    def test_malformed_answer_never_bumps(self):
        base = [PhotoSignal(shot_type="base"), PhotoSignal(shot_type="cheek")]
        ctx = derive_context(base, [_answer("frequent_makeup", "yes"), _answer("daily_sunscreen", "O")])
        assert ctx.score_for("pore_care") == 0.0

    def test_reasons_accumulate_per_need(self):
        ctx = derive_context(
            [PhotoSignal(shot_type="base")],
            [_answer("sensitive_skin", "O"), _answer("stress_high", "O"), _answer("daily_sunscreen", "O")],
        )
        assert ctx.score_for("soothing") == 3.0
        assert ctx.scores["soothing"].reasons == [
            "예민함을 느낀다고 응답했습니다.",
            "예민함 대비 진정 루틴을 강화해야 해요.",
        ]

    def test_rules_come_from_catalog(self, catalog):
        custom = replace(catalog, rules=(
            SignalRule("frequent_makeup", "O", bumps=(NeedBump("sebum_control", 4.0, "custom"),)),
        ))
        ctx = derive_context([], [_answer("frequent_makeup", "O")], custom)
        assert {tag: e.score for tag, e in ctx.scores.items()} == {"sebum_control": 4.0}

    def test_pure_for_identical_input(self, sensitive_no_sunscreen):
        photos, answers = sensitive_no_sunscreen
        first = derive_context(photos, answers)
        second = derive_context(photos, answers)
        assert first == second
