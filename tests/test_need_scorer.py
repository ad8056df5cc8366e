"""Tests for need ranking and report item statuses."""

from dataclasses import replace

from skincare_engine.scoring.need_scorer import (
    STATUS_CAUTION,
    STATUS_GOOD,
    STATUS_NEUTRAL,
    build_report_items,
    prioritize_needs,
    status_for,
)
from skincare_engine.signals.aggregator import AnalysisContext, bump_need, derive_context
from skincare_engine.signals.base import AnswerSignal, PhotoSignal


def _context(*bumps):
    ctx = AnalysisContext(has_baseline_photo=True, has_closeup_photo=True, photo_count=2)
    for tag, weight in bumps:
        bump_need(ctx.scores, tag, weight, f"{tag} reason")
    return ctx


class TestPrioritizeNeeds:
    def test_example_ranking(self, sensitive_no_sunscreen):
        photos, answers = sensitive_no_sunscreen
        needs = prioritize_needs(derive_context(photos, answers))
        assert [n.id for n in needs] == ["soothing", "radiance", "hydration"]
        assert [n.level for n in needs] == ["high", "high", "medium"]
        assert needs[0].label == "진정"

    def test_ties_keep_registration_order(self):
        needs = prioritize_needs(_context(("barrier", 1.0), ("pore_care", 1.0), ("radiance", 1.0), ("soothing", 1.0)))
        assert [n.id for n in needs] == ["barrier", "pore_care", "radiance"]

    def test_higher_score_beats_earlier_registration(self):
        needs = prioritize_needs(_context(("barrier", 1.0), ("radiance", 1.5)))
        assert [n.id for n in needs] == ["radiance", "barrier"]

    def test_default_hydration_when_nothing_fires(self, catalog):
        empty = replace(catalog, rules=())
        needs = prioritize_needs(derive_context([], [], empty), empty)
        assert len(needs) == 1
        assert needs[0].id == "hydration"
        assert needs[0].level == "medium"
        assert needs[0].reasons == ()

    def test_length_bounded(self):
        ctx = derive_context([], [
            AnswerSignal(question_key=key, answer="O")
            for key in ("sensitive_skin", "frequent_makeup", "oiliness_high", "stress_high", "water_intake_low")
        ])
        assert 1 <= len(prioritize_needs(ctx)) <= 3

    def test_to_dict_hides_score(self, sensitive_no_sunscreen):
        photos, answers = sensitive_no_sunscreen
        payload = prioritize_needs(derive_context(photos, answers))[0].to_dict()
        assert set(payload) == {"id", "label", "level", "description", "reasons"}


class TestReportItems:
    def test_fixed_dimensions(self):
        items = build_report_items(_context())
        assert [i.id for i in items] == ["hydration", "elasticity", "barrier", "radiance", "pore"]
        assert all(i.status == STATUS_GOOD for i in items)

    def test_status_uses_full_score_map(self, sensitive_no_sunscreen):
        photos, answers = sensitive_no_sunscreen
        items = {i.id: i for i in build_report_items(derive_context(photos, answers))}
        assert items["hydration"].status == STATUS_NEUTRAL
        assert items["elasticity"].status == STATUS_GOOD
        # barrier is outside the top 3 but still reported
        assert items["barrier"].status == STATUS_NEUTRAL
        assert items["radiance"].status == STATUS_CAUTION
        assert items["radiance"].description == "자외선 응답을 기준으로 광채가 쉽게 떨어질 수 있습니다."

    def test_pore_combines_pore_and_sebum(self):
        items = {i.id: i for i in build_report_items(_context(("pore_care", 1.0), ("sebum_control", 1.0)))}
        assert items["pore"].status == STATUS_CAUTION

    def test_status_is_monotonic(self, catalog):
        order = [STATUS_GOOD, STATUS_NEUTRAL, STATUS_CAUTION]
        ranks = [order.index(status_for(score / 4, catalog)) for score in range(0, 17)]
        assert ranks == sorted(ranks)

    def test_photos_do_not_change_cardinality(self):
        ctx = derive_context([PhotoSignal(shot_type="base")], [])
        assert len(build_report_items(ctx)) == 5
