"""Consistency checks over the static catalog tables."""

from dataclasses import replace

import pytest

from skincare_engine.taxonomy.concerns import CONCERN_FOCUS, FOCUS_TOPICS, ConcernTable
from skincare_engine.taxonomy.need_catalog import (
    FACT_BASELINE_PHOTO,
    FACT_CLOSEUP_PHOTO,
    NEED_TAGS,
)


class TestNeedCatalog:
    def test_every_need_defined_once(self, catalog):
        assert catalog.tags == NEED_TAGS

    def test_rules_reference_known_signals_and_needs(self, catalog):
        known = set(catalog.question_keys) | {FACT_BASELINE_PHOTO, FACT_CLOSEUP_PHOTO}
        for rule in catalog.rules:
            assert rule.signal in known
            for bump in rule.bumps:
                assert bump.tag in NEED_TAGS
                assert bump.weight > 0
                assert bump.reason

    def test_report_dimensions_cover_known_needs(self, catalog):
        for dimension in catalog.report_dimensions:
            assert set(dimension.tags) <= set(NEED_TAGS)

    def test_unknown_need_lookup(self, catalog):
        assert catalog.find("glitter") is None
        with pytest.raises(KeyError):
            catalog.need("glitter")

    def test_replace_rebuilds_index(self, catalog):
        trimmed = replace(catalog, definitions=catalog.definitions[:1])
        assert trimmed.tags == ("hydration",)
        assert trimmed.find("barrier") is None


class TestRoutineDefaults:
    def test_focus_topics_have_labels_and_two_actions(self, catalog):
        defaults = catalog.routine
        assert set(defaults.focus_labels) == set(FOCUS_TOPICS)
        for topic in FOCUS_TOPICS:
            assert len(defaults.actions_for(topic)) == 2

    def test_unknown_topic_falls_back_to_hydration(self, catalog):
        defaults = catalog.routine
        assert defaults.focus_label("sparkle") == "건조"
        assert defaults.actions_for(None) == defaults.fallback_actions["hydration"]

    def test_day_sets_use_known_codes(self, catalog):
        defaults = catalog.routine
        assert defaults.default_days == ("Mon", "Wed", "Fri")
        for day_set in defaults.day_sets:
            assert set(day_set) <= set(defaults.day_order)


class TestConcernTable:
    def test_focus_values_are_topics(self):
        assert set(CONCERN_FOCUS.values()) <= set(FOCUS_TOPICS)

    def test_primary_concern_priority(self):
        table = ConcernTable()
        assert table.pick_primary(["trouble", "dryness", "wrinkle"]) == "wrinkle"
        assert table.pick_primary(["makeup_caking", "sebum"]) == "sebum"
        assert table.pick_primary([]) is None

    def test_unmapped_concern_focus(self):
        assert ConcernTable().focus_for("pores") == "hydration"
