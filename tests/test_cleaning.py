"""Tests for the loose-value normalisers used on storage rows."""

from skincare_engine.signals.base import CatalogItem, parse_profile_details
from skincare_engine.signals.cleaning import normalize_answer, normalize_tag, to_list


class TestToList:
    def test_comma_and_pipe_delimited(self):
        assert to_list("hydration, glow|barrier") == ["hydration", "glow", "barrier"]

    def test_list_drops_blanks_and_none(self):
        assert to_list(["a", " ", None, " b "]) == ["a", "b"]

    def test_other_types_are_empty(self):
        assert to_list(None) == []
        assert to_list(42) == []


class TestNormalizeTag:
    def test_lowercases_and_collapses_separators(self):
        assert normalize_tag("Hydrating  Serum") == "hydrating_serum"
        assert normalize_tag("anti-aging/lift") == "anti_aging_lift"

    def test_keeps_hangul(self):
        assert normalize_tag("수분 크림") == "수분_크림"

    def test_non_string_is_empty(self):
        assert normalize_tag(None) == ""


class TestNormalizeAnswer:
    def test_valid_answers(self):
        assert normalize_answer(" o ") == "O"
        assert normalize_answer("X") == "X"

    def test_malformed_answers(self):
        assert normalize_answer("yes") is None
        assert normalize_answer("") is None
        assert normalize_answer(None) is None
        assert normalize_answer(1) is None


class TestCatalogItemFromRow:
    def test_string_tags_are_split(self):
        item = CatalogItem.from_row({
            "id": 7,
            "name": "Dew Cream",
            "effect_tags": "Hydration|Barrier",
            "key_ingredients": "ceramide, panthenol",
        })
        assert item.id == "7"
        assert item.effect_tags == ("Hydration", "Barrier")
        assert item.key_ingredients == ("ceramide", "panthenol")


class TestParseProfileDetails:
    def test_nested_camel_case(self):
        details = parse_profile_details({
            "details": {"gender": "여성", "ageRange": "30s", "concerns": ["wrinkle", " ", "dryness"]},
        })
        assert details.gender == "female"
        assert details.age_range == "30s"
        assert details.concerns == ("wrinkle", "dryness")

    def test_snake_case_top_level(self):
        details = parse_profile_details({"birth_year": "1990", "skin_concerns": ["trouble"]})
        assert details.birth_year == 1990
        assert details.concerns == ("trouble",)

    def test_garbage_is_empty(self):
        details = parse_profile_details("not a dict")
        assert details.concerns == ()
        assert details.gender is None
