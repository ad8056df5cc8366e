"""Tests for the Supabase adapter using a mocked client."""

from unittest.mock import MagicMock

import pytest

from skincare_engine.errors import StorageError
from skincare_engine.routines.progress import check_in_window
from skincare_engine.routines.schema import MonthlyRoutine, WeeklyRoutineUpdate
from skincare_engine.storage.store import MONTHLY_CONFLICT, SupabaseStore

MONTHLY_ROW = {
    "id": "m-1",
    "user_id": "user-1",
    "period_month": "2024-05-01",
    "goal": "진정 집중하기",
    "summary": ["a", "b"],
    "cautions": None,
    "habits": ["h"],
    "generated_at": "2024-05-15T00:00:00+00:00",
}


def _routine():
    return MonthlyRoutine(
        id=None,
        user_id="user-1",
        period_key="2024-05-01",
        goal="진정 집중하기",
        summary=("a", "b"),
        cautions=None,
        habits=("h",),
    )


@pytest.fixture
def client():
    return MagicMock()


class TestInsertMonthlyIfAbsent:
    def test_created(self, client):
        table = client.table.return_value
        table.upsert.return_value.execute.return_value.data = [MONTHLY_ROW]

        stored = SupabaseStore(client).insert_monthly_if_absent(_routine())

        assert stored.id == "m-1"
        table.upsert.assert_called_once_with(
            _routine().to_row(),
            on_conflict=MONTHLY_CONFLICT,
            ignore_duplicates=True,
        )

    def test_race_reads_canonical_row(self, client):
        table = client.table.return_value
        table.upsert.return_value.execute.return_value.data = []
        select = table.select.return_value.eq.return_value.eq.return_value.limit.return_value
        select.execute.return_value.data = [dict(MONTHLY_ROW, id="m-winner")]

        stored = SupabaseStore(client).insert_monthly_if_absent(_routine())

        assert stored.id == "m-winner"

    def test_missing_after_race(self, client):
        table = client.table.return_value
        table.upsert.return_value.execute.return_value.data = []
        table.select.return_value.eq.return_value.eq.return_value.limit.return_value.execute.return_value.data = []

        with pytest.raises(StorageError):
            SupabaseStore(client).insert_monthly_if_absent(_routine())


class TestReads:
    def test_failure_wrapped(self, client):
        client.table.return_value.select.side_effect = RuntimeError("boom")
        with pytest.raises(StorageError) as excinfo:
            SupabaseStore(client).get_session("s")
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_catalog_rows_parsed(self, client):
        rows = [{"id": 1, "name": "Dew", "effect_tags": "hydration|glow", "key_ingredients": None}]
        client.table.return_value.select.return_value.limit.return_value.execute.return_value.data = rows

        items = SupabaseStore(client).fetch_catalog(80)

        assert items[0].id == "1"
        assert items[0].effect_tags == ("hydration", "glow")
        client.table.return_value.select.return_value.limit.assert_called_once_with(80)

    def test_profile_answers_are_profile_scope(self, client):
        rows = [{"user_id": "u", "question_key": "stress_high", "answer": "O"}]
        client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = rows

        answers = SupabaseStore(client).fetch_profile_answers("u")

        assert answers[0].scope == "profile"
        client.table.assert_called_with("profile_ox_records")

    def test_profile_failure_degrades_to_none(self, client):
        client.table.return_value.select.side_effect = RuntimeError("no table")
        assert SupabaseStore(client).fetch_profile("u") is None

    def test_profile_metadata_parsed(self, client):
        chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value.data = [{"id": "u", "metadata": {"concerns": ["wrinkle"]}}]
        assert SupabaseStore(client).fetch_profile("u").concerns == ("wrinkle",)

    def test_narrative_payload(self, client):
        chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value.data = [{"session_id": "s", "payload": {"oneLiner": "hi"}}]
        assert SupabaseStore(client).fetch_narrative("s") == {"oneLiner": "hi"}


class TestWeeklyWrites:
    def test_update_sends_only_patched_columns(self, client):
        table = client.table.return_value
        table.update.return_value.eq.return_value.eq.return_value.execute.return_value.data = []

        result = SupabaseStore(client).update_weekly("u", "2024-05-13", WeeklyRoutineUpdate(intensity="gentle"))

        assert result is None
        table.update.assert_called_once_with({"intensity": "gentle"})

    def test_check_in_appended(self, client):
        SupabaseStore(client).append_check_in("r-1", "2024-05-13T08:00:00+00:00")
        client.table.assert_called_with("weekly_routine_checks")
        client.table.return_value.insert.assert_called_once_with(
            {"routine_id": "r-1", "created_at": "2024-05-13T08:00:00+00:00"}
        )

    def test_check_in_window_covers_last_microsecond(self, client):
        start, end = check_in_window("2024-05-13", "2024-05-19")
        chain = client.table.return_value.select.return_value.eq.return_value
        SupabaseStore(client).fetch_check_ins("r-1", start, end)
        chain.gte.assert_called_once_with("created_at", "2024-05-13T00:00:00+00:00")
        chain.gte.return_value.lte.assert_called_once_with("created_at", "2024-05-19T23:59:59.999999+00:00")
        assert "2024-05-19T23:59:59.500000+00:00" <= end
