"""Tests for the structured log line format."""

import logging

from skincare_engine.config import load_settings
from skincare_engine.logging_utils import RUN_ID, StructuredFormatter, get_logger, init_logging


class TestStructuredFormatter:
    def test_line_layout(self):
        record = logging.LogRecord(
            name="skincare_engine.service",
            level=logging.INFO,
            pathname="/x/service.py",
            lineno=12,
            msg="Weekly routine created user_id=%s",
            args=("u",),
            exc_info=None,
            func="ensure_weekly_routine",
        )
        record.invoking_func = "RoutineService.ensure_weekly_routine"
        record.next_step = "Attach progress"

        parts = StructuredFormatter().format(record).split("|")

        assert parts[0] == RUN_ID
        assert parts[3] == "INFO"
        assert parts[4] == "service.py:12"
        assert parts[5] == "service.ensure_weekly_routine"
        assert parts[6] == "Ensure-once routines and check-ins against storage"
        assert parts[9] == "Weekly routine created user_id=u"
        assert parts[-1] == "<END>"


class TestGetLogger:
    def test_namespaced(self):
        assert get_logger("deriver").name == "skincare_engine.deriver"
        assert get_logger("skincare_engine.store").name == "skincare_engine.store"

    def test_single_handler(self):
        get_logger("a")
        get_logger("b")
        assert len(logging.getLogger("skincare_engine").handlers) == 1


class TestInitLogging:
    def test_settings_level_applied_after_setup(self, monkeypatch):
        monkeypatch.setenv("SKINCARE_LOG_LEVEL", "debug")
        base = logging.getLogger("skincare_engine")
        previous = base.level
        get_logger("service")
        try:
            init_logging(getattr(logging, load_settings().log_level, logging.INFO))
            assert base.level == logging.DEBUG
            assert len(base.handlers) == 1
        finally:
            base.setLevel(previous)
