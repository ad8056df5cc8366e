# logging_utils.py
"""
logging_utils.py

Central logging utilities for the skincare needs engine.

Log format (one line):
<RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<ModulePurpose>|
<InvokingFunc>|<InvokingFuncPurpose>|<Detail>|<NextStep>|<Resolution>|<END>

Modules call get_logger() and pass the optional context through `extra=`:

    logger.info(
        "Ensured weekly routine",
        extra={
            "invoking_func": "RoutineService.ensure_weekly_routine",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Attach progress",
            "resolution": "",
        },
    )
"""

from __future__ import annotations

import datetime
import logging
import uuid
from typing import Dict, Optional

RUN_ID: str = uuid.uuid4().hex[:8]


class StructuredFormatter(logging.Formatter):
    """
    Formatter that emits a single '|' separated line conforming
    to the log template above.
    """

    # High-level purposes by module name
    MODULE_PURPOSES: Dict[str, str] = {
        "need_catalog": "Static need definitions, scoring rules and fallback tables",
        "concerns": "Profile concern priority, labels and focus topics",
        "aggregator": "Reduce photo metadata and yes/no answers into a scored context",
        "need_scorer": "Rank need scores into prioritized needs and report items",
        "narrative": "Template summary, highlight and tips from prioritized needs",
        "recommender": "Match catalog items to prioritized needs",
        "deriver": "Derive monthly and weekly routines from the recommendation payload",
        "progress": "Count weekly check-ins by calendar day",
        "service": "Ensure-once routines and check-ins against storage",
        "store": "Supabase / in-memory storage adapters",
        "config": "Create Supabase client and engine settings from environment",
        "envelope": "Sanitize optional narrative report input",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        dt = datetime.datetime.fromtimestamp(record.created)
        date_str = dt.strftime("%Y-%m-%d")
        time_str = dt.strftime("%H:%M:%S")

        run_id = getattr(record, "run_id", RUN_ID)

        level = record.levelname
        code_location = f"{record.filename}:{record.lineno}"
        func_name = record.funcName
        module_name = record.module
        module_purpose = self.MODULE_PURPOSES.get(module_name, "")

        invoking_func = getattr(record, "invoking_func", "")
        invoking_purpose = getattr(record, "invoking_purpose", "")
        next_step = getattr(record, "next_step", "")
        resolution = getattr(record, "resolution", "")

        detail = record.getMessage()
        line = (
            f"{run_id}|{date_str}|{time_str}|{level}|{code_location}|"
            f"{module_name}.{func_name}|{module_purpose}|"
            f"{invoking_func}|{invoking_purpose}|"
            f"{detail}|{next_step}|{resolution}|<END>"
        )
        if record.exc_info:
            line = f"{line} | EXC={self.formatException(record.exc_info)}"
        return line


def init_logging(level: Optional[int] = None) -> None:
    """
    Initialize the package logger once with StructuredFormatter.

    Entry points pass the level from EngineSettings.log_level; an explicit
    level is applied even when the handler is already installed.
    """
    base = logging.getLogger("skincare_engine")
    if base.handlers:
        # Already configured, avoid double handlers in REPL / notebooks
        if level is not None:
            base.setLevel(level)
        return

    if level is None:
        level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    base.addHandler(handler)
    base.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a structured logger under the `skincare_engine` namespace."""
    init_logging()
    if not name.startswith("skincare_engine"):
        name = f"skincare_engine.{name}"
    return logging.getLogger(name)
