# src/skincare_engine/signals/cleaning.py
from __future__ import annotations

"""
cleaning.py

Purpose:
    Deterministic normalisers for the loosely typed values that arrive from
    storage rows: delimited tag strings, category names, O/X answers.
"""

import re
from typing import Any, List, Optional

from skincare_engine.taxonomy.need_catalog import ANSWER_VALUES

_TAG_JUNK = re.compile(r"[^a-z0-9가-힣]+")
_LIST_SPLIT = re.compile(r"[,|]")


def to_list(value: Any) -> List[str]:
    """Accept a list or a comma/pipe-delimited string; drop blanks."""
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    if isinstance(value, str):
        return [part.strip() for part in _LIST_SPLIT.split(value) if part.strip()]
    return []


def normalize_tag(value: Optional[str]) -> str:
    """Lowercase and collapse every run of non-alphanumerics to '_'."""
    if not isinstance(value, str):
        return ""
    return _TAG_JUNK.sub("_", value.strip().lower())


def normalize_answer(value: Any) -> Optional[str]:
    """'o' / ' X ' -> 'O' / 'X'; anything else is malformed and returns None."""
    if not isinstance(value, str):
        return None
    upper = value.strip().upper()
    return upper if upper in ANSWER_VALUES else None
