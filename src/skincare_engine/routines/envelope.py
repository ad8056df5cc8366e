# src/skincare_engine/routines/envelope.py
from __future__ import annotations

"""
envelope.py

Purpose:
    Clean the optional richer narrative (a generated long-form report, cached
    per session) into a NarrativeEnvelope the routine deriver can trust.

    The text itself is opaque to the engine. Only the shape is enforced:
      - focus topic mapped through FOCUS_ALIASES (unknown -> hydration),
      - actions trimmed, incomplete ones dropped, at most 3,
      - warnings trimmed, blanks dropped, at most 3.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

from skincare_engine.logging_utils import get_logger
from skincare_engine.routines.schema import NarrativeEnvelope, NarrativeFocus, to_action_list, to_string_list
from skincare_engine.taxonomy.concerns import DEFAULT_FOCUS_TOPIC

logger = get_logger("envelope")

MODULE_PURPOSE = "Sanitize optional narrative report input"

MAX_ACTIONS = 3
MAX_WARNINGS = 3

FOCUS_ALIASES: Mapping[str, str] = MappingProxyType({
    "hydration": "hydration",
    "elasticity": "elasticity",
    "firmness": "elasticity",
    "wrinkle": "wrinkle",
    "wrinkles": "wrinkle",
    "radiance": "radiance",
    "glow": "radiance",
    "tone": "radiance",
    "trouble": "trouble",
    "troubles": "trouble",
    "blemish": "trouble",
    "acne": "trouble",
})


def normalize_focus_topic(value: Any) -> str:
    key = str(value or "").strip().lower()
    return FOCUS_ALIASES.get(key, DEFAULT_FOCUS_TOPIC)


def sanitize_envelope(raw: Optional[Mapping[str, Any]]) -> Optional[NarrativeEnvelope]:
    """None for missing input; otherwise a cleaned envelope (fields may be empty)."""
    if not isinstance(raw, Mapping):
        return None

    focus: Optional[NarrativeFocus] = None
    raw_focus = raw.get("focus")
    if isinstance(raw_focus, Mapping) and raw_focus.get("topic"):
        focus = NarrativeFocus(
            topic=normalize_focus_topic(raw_focus.get("topic")),
            reason=str(raw_focus.get("reason") or "").strip(),
        )

    one_liner = str(raw.get("oneLiner") or raw.get("one_liner") or "").strip() or None
    actions = tuple(to_action_list(raw.get("actions"))[:MAX_ACTIONS])
    warnings = tuple(to_string_list(raw.get("warnings"))[:MAX_WARNINGS]) if isinstance(raw.get("warnings"), list) else ()

    envelope = NarrativeEnvelope(focus=focus, one_liner=one_liner, actions=actions, warnings=warnings)
    logger.debug(
        "Narrative envelope sanitized focus=%s actions=%d warnings=%d",
        focus.topic if focus else None,
        len(actions),
        len(warnings),
        extra={
            "invoking_func": "sanitize_envelope",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Derive weekly routine",
            "resolution": "",
        },
    )
    return envelope
