# src/skincare_engine/errors.py
"""Exceptions raised by the skincare needs engine.

Only missing required anchors (session, user, routine) and storage failures
raise. Malformed answers or catalog strings are ignored where they are read.
"""

from __future__ import annotations

from typing import Optional


class SkincareEngineError(Exception):
    """Base class for every engine error."""


class ConfigurationError(SkincareEngineError):
    """Required environment configuration is missing."""


class MissingSessionError(SkincareEngineError):
    """No analysis session (or photo context) exists for the request."""

    def __init__(self, *, user_id: Optional[str] = None, session_id: Optional[str] = None) -> None:
        self.user_id = user_id
        self.session_id = session_id
        if session_id:
            message = f"analysis session not found: session_id={session_id}"
        else:
            message = f"no analysis session found for user_id={user_id}"
        super().__init__(message)


class MissingUserError(SkincareEngineError):
    """A routine operation was called without a user id."""

    def __init__(self) -> None:
        super().__init__("user_id is required")


class RoutineNotFoundError(SkincareEngineError):
    """An update targeted a weekly routine that does not exist yet."""

    def __init__(self, user_id: str, week_start: str) -> None:
        self.user_id = user_id
        self.week_start = week_start
        super().__init__(f"weekly routine not found: user_id={user_id} week_start={week_start}")


class InvalidUpdateError(SkincareEngineError):
    """A weekly routine update carried no recognised field."""


class StorageError(SkincareEngineError):
    """A storage read or write failed."""
