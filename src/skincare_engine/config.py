"""
config.py

Purpose:
    Provide get_supabase_client() and load_settings(), both driven by
    environment variables (a local .env file is loaded on import).

Usage:
    from skincare_engine.config import get_supabase_client, load_settings
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv
from supabase import Client, create_client

from skincare_engine.errors import ConfigurationError

load_dotenv()  # loads .env


@dataclass(frozen=True)
class TableNames:
    analysis_sessions: str = "analysis_sessions"
    photos: str = "photos"
    ox_responses: str = "ox_responses"
    profile_ox: str = "profile_ox_records"
    profiles: str = "profiles"
    products: str = "products"
    ai_reports: str = "ai_reports"
    monthly_routines: str = "monthly_routines"
    weekly_routines: str = "weekly_routines"
    weekly_checks: str = "weekly_routine_checks"


@dataclass(frozen=True)
class EngineSettings:
    # Catalog rows loaded per recommendation request
    catalog_limit: int = 80
    log_level: str = "INFO"
    tables: TableNames = TableNames()


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings() -> EngineSettings:
    """Read EngineSettings from the environment, falling back to defaults."""
    return EngineSettings(
        catalog_limit=_int_env("SKINCARE_CATALOG_LIMIT", 80),
        log_level=os.environ.get("SKINCARE_LOG_LEVEL", "INFO").upper(),
    )


def get_supabase_client() -> Client:
    """Create a Supabase client using env vars."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")  # service role: routines are written server-side
    if not url or not key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(url, key)
