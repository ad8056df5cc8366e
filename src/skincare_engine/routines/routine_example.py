"""
routine_example.py

Ensure and print the current monthly or weekly routine for a user.

Run:
  python -m skincare_engine.routines.routine_example --user-id <uuid> --period weekly
  python -m skincare_engine.routines.routine_example --user-id <uuid> --period weekly --check-in
  python -m skincare_engine.routines.routine_example --user-id <uuid> --period monthly
"""
from __future__ import annotations

import argparse
import json
import logging

from skincare_engine.config import get_supabase_client, load_settings
from skincare_engine.logging_utils import init_logging
from skincare_engine.recommendation.recommender import SkinRecommender
from skincare_engine.routines.service import RoutineService
from skincare_engine.storage.store import SupabaseStore


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--user-id", required=True)
    ap.add_argument("--period", choices=("monthly", "weekly"), default="weekly")
    ap.add_argument("--check-in", action="store_true", help="record a check-in for this week first")
    args = ap.parse_args()

    settings = load_settings()
    init_logging(getattr(logging, settings.log_level, logging.INFO))
    store = SupabaseStore(get_supabase_client(), settings.tables)
    service = RoutineService(store, SkinRecommender(store, catalog_limit=settings.catalog_limit))

    if args.period == "monthly":
        out = service.monthly_payload(args.user_id)
    else:
        if args.check_in:
            service.check_in(args.user_id)
        out = service.weekly_payload(args.user_id)

    print(json.dumps(out, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
