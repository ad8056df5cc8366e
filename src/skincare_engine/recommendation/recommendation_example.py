"""
recommendation_example.py

Example usage of the SkinRecommender.

Run:
  python -m skincare_engine.recommendation.recommendation_example --session-id <uuid>
  python -m skincare_engine.recommendation.recommendation_example --user-id <uuid>

Requires:
  SUPABASE_URL
  SUPABASE_SERVICE_ROLE_KEY
"""
from __future__ import annotations

import argparse
import json
import logging

from skincare_engine.config import get_supabase_client, load_settings
from skincare_engine.logging_utils import init_logging
from skincare_engine.recommendation.recommender import SkinRecommender
from skincare_engine.storage.store import SupabaseStore


def main() -> None:
    ap = argparse.ArgumentParser()
    group = ap.add_mutually_exclusive_group(required=True)
    group.add_argument("--session-id")
    group.add_argument("--user-id", help="use the user's latest analysis session")
    ap.add_argument("--json", action="store_true", help="print the raw payload")
    args = ap.parse_args()

    settings = load_settings()
    init_logging(getattr(logging, settings.log_level, logging.INFO))
    store = SupabaseStore(get_supabase_client(), settings.tables)
    rec = SkinRecommender(store, catalog_limit=settings.catalog_limit)

    if args.session_id:
        payload = rec.recommend_for_session(args.session_id)
    else:
        payload = rec.load_latest_for_user(args.user_id).payload

    if args.json:
        print(json.dumps(payload.to_dict(), ensure_ascii=False, indent=2))
        return

    print(payload.summary)
    print(payload.highlight)
    for need in payload.needs:
        print(f"[{need.level}] {need.label}  score={need.score:g}")
    for i, r in enumerate(payload.recommendations, start=1):
        print(f"{i:02d}. {r.name}  need={r.need}  score={r.score:.2f}")
        print("    -", r.reason)


if __name__ == "__main__":
    main()
