"""
Seed script for the in-memory DB or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Force in-memory DB even if FIREBASE configured: python scripts/seed_db.py --apply --force-mock

Behavior:
  - Loads `db_seed.json` from the working directory.
  - Builds the storage port selected by settings (in-memory or Firestore).
  - Writes proposals and feedback, then replays votes through the engine so
    counts, promotions and uniqueness follow the same rules as the API.

Seed file shape:
  {
    "proposals": [{"id": "p1", "title": "...", "type": "LINE", "target_id": "205"}],
    "feedback": [{"id": "f1", "type": "LINE", "target_id": "205", "user_id": "u1", "rating": 4, "tags": []}],
    "proposal_votes": [{"user_id": "u2", "proposal_id": "p1"}],
    "feedback_votes": [{"user_id": "u2", "feedback_id": "f1"}]
  }
"""

import argparse
import json
import logging
import os

from transit_civic.core.exceptions import EngineError
from transit_civic.core.settings import settings
from transit_civic.models.feedback import FeedbackRecord
from transit_civic.models.proposal import Proposal
from transit_civic.services.engine import CivicFeedbackEngine
from transit_civic.storage import build_storage

logger = logging.getLogger("seed_db")


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_to_db(engine: CivicFeedbackEngine, seed: dict, apply: bool = False) -> int:
    """Write the seed through the engine; returns the number of failed rows."""
    failures = 0
    storage = engine.storage

    for data in seed.get("proposals", []):
        print(f"Preparing: proposals/{data.get('id')}")
        if apply:
            storage.save_proposal(Proposal(**data))

    for data in seed.get("feedback", []):
        print(f"Preparing: feedback/{data.get('id')}")
        if apply:
            storage.save_feedback(FeedbackRecord(**data))

    for vote in seed.get("proposal_votes", []):
        print(f"Preparing: proposal vote {vote['user_id']} -> {vote['proposal_id']}")
        if not apply:
            continue
        try:
            result = engine.toggle_proposal_vote(vote["user_id"], vote["proposal_id"])
            print(f"  {result.vote_count} votes, status {result.status.value}")
        except EngineError as e:
            failures += 1
            print(f"  Failed: {e.message}")

    for vote in seed.get("feedback_votes", []):
        print(f"Preparing: feedback vote {vote['user_id']} -> {vote['feedback_id']}")
        if not apply:
            continue
        try:
            engine.toggle_feedback_vote(vote["user_id"], vote["feedback_id"])
        except EngineError as e:
            failures += 1
            print(f"  Failed: {e.message}")

    return failures


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force use of in-memory DB even if FIREBASE configured")
    parser.add_argument("--seed", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed file path")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    if not os.path.exists(args.seed):
        print(f"Seed file not found: {args.seed}")
        return

    seed = load_seed(args.seed)

    if args.force_mock:
        print("Forcing in-memory DB usage for this run.")
        settings.USE_MOCK_DB = True

    engine = CivicFeedbackEngine(build_storage(settings), settings)
    failures = write_to_db(engine, seed, apply=args.apply)

    if args.apply:
        print(f"Seeding completed ({failures} failed votes).")
    else:
        print("Dry run complete. Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
