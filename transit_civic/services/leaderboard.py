"""
Leaderboard Ranker - top contributors by review count, with badges.

Ordering: review count (desc), then helpful votes received (desc), then
user ID (asc). Every user tied with the last included position is ranked
before the list is cut, so the cut is deterministic too.
"""

from transit_civic.core.exceptions import ValidationError
from transit_civic.models.leaderboard import LeaderboardEntry
from transit_civic.services.badge_engine import BadgeEngine
from transit_civic.storage.base import StoragePort
from typing import List
import logging

logger = logging.getLogger(__name__)

MAX_LEADERBOARD_LIMIT = 200


class LeaderboardRanker:
    """Ranks contributors from aggregate activity."""

    def __init__(self, storage: StoragePort, badge_engine: BadgeEngine):
        self.storage = storage
        self.badge_engine = badge_engine

    def top_contributors(self, limit: int = 50) -> List[LeaderboardEntry]:
        """
        Get the top contributors.

        Args:
            limit: Maximum number of entries (1-200)

        Returns:
            Ranked entries; empty when nobody has visible feedback
        """
        if limit < 1 or limit > MAX_LEADERBOARD_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LEADERBOARD_LIMIT}")

        review_counts = self.storage.count_feedback_by_user()
        review_counts = {uid: count for uid, count in review_counts.items() if count > 0}
        if not review_counts:
            return []

        # Candidates: everyone at or above the review count of the limit-th user
        by_count = sorted(review_counts.values(), reverse=True)
        cutoff = by_count[min(limit, len(by_count)) - 1]
        candidates = [uid for uid, count in review_counts.items() if count >= cutoff]

        activity = self.badge_engine.collect_activity(candidates)

        def total_votes(uid: str) -> int:
            return activity[uid].votes_received

        candidates.sort(key=lambda uid: (-review_counts[uid], -total_votes(uid), uid))
        ranked = candidates[:limit]

        badge_map = self.badge_engine.compute_badges(ranked, activity=activity)

        entries = [
            LeaderboardEntry(
                rank=position,
                user_id=uid,
                review_count=review_counts[uid],
                total_votes=total_votes(uid),
                badges=self.badge_engine.describe(badge_map[uid])
            )
            for position, uid in enumerate(ranked, start=1)
        ]

        logger.info(f"Leaderboard built: {len(entries)} contributors from {len(review_counts)} active users")
        return entries
