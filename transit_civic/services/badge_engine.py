"""
Badge Engine - reputation badges derived from contribution activity.

DESIGN PRINCIPLES:
- Badges are COMPUTED on the fly from feedback and helpful-vote data, never stored
- Each badge is a named predicate in a static catalog; predicates are independent
- Output order follows catalog order, so unchanged data gives identical results
- Activity is gathered for the whole batch of users at once, not per user
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set

from transit_civic.models.feedback import UserActivity
from transit_civic.models.leaderboard import BadgeOut
from transit_civic.storage.base import StoragePort
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeDefinition:
    """A badge and the activity predicate that earns it."""
    id: str
    emoji: str
    label: str
    description: str
    predicate: Callable[[UserActivity], bool]

    def to_public(self) -> BadgeOut:
        return BadgeOut(id=self.id, emoji=self.emoji, label=self.label)


# Configuration: badge catalog (order here is output order)
BADGE_CATALOG: List[BadgeDefinition] = [
    BadgeDefinition(
        id="FIRST_REVIEW", emoji="🌱", label="First Review",
        description="Left their first review",
        predicate=lambda a: a.review_count >= 1
    ),
    BadgeDefinition(
        id="TRANSIT_VOICE", emoji="🗣️", label="Porto Transit Voice",
        description="Left 10+ reviews",
        predicate=lambda a: a.review_count >= 10
    ),
    BadgeDefinition(
        id="COMMUNITY_CHAMPION", emoji="🏆", label="Community Champion",
        description="Left 100+ reviews",
        predicate=lambda a: a.review_count >= 100
    ),
    BadgeDefinition(
        id="HELPFUL_REVIEWER", emoji="👍", label="Helpful Reviewer",
        description="Reviews received 50+ upvotes",
        predicate=lambda a: a.votes_received >= 50
    ),
    BadgeDefinition(
        id="NETWORK_EXPLORER", emoji="🗺️", label="Network Explorer",
        description="Reviewed 10+ different lines or stops",
        predicate=lambda a: a.unique_targets >= 10
    ),
]


def badges_from_activity(activity: UserActivity, catalog: List[BadgeDefinition] = BADGE_CATALOG) -> List[str]:
    """Badge IDs earned by one activity snapshot, in catalog order."""
    return [badge.id for badge in catalog if badge.predicate(activity)]


class BadgeEngine:
    """Computes badges for batches of users."""

    def __init__(self, storage: StoragePort, catalog: Optional[List[BadgeDefinition]] = None):
        self.storage = storage
        self.catalog = catalog if catalog is not None else BADGE_CATALOG
        self._by_id = {badge.id: badge for badge in self.catalog}

    def collect_activity(self, user_ids: Iterable[str]) -> Dict[str, UserActivity]:
        """
        Aggregate activity for every user in one pass.

        Two storage reads regardless of batch size: the users' visible
        feedback rows, then helpful-vote counts for all of those rows.
        Users without activity get an all-zero snapshot.
        """
        unique = sorted(set(user_ids))
        if not unique:
            return {}

        rows = self.storage.list_feedback(user_ids=unique)
        vote_counts = self.storage.count_feedback_votes([row.id for row in rows]) if rows else {}

        review_counts: Dict[str, int] = {uid: 0 for uid in unique}
        votes_received: Dict[str, int] = {uid: 0 for uid in unique}
        targets: Dict[str, Set[str]] = {uid: set() for uid in unique}

        for row in rows:
            if row.hidden or row.user_id not in review_counts:
                continue
            review_counts[row.user_id] += 1
            votes_received[row.user_id] += vote_counts.get(row.id, 0)
            targets[row.user_id].add(row.target_id)

        return {
            uid: UserActivity(
                user_id=uid,
                review_count=review_counts[uid],
                votes_received=votes_received[uid],
                unique_targets=len(targets[uid])
            )
            for uid in unique
        }

    def compute_badges(
        self,
        user_ids: Iterable[str],
        activity: Optional[Dict[str, UserActivity]] = None
    ) -> Dict[str, List[str]]:
        """
        Badge IDs per user, in catalog order.

        Args:
            user_ids: Users to evaluate (e.g. the leaderboard's top 50)
            activity: Snapshot already gathered by collect_activity, reused if given

        Returns:
            {user_id: [badge_id, ...]}; an empty list for users with no activity
        """
        unique = sorted(set(user_ids))
        missing = [uid for uid in unique if activity is None or uid not in activity]
        snapshot = dict(activity or {})
        if missing:
            snapshot.update(self.collect_activity(missing))

        result = {uid: badges_from_activity(snapshot[uid], self.catalog) for uid in unique}
        logger.debug(f"Computed badges for {len(result)} users")
        return result

    def describe(self, badge_ids: List[str]) -> List[BadgeOut]:
        """Public {id, emoji, label} views for badge IDs, order preserved."""
        return [self._by_id[badge_id].to_public() for badge_id in badge_ids if badge_id in self._by_id]
