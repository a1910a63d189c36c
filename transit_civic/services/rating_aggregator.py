"""
Rating Aggregator - turn raw feedback rows into summary ratings.

Hidden feedback never counts. Targets without visible feedback are absent
from summaries rather than reported with a zero count.
"""

from transit_civic.core.exceptions import ValidationError
from transit_civic.models.feedback import (
    FeedbackRecord, FeedbackType, RatingSummary, TargetDetail, TargetRanking
)
from transit_civic.storage.base import StoragePort
from transit_civic.utils.validation import shape_target_ids
from typing import Dict, Iterable, List, Optional
from collections import defaultdict
import logging
import math

logger = logging.getLogger(__name__)

MAX_RANKING_LIMIT = 200


def round_rating(value: float) -> float:
    """One decimal, half away from zero (4.25 -> 4.3). Ratings are positive."""
    return math.floor(value * 10 + 0.5) / 10


def summarize_rows(rows: Iterable[FeedbackRecord]) -> Dict[str, RatingSummary]:
    """Group visible rows by target and average their ratings."""
    totals: Dict[str, int] = defaultdict(int)
    counts: Dict[str, int] = defaultdict(int)

    for row in rows:
        if row.hidden:
            continue
        totals[row.target_id] += row.rating
        counts[row.target_id] += 1

    return {
        target_id: RatingSummary(avg=round_rating(totals[target_id] / count), count=count)
        for target_id, count in counts.items()
    }


def rating_distribution(rows: Iterable[FeedbackRecord]) -> List[int]:
    """Star histogram: index 0 = one star, index 4 = five stars."""
    distribution = [0, 0, 0, 0, 0]
    for row in rows:
        if row.hidden:
            continue
        if 1 <= row.rating <= 5:
            distribution[row.rating - 1] += 1
    return distribution


class RatingAggregator:
    """Read-only aggregation over feedback fetched through the storage port."""

    def __init__(self, storage: StoragePort, max_target_ids: int = 100, max_target_id_length: int = 100):
        self.storage = storage
        self.max_target_ids = max_target_ids
        self.max_target_id_length = max_target_id_length

    def summarize(self, feedback_type: FeedbackType, target_ids: Iterable[str]) -> Dict[str, RatingSummary]:
        """
        Average rating and count per target.

        Args:
            feedback_type: Kind of target (LINE, STOP, ...)
            target_ids: Targets to summarize; empty or overlong entries are dropped

        Returns:
            {target_id: RatingSummary} for targets with at least one visible row

        Raises:
            ValidationError: no usable IDs, or more than max_target_ids
        """
        shaped = shape_target_ids(target_ids, self.max_target_ids, self.max_target_id_length)
        rows = self.storage.list_feedback(feedback_type=feedback_type, target_ids=shaped)
        summaries = summarize_rows(rows)
        logger.debug(f"Summarized {len(rows)} {feedback_type.value} rows into {len(summaries)} targets")
        return summaries

    def describe_target(self, feedback_type: FeedbackType, target_id: str) -> TargetDetail:
        """Summary plus star distribution for a single target."""
        target_id = shape_target_ids([target_id], 1, self.max_target_id_length)[0]
        rows = self.storage.list_feedback(feedback_type=feedback_type, target_ids=[target_id])

        summary = summarize_rows(rows).get(target_id)
        return TargetDetail(
            target_id=target_id,
            avg=summary.avg if summary else 0.0,
            count=summary.count if summary else 0,
            distribution=rating_distribution(rows)
        )

    def rank_targets(
        self,
        feedback_type: FeedbackType,
        sort: str = "count",
        order: str = "desc",
        limit: int = 50,
        min_count: int = 1,
        target_ids: Optional[Iterable[str]] = None
    ) -> List[TargetRanking]:
        """
        Rank every target of a type by review count or average rating.

        Ties on the sort key are broken by target_id ascending so repeated
        calls return the same order.
        """
        if sort not in ("count", "avg"):
            raise ValidationError("sort must be 'count' or 'avg'")
        if order not in ("asc", "desc"):
            raise ValidationError("order must be 'asc' or 'desc'")
        if limit < 1 or limit > MAX_RANKING_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_RANKING_LIMIT}")

        rows = self.storage.list_feedback(feedback_type=feedback_type, target_ids=target_ids)
        summaries = [
            TargetRanking(target_id=target_id, avg=summary.avg, count=summary.count)
            for target_id, summary in summarize_rows(rows).items()
            if summary.count >= min_count
        ]

        sign = -1 if order == "desc" else 1
        summaries.sort(key=lambda r: (sign * getattr(r, sort), r.target_id))
        return summaries[:limit]
