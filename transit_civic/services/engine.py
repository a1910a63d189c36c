"""
Civic Feedback Engine - the operations the request layer calls.

One engine per process, built by the host around one storage port. The
engine keeps no mutable state of its own; everything lives in storage.
"""

from typing import Dict, Iterable, List, Optional

from transit_civic.core.exceptions import NotFoundError
from transit_civic.core.settings import Settings
from transit_civic.models.escalation import EscalationResult
from transit_civic.models.feedback import RatingSummary, TargetDetail, TargetRanking, VoteResult
from transit_civic.models.leaderboard import LeaderboardEntry
from transit_civic.models.proposal import ProposalStatus, ProposalVoteResponse
from transit_civic.services.badge_engine import BadgeEngine
from transit_civic.services.escalation_engine import (
    LIVRO_RECLAMACOES_URL, PORTAL_QUEIXA_URL, EscalationTier, EscalationTracker, build_complaint_context
)
from transit_civic.services.leaderboard import LeaderboardRanker
from transit_civic.services.proposal_lifecycle import ProposalLifecycle
from transit_civic.services.rating_aggregator import RatingAggregator
from transit_civic.services.vote_ledger import VoteLedger
from transit_civic.storage.base import StoragePort
from transit_civic.utils.validation import require_feedback_type, require_id, shape_target_ids
import logging

logger = logging.getLogger(__name__)


class CivicFeedbackEngine:
    """Facade over the vote, rating, escalation, badge and leaderboard services."""

    def __init__(self, storage: StoragePort, settings: Optional[Settings] = None):
        self.storage = storage
        self.leaderboard_size = settings.LEADERBOARD_SIZE if settings else 50

        self.ledger = VoteLedger(storage)
        self.lifecycle = ProposalLifecycle(
            storage,
            self.ledger,
            threshold=settings.UNDER_REVIEW_THRESHOLD if settings else 25
        )
        self.aggregator = RatingAggregator(
            storage,
            max_target_ids=settings.MAX_TARGET_IDS if settings else 100,
            max_target_id_length=settings.MAX_TARGET_ID_LENGTH if settings else 100
        )
        self.escalation = EscalationTracker(self._escalation_tiers(settings))
        self.badges = BadgeEngine(storage)
        self.leaderboard = LeaderboardRanker(storage, self.badges)

    @staticmethod
    def _escalation_tiers(settings: Optional[Settings]) -> Optional[List[EscalationTier]]:
        if settings is None:
            return None
        return [
            EscalationTier(tier=2, threshold=settings.ESCALATION_TIER2_THRESHOLD,
                           channel="Portal da Queixa", portal_url=PORTAL_QUEIXA_URL),
            EscalationTier(tier=3, threshold=settings.ESCALATION_TIER3_THRESHOLD,
                           channel="Livro de Reclamações", portal_url=LIVRO_RECLAMACOES_URL),
        ]

    # Votes

    def toggle_proposal_vote(self, user_id: str, proposal_id: str) -> ProposalVoteResponse:
        return self.lifecycle.register_vote_and_maybe_promote(user_id, proposal_id)

    def reconcile_proposal(self, proposal_id: str) -> ProposalStatus:
        return self.lifecycle.reconcile(proposal_id)

    def toggle_feedback_vote(self, user_id: str, feedback_id: str) -> VoteResult:
        return self.ledger.toggle_feedback_vote(user_id, feedback_id)

    # Ratings

    def summarize_feedback(self, feedback_type: str, target_ids: Iterable[str]) -> Dict[str, RatingSummary]:
        return self.aggregator.summarize(require_feedback_type(feedback_type), target_ids)

    def describe_target(self, feedback_type: str, target_id: str) -> TargetDetail:
        return self.aggregator.describe_target(require_feedback_type(feedback_type), target_id)

    def rank_targets(
        self,
        feedback_type: str,
        sort: str = "count",
        order: str = "desc",
        limit: int = 50,
        min_count: int = 1
    ) -> List[TargetRanking]:
        return self.aggregator.rank_targets(
            require_feedback_type(feedback_type), sort=sort, order=order, limit=limit, min_count=min_count
        )

    # Escalation

    def compute_escalation(self, feedback_type: str, target_id: str, vote_count: int) -> EscalationResult:
        feedback_type = require_feedback_type(feedback_type)
        target_id = shape_target_ids([target_id], 1, self.aggregator.max_target_id_length)[0]
        return self.escalation.escalation_for(feedback_type, target_id, vote_count)

    def feedback_escalation(self, feedback_id: str) -> EscalationResult:
        """Escalation tier for one feedback record, with its complaint text."""
        feedback_id = require_id(feedback_id, "feedbackId")
        record = self.storage.get_feedback(feedback_id)
        if record is None or record.hidden:
            raise NotFoundError("Feedback", feedback_id)

        vote_count = self.ledger.feedback_vote_count(feedback_id)
        result = self.escalation.escalation_for(record.type, record.target_id, vote_count)
        result.complaint_context = build_complaint_context(record, vote_count)
        return result

    # Contributors

    def get_leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        return self.leaderboard.top_contributors(self.leaderboard_size if limit is None else limit)

    def compute_badges(self, user_ids: Iterable[str]) -> Dict[str, List[str]]:
        return self.badges.compute_badges(user_ids)
