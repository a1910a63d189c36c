"""
Vote Ledger - exactly-once-per-user upvote toggling.

Proposals get community upvotes; feedback records get "helpful" marks.
Both use the same toggle: the storage port flips the (user, entity) vote row
atomically, then the count is re-read from storage rather than adjusted
locally, so concurrent toggles by other users never make it drift.
"""

from transit_civic.core.exceptions import NotFoundError, StorageError, ValidationError
from transit_civic.models.feedback import VoteResult
from transit_civic.storage.base import StoragePort
from transit_civic.utils.validation import require_id
import logging

logger = logging.getLogger(__name__)


class VoteLedger:
    """Service for toggling votes on proposals and feedback."""

    def __init__(self, storage: StoragePort):
        self.storage = storage

    def toggle_vote(self, user_id: str, proposal_id: str) -> VoteResult:
        """
        Add the user's upvote if absent, remove it if present.

        Args:
            user_id: Authenticated user (resolved by the auth collaborator)
            proposal_id: Proposal to vote on

        Returns:
            VoteResult with the new state and the authoritative vote count

        Raises:
            ValidationError: empty or malformed IDs
            NotFoundError: proposal does not exist
            StorageError: persistence failed, safe to retry
        """
        user_id = require_id(user_id, "userId")
        proposal_id = require_id(proposal_id, "proposalId")

        if self.storage.get_proposal(proposal_id) is None:
            raise NotFoundError("Proposal", proposal_id)

        return self.toggle_existing(user_id, proposal_id)

    def toggle_existing(self, user_id: str, proposal_id: str) -> VoteResult:
        """
        Toggle on a proposal already known to exist (IDs already validated).

        If the count cannot be read the toggle is reverted before the
        StorageError propagates, so a retry starts from the prior state.
        """
        voted = self.storage.toggle_proposal_vote(user_id, proposal_id)
        try:
            # Read only after the toggle committed
            vote_count = self.storage.count_proposal_votes(proposal_id)
        except StorageError:
            self.revert_toggle(user_id, proposal_id)
            raise

        logger.info(f"Proposal {proposal_id}: user {user_id} {'added' if voted else 'removed'} vote ({vote_count} total)")
        return VoteResult(voted=voted, vote_count=vote_count)

    def revert_toggle(self, user_id: str, proposal_id: str) -> None:
        """Undo a committed toggle; toggling is its own inverse."""
        logger.warning(f"Proposal {proposal_id}: reverting vote toggle by user {user_id}")
        self.storage.toggle_proposal_vote(user_id, proposal_id)

    def count_votes(self, proposal_id: str) -> int:
        """Authoritative vote count for a proposal."""
        return self.storage.count_proposal_votes(require_id(proposal_id, "proposalId"))

    def toggle_feedback_vote(self, user_id: str, feedback_id: str) -> VoteResult:
        """
        Toggle the user's "helpful" mark on a feedback record.

        Raises:
            ValidationError: malformed IDs, or the user authored the feedback
            NotFoundError: feedback does not exist
            StorageError: persistence failed, safe to retry
        """
        user_id = require_id(user_id, "userId")
        feedback_id = require_id(feedback_id, "feedbackId")

        feedback = self.storage.get_feedback(feedback_id)
        if feedback is None:
            raise NotFoundError("Feedback", feedback_id)

        # Don't allow users to upvote their own reviews
        if feedback.user_id == user_id:
            raise ValidationError("Cannot upvote your own review")

        voted = self.storage.toggle_feedback_vote(user_id, feedback_id)
        try:
            vote_count = self.storage.count_feedback_votes([feedback_id]).get(feedback_id, 0)
        except StorageError:
            logger.warning(f"Feedback {feedback_id}: reverting helpful toggle by user {user_id}")
            self.storage.toggle_feedback_vote(user_id, feedback_id)
            raise

        return VoteResult(voted=voted, vote_count=vote_count)

    def feedback_vote_count(self, feedback_id: str) -> int:
        """Helpful marks on one feedback record."""
        feedback_id = require_id(feedback_id, "feedbackId")
        return self.storage.count_feedback_votes([feedback_id]).get(feedback_id, 0)
