"""
Proposal Lifecycle - strict forward-only state machine for proposals.

DESIGN PRINCIPLES:
- No backward transitions
- Community votes promote OPEN → UNDER_REVIEW automatically; promotion is sticky
- Promotion is a compare-and-set on the stored status, so concurrent voters
  promote at most once
- All transitions logged in status_history
"""

from typing import Dict, List, Optional

from transit_civic.core.exceptions import NotFoundError, StorageError, ValidationError
from transit_civic.models.proposal import ProposalStatus, ProposalVoteResponse, StatusHistoryEntry
from transit_civic.services.vote_ledger import VoteLedger
from transit_civic.storage.base import StoragePort
from transit_civic.utils.validation import require_id
import logging

logger = logging.getLogger(__name__)

UNDER_REVIEW_THRESHOLD = 25


class ProposalLifecycle:
    """
    State machine for proposal status.

    Rules:
    - No skipping states
    - No backward transitions
    - The engine itself only ever performs OPEN → UNDER_REVIEW
    """

    # Allowed transitions map: {from_status: [to_status, ...]}
    ALLOWED_TRANSITIONS: Dict[ProposalStatus, List[ProposalStatus]] = {
        ProposalStatus.OPEN: [ProposalStatus.UNDER_REVIEW],
        ProposalStatus.UNDER_REVIEW: [ProposalStatus.CLOSED],
        ProposalStatus.CLOSED: [ProposalStatus.ARCHIVED],
        ProposalStatus.ARCHIVED: []  # Terminal state, no transitions allowed
    }

    def __init__(self, storage: StoragePort, ledger: VoteLedger, threshold: int = UNDER_REVIEW_THRESHOLD):
        self.storage = storage
        self.ledger = ledger
        self.threshold = threshold

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if a status transition is valid.

        Same status is a valid no-op; unknown status values are invalid.
        """
        try:
            from_enum = ProposalStatus(from_status)
            to_enum = ProposalStatus(to_status)
        except ValueError:
            return False

        if from_enum == to_enum:
            return True

        return to_enum in cls.ALLOWED_TRANSITIONS.get(from_enum, [])

    @classmethod
    def get_allowed_transitions(cls, current_status: str) -> List[str]:
        """List of allowed next statuses from current status."""
        try:
            current_enum = ProposalStatus(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.ALLOWED_TRANSITIONS.get(current_enum, [])]

    @classmethod
    def validate_transition(
        cls,
        current_status: str,
        new_status: str,
        changed_by: str,
        note: Optional[str] = None
    ) -> StatusHistoryEntry:
        """
        Validate a transition and build its history entry.

        Raises:
            ValidationError: If transition is invalid
        """
        if not cls.is_valid_transition(current_status, new_status):
            allowed = cls.get_allowed_transitions(current_status)
            raise ValidationError(
                f"Invalid status transition: {current_status} → {new_status}. "
                f"Allowed transitions from {current_status}: {allowed}"
            )

        return StatusHistoryEntry(
            from_status=ProposalStatus(current_status),
            to_status=ProposalStatus(new_status),
            changed_by=changed_by,
            note=note or ""
        )

    def register_vote_and_maybe_promote(self, user_id: str, proposal_id: str) -> ProposalVoteResponse:
        """
        Toggle the user's vote, then promote the proposal if it crossed the threshold.

        Proposal existence is checked before toggling. The promotion decision
        uses the count re-read after the toggle committed. If the promotion
        step fails the toggle is reverted before the StorageError propagates,
        so the whole call leaves storage as it found it and can be retried.

        Raises:
            ValidationError: empty or malformed IDs
            NotFoundError: proposal does not exist
            StorageError: persistence failed, safe to retry
        """
        user_id = require_id(user_id, "userId")
        proposal_id = require_id(proposal_id, "proposalId")

        proposal = self.storage.get_proposal(proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal", proposal_id)

        result = self.ledger.toggle_existing(user_id, proposal_id)

        status = proposal.status
        promoted = False
        if self._should_promote(status, result.vote_count):
            try:
                promoted = self._promote(proposal_id, result.vote_count)
                if promoted:
                    status = ProposalStatus.UNDER_REVIEW
                else:
                    # Someone else moved it first; report what storage holds now
                    status = self._current_status(proposal_id, fallback=status)
            except StorageError:
                self.ledger.revert_toggle(user_id, proposal_id)
                raise

        return ProposalVoteResponse(voted=result.voted, vote_count=result.vote_count, status=status, promoted=promoted)

    def reconcile(self, proposal_id: str) -> ProposalStatus:
        """
        Re-run the promotion check without toggling.

        Repairs a proposal left OPEN at or above the threshold, e.g. after the
        threshold was lowered or a vote revert itself failed; safe to call any
        number of times.
        """
        proposal_id = require_id(proposal_id, "proposalId")
        proposal = self.storage.get_proposal(proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal", proposal_id)

        vote_count = self.storage.count_proposal_votes(proposal_id)
        if self._should_promote(proposal.status, vote_count) and self._promote(proposal_id, vote_count):
            return ProposalStatus.UNDER_REVIEW
        return self._current_status(proposal_id, fallback=proposal.status)

    def _should_promote(self, status: ProposalStatus, vote_count: int) -> bool:
        return status == ProposalStatus.OPEN and vote_count >= self.threshold

    def _promote(self, proposal_id: str, vote_count: int) -> bool:
        entry = self.validate_transition(
            ProposalStatus.OPEN.value,
            ProposalStatus.UNDER_REVIEW.value,
            changed_by="system",
            note=f"Community vote threshold reached ({vote_count} >= {self.threshold})"
        )
        promoted = self.storage.promote_proposal_status(
            proposal_id,
            expected_status=ProposalStatus.OPEN,
            new_status=ProposalStatus.UNDER_REVIEW,
            history_entry=entry
        )
        if promoted:
            logger.info(f"Proposal {proposal_id} promoted OPEN → UNDER_REVIEW with {vote_count} votes")
        return promoted

    def _current_status(self, proposal_id: str, fallback: ProposalStatus) -> ProposalStatus:
        proposal = self.storage.get_proposal(proposal_id)
        return proposal.status if proposal else fallback
