from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional
import logging

from transit_civic.models.feedback import FeedbackRecord, FeedbackType
from transit_civic.models.proposal import Proposal, ProposalStatus, StatusHistoryEntry

logger = logging.getLogger(__name__)


class StoragePort(ABC):
    """
    Persistence contract the engine depends on.

    Contract:
    - toggle_*_vote MUST be atomic per (user, entity) pair: insert the vote
      row if absent, otherwise delete it, as one indivisible step. Two
      concurrent toggles by the same user on the same entity must serialize.
    - count_* reads issued after a toggle returns MUST observe that toggle.
    - promote_proposal_status MUST be a compare-and-set on the stored status.
    - Backend failures MUST surface as StorageError, never as raw driver
      exceptions and never as silently empty results.
    - Reads that match nothing return empty containers.
    """

    # Proposals

    @abstractmethod
    def save_proposal(self, proposal: Proposal) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_proposal(self, proposal_id: str) -> Optional[Proposal]:
        raise NotImplementedError

    @abstractmethod
    def toggle_proposal_vote(self, user_id: str, proposal_id: str) -> bool:
        """Returns True if a vote was created, False if one was removed."""
        raise NotImplementedError

    @abstractmethod
    def count_proposal_votes(self, proposal_id: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def promote_proposal_status(
        self,
        proposal_id: str,
        expected_status: ProposalStatus,
        new_status: ProposalStatus,
        history_entry: StatusHistoryEntry
    ) -> bool:
        """
        Set status to new_status only if it is currently expected_status.
        Returns True when the write happened.
        """
        raise NotImplementedError

    # Feedback

    @abstractmethod
    def save_feedback(self, record: FeedbackRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_feedback(self, feedback_id: str) -> Optional[FeedbackRecord]:
        raise NotImplementedError

    @abstractmethod
    def list_feedback(
        self,
        feedback_type: Optional[FeedbackType] = None,
        target_ids: Optional[Iterable[str]] = None,
        user_ids: Optional[Iterable[str]] = None,
        include_hidden: bool = False
    ) -> List[FeedbackRecord]:
        raise NotImplementedError

    @abstractmethod
    def count_feedback_by_user(self) -> Dict[str, int]:
        """Group non-hidden feedback by author: {user_id: count}."""
        raise NotImplementedError

    @abstractmethod
    def count_feedback_votes(self, feedback_ids: Iterable[str]) -> Dict[str, int]:
        """Group helpful marks by feedback: {feedback_id: count}, zero counts omitted."""
        raise NotImplementedError

    @abstractmethod
    def toggle_feedback_vote(self, user_id: str, feedback_id: str) -> bool:
        """Returns True if a vote was created, False if one was removed."""
        raise NotImplementedError

    # Health

    @abstractmethod
    def ping(self) -> Dict:
        """Lightweight connectivity check; raises StorageError when unreachable."""
        raise NotImplementedError


def vote_document_id(user_id: str, entity_id: str) -> str:
    """
    Deterministic vote row key; uniqueness of (user, entity) follows from it.
    IDs never contain ":" (see utils.validation), so keys cannot collide.
    """
    return f"{user_id}:{entity_id}"
