"""
In-memory storage port.

Used for local development (USE_MOCK_DB=true), demos and tests. A single
process-wide lock makes each toggle and compare-and-set indivisible.
"""

from collections import Counter
from threading import RLock
from typing import Dict, Iterable, List, Optional
import logging

from transit_civic.models.feedback import FeedbackRecord, FeedbackType
from transit_civic.models.proposal import Proposal, ProposalStatus, StatusHistoryEntry
from transit_civic.storage.base import StoragePort, vote_document_id

logger = logging.getLogger(__name__)


class InMemoryStorage(StoragePort):
    """Dict-backed storage with the same guarantees as the Firestore adapter."""

    def __init__(self):
        self._lock = RLock()
        self._proposals: Dict[str, Proposal] = {}
        self._proposal_votes: Dict[str, Dict[str, str]] = {}
        self._feedback: Dict[str, FeedbackRecord] = {}
        self._feedback_votes: Dict[str, Dict[str, str]] = {}

    # Proposals

    def save_proposal(self, proposal: Proposal) -> None:
        with self._lock:
            self._proposals[proposal.id] = proposal.model_copy(deep=True)

    def get_proposal(self, proposal_id: str) -> Optional[Proposal]:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            return proposal.model_copy(deep=True) if proposal else None

    def toggle_proposal_vote(self, user_id: str, proposal_id: str) -> bool:
        key = vote_document_id(user_id, proposal_id)
        with self._lock:
            if key in self._proposal_votes:
                del self._proposal_votes[key]
                return False
            self._proposal_votes[key] = {"user_id": user_id, "proposal_id": proposal_id}
            return True

    def count_proposal_votes(self, proposal_id: str) -> int:
        with self._lock:
            return sum(1 for vote in self._proposal_votes.values() if vote["proposal_id"] == proposal_id)

    def promote_proposal_status(
        self,
        proposal_id: str,
        expected_status: ProposalStatus,
        new_status: ProposalStatus,
        history_entry: StatusHistoryEntry
    ) -> bool:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            if proposal is None or proposal.status != expected_status:
                return False
            proposal.status = new_status
            proposal.status_history.append(history_entry.model_copy())
            return True

    # Feedback

    def save_feedback(self, record: FeedbackRecord) -> None:
        with self._lock:
            self._feedback[record.id] = record.model_copy(deep=True)

    def get_feedback(self, feedback_id: str) -> Optional[FeedbackRecord]:
        with self._lock:
            record = self._feedback.get(feedback_id)
            return record.model_copy(deep=True) if record else None

    def list_feedback(
        self,
        feedback_type: Optional[FeedbackType] = None,
        target_ids: Optional[Iterable[str]] = None,
        user_ids: Optional[Iterable[str]] = None,
        include_hidden: bool = False
    ) -> List[FeedbackRecord]:
        target_filter = set(target_ids) if target_ids is not None else None
        user_filter = set(user_ids) if user_ids is not None else None

        with self._lock:
            rows = []
            for record in self._feedback.values():
                if record.hidden and not include_hidden:
                    continue
                if feedback_type is not None and record.type != feedback_type:
                    continue
                if target_filter is not None and record.target_id not in target_filter:
                    continue
                if user_filter is not None and record.user_id not in user_filter:
                    continue
                rows.append(record.model_copy(deep=True))
            return rows

    def count_feedback_by_user(self) -> Dict[str, int]:
        with self._lock:
            return dict(Counter(r.user_id for r in self._feedback.values() if not r.hidden))

    def count_feedback_votes(self, feedback_ids: Iterable[str]) -> Dict[str, int]:
        wanted = set(feedback_ids)
        with self._lock:
            return dict(Counter(
                vote["feedback_id"] for vote in self._feedback_votes.values()
                if vote["feedback_id"] in wanted
            ))

    def toggle_feedback_vote(self, user_id: str, feedback_id: str) -> bool:
        key = vote_document_id(user_id, feedback_id)
        with self._lock:
            if key in self._feedback_votes:
                del self._feedback_votes[key]
                return False
            self._feedback_votes[key] = {"user_id": user_id, "feedback_id": feedback_id}
            return True

    # Health

    def ping(self) -> Dict:
        with self._lock:
            return {
                "database": "memory",
                "proposals": len(self._proposals),
                "feedback": len(self._feedback),
            }
