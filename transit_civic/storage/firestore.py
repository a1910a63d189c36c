"""
Firestore storage port.

Collections:
- proposals        {type, title, target_id, status, created_at, status_history[]}
- proposal_votes   doc id "<user_id>:<proposal_id>" {user_id, proposal_id, created_at}
- feedback         {type, target_id, user_id, rating, comment, tags[], hidden, created_at}
- feedback_votes   doc id "<user_id>:<feedback_id>" {user_id, feedback_id, created_at}

Vote uniqueness comes from the deterministic document ID; the toggle reads and
writes that document inside one transaction, so concurrent toggles by the same
user serialize on that one document.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional
import logging

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from transit_civic.core.exceptions import StorageError
from transit_civic.models.feedback import FeedbackRecord, FeedbackType
from transit_civic.models.proposal import Proposal, ProposalStatus, StatusHistoryEntry
from transit_civic.storage.base import StoragePort, vote_document_id
from transit_civic.utils.firestore_helpers import chunked, snapshot_to_dict, where_filter

logger = logging.getLogger(__name__)

PROPOSALS = "proposals"
PROPOSAL_VOTES = "proposal_votes"
FEEDBACK = "feedback"
FEEDBACK_VOTES = "feedback_votes"


class FirestoreStorage(StoragePort):
    """Storage port backed by a firebase_admin Firestore client."""

    def __init__(self, db):
        self.db = db

    # Proposals

    def save_proposal(self, proposal: Proposal) -> None:
        data = proposal.model_dump(exclude={"id"})
        data["status"] = proposal.status.value
        data["status_history"] = [self._history_to_document(entry) for entry in proposal.status_history]
        self._guard("save proposal", lambda: self.db.collection(PROPOSALS).document(proposal.id).set(data))

    def get_proposal(self, proposal_id: str) -> Optional[Proposal]:
        doc = self._guard("get proposal", lambda: self.db.collection(PROPOSALS).document(proposal_id).get())
        if not doc.exists:
            return None
        return Proposal(**snapshot_to_dict(doc))

    def toggle_proposal_vote(self, user_id: str, proposal_id: str) -> bool:
        vote_ref = self.db.collection(PROPOSAL_VOTES).document(vote_document_id(user_id, proposal_id))
        return self._toggle(vote_ref, {"user_id": user_id, "proposal_id": proposal_id})

    def count_proposal_votes(self, proposal_id: str) -> int:
        query = where_filter(self.db.collection(PROPOSAL_VOTES), "proposal_id", "==", proposal_id)
        return self._guard("count proposal votes", lambda: len(list(query.stream())))

    def promote_proposal_status(
        self,
        proposal_id: str,
        expected_status: ProposalStatus,
        new_status: ProposalStatus,
        history_entry: StatusHistoryEntry
    ) -> bool:
        proposal_ref = self.db.collection(PROPOSALS).document(proposal_id)

        @firestore.transactional
        def _compare_and_set(transaction) -> bool:
            snapshot = proposal_ref.get(transaction=transaction)
            if not snapshot.exists:
                return False
            current = (snapshot.to_dict() or {}).get("status", ProposalStatus.OPEN.value)
            if current != expected_status.value:
                return False
            transaction.update(proposal_ref, {
                "status": new_status.value,
                "status_history": firestore.ArrayUnion([self._history_to_document(history_entry)]),
                "updated_at": firestore.SERVER_TIMESTAMP
            })
            return True

        return self._guard("promote proposal", lambda: _compare_and_set(self.db.transaction()))

    # Feedback

    def save_feedback(self, record: FeedbackRecord) -> None:
        data = record.model_dump(exclude={"id"})
        data["type"] = record.type.value
        self._guard("save feedback", lambda: self.db.collection(FEEDBACK).document(record.id).set(data))

    def get_feedback(self, feedback_id: str) -> Optional[FeedbackRecord]:
        doc = self._guard("get feedback", lambda: self.db.collection(FEEDBACK).document(feedback_id).get())
        if not doc.exists:
            return None
        return FeedbackRecord(**snapshot_to_dict(doc))

    def list_feedback(
        self,
        feedback_type: Optional[FeedbackType] = None,
        target_ids: Optional[Iterable[str]] = None,
        user_ids: Optional[Iterable[str]] = None,
        include_hidden: bool = False
    ) -> List[FeedbackRecord]:
        query = self.db.collection(FEEDBACK)
        if feedback_type is not None:
            query = where_filter(query, "type", "==", feedback_type.value)
        if not include_hidden:
            query = where_filter(query, "hidden", "==", False)

        # Only one "in" filter per query: push target_ids down, filter users locally
        target_filter = sorted(set(target_ids)) if target_ids is not None else None
        user_filter = set(user_ids) if user_ids is not None else None

        queries = []
        if target_filter is not None:
            queries = [where_filter(query, "target_id", "in", batch) for batch in chunked(target_filter)]
        elif user_filter is not None:
            queries = [where_filter(query, "user_id", "in", batch) for batch in chunked(sorted(user_filter))]
        else:
            queries = [query]

        def _run() -> List[FeedbackRecord]:
            rows = []
            for q in queries:
                for doc in q.stream():
                    record = FeedbackRecord(**snapshot_to_dict(doc))
                    if user_filter is not None and record.user_id not in user_filter:
                        continue
                    rows.append(record)
            return rows

        return self._guard("list feedback", _run)

    def count_feedback_by_user(self) -> Dict[str, int]:
        query = where_filter(self.db.collection(FEEDBACK), "hidden", "==", False).select(["user_id"])

        def _run() -> Dict[str, int]:
            return dict(Counter((doc.to_dict() or {}).get("user_id") for doc in query.stream()))

        counts = self._guard("group feedback by user", _run)
        counts.pop(None, None)
        return counts

    def count_feedback_votes(self, feedback_ids: Iterable[str]) -> Dict[str, int]:
        votes = self.db.collection(FEEDBACK_VOTES)

        def _run() -> Dict[str, int]:
            counts: Counter = Counter()
            for batch in chunked(sorted(set(feedback_ids))):
                query = where_filter(votes, "feedback_id", "in", batch)
                for doc in query.stream():
                    counts[(doc.to_dict() or {}).get("feedback_id")] += 1
            return dict(counts)

        return self._guard("count feedback votes", _run)

    def toggle_feedback_vote(self, user_id: str, feedback_id: str) -> bool:
        vote_ref = self.db.collection(FEEDBACK_VOTES).document(vote_document_id(user_id, feedback_id))
        return self._toggle(vote_ref, {"user_id": user_id, "feedback_id": feedback_id})

    # Health

    def ping(self) -> Dict:
        collections = self._guard("list collections", lambda: list(self.db.collections()))
        return {"database": "firestore", "collections_count": len(collections)}

    # Internals

    def _toggle(self, vote_ref, vote_data: Dict) -> bool:
        """Insert-if-absent-else-delete on one vote document, atomically."""

        @firestore.transactional
        def _insert_or_delete(transaction) -> bool:
            snapshot = vote_ref.get(transaction=transaction)
            if snapshot.exists:
                transaction.delete(vote_ref)
                return False
            transaction.set(vote_ref, {**vote_data, "created_at": firestore.SERVER_TIMESTAMP})
            return True

        return self._guard("toggle vote", lambda: _insert_or_delete(self.db.transaction()))

    def _guard(self, action: str, operation):
        """Run a Firestore call, translating driver failures into StorageError."""
        try:
            return operation()
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Firestore failed to {action}: {e}", exc_info=True)
            raise StorageError(f"Failed to {action}: {e}") from e
        except ValueError as e:
            # Transaction runner giving up on contention, or a stored row that no longer parses
            logger.error(f"Firestore could not {action}: {e}", exc_info=True)
            raise StorageError(f"Failed to {action}: {e}") from e

    @staticmethod
    def _history_to_document(entry: StatusHistoryEntry) -> Dict:
        return {
            "from_status": entry.from_status.value,
            "to_status": entry.to_status.value,
            "changed_by": entry.changed_by,
            "note": entry.note,
            "timestamp": entry.timestamp,
        }
