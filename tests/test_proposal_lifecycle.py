"""Tests for the proposal state machine and vote-driven promotion."""

import pytest

from transit_civic.core.exceptions import NotFoundError, StorageError, ValidationError
from transit_civic.models.proposal import Proposal, ProposalStatus
from transit_civic.services.proposal_lifecycle import ProposalLifecycle
from transit_civic.services.vote_ledger import VoteLedger
from transit_civic.storage import InMemoryStorage

pytestmark = pytest.mark.unit


class FlakyPromotionStorage(InMemoryStorage):
    """Votes commit, but the first `failures` status writes fail."""

    def __init__(self, failures: int = 1):
        super().__init__()
        self.failures = failures

    def promote_proposal_status(self, *args, **kwargs):
        if self.failures > 0:
            self.failures -= 1
            raise StorageError("Failed to promote proposal: deadline exceeded")
        return super().promote_proposal_status(*args, **kwargs)


class FlakyCountStorage(InMemoryStorage):
    """Toggles commit, but counting fails until healed."""

    def __init__(self):
        super().__init__()
        self.fail_count = True

    def count_proposal_votes(self, proposal_id):
        if self.fail_count:
            raise StorageError("Failed to count proposal votes: unavailable")
        return super().count_proposal_votes(proposal_id)


def _lifecycle(storage, threshold: int = 25) -> ProposalLifecycle:
    return ProposalLifecycle(storage, VoteLedger(storage), threshold=threshold)


def _cast(lifecycle, proposal_id: str, voters):
    result = None
    for user_id in voters:
        result = lifecycle.register_vote_and_maybe_promote(user_id, proposal_id)
    return result


class TestTransitions:

    @pytest.mark.parametrize("current,new,expected", [
        ("OPEN", "UNDER_REVIEW", True),
        ("UNDER_REVIEW", "CLOSED", True),
        ("CLOSED", "ARCHIVED", True),
        ("OPEN", "OPEN", True),
        ("OPEN", "CLOSED", False),
        ("UNDER_REVIEW", "OPEN", False),
        ("ARCHIVED", "OPEN", False),
        ("OPEN", "REJECTED", False),
    ])
    def test_transition_table(self, current, new, expected):
        assert ProposalLifecycle.is_valid_transition(current, new) is expected

    def test_archived_is_terminal(self):
        assert ProposalLifecycle.get_allowed_transitions("ARCHIVED") == []

    def test_validate_transition_builds_history_entry(self):
        entry = ProposalLifecycle.validate_transition("OPEN", "UNDER_REVIEW", changed_by="system", note="threshold")

        assert entry.from_status == ProposalStatus.OPEN
        assert entry.to_status == ProposalStatus.UNDER_REVIEW
        assert entry.changed_by == "system"

    def test_backward_transition_rejected(self):
        with pytest.raises(ValidationError, match="Invalid status transition"):
            ProposalLifecycle.validate_transition("UNDER_REVIEW", "OPEN", changed_by="admin")


class TestPromotion:

    def test_below_threshold_stays_open(self, storage, make_proposal):
        make_proposal("p1")
        lifecycle = _lifecycle(storage)

        result = _cast(lifecycle, "p1", [f"u{i}" for i in range(24)])

        assert result.vote_count == 24
        assert result.status == ProposalStatus.OPEN
        assert result.promoted is False

    def test_threshold_vote_promotes(self, storage, make_proposal):
        make_proposal("p1")
        lifecycle = _lifecycle(storage)
        _cast(lifecycle, "p1", [f"u{i}" for i in range(24)])

        result = lifecycle.register_vote_and_maybe_promote("u24", "p1")

        assert result.vote_count == 25
        assert result.status == ProposalStatus.UNDER_REVIEW
        assert result.promoted is True

        stored = storage.get_proposal("p1")
        assert stored.status == ProposalStatus.UNDER_REVIEW
        assert len(stored.status_history) == 1
        assert stored.status_history[0].changed_by == "system"
        assert "25 >= 25" in stored.status_history[0].note

    def test_promotion_is_sticky(self, storage, make_proposal):
        make_proposal("p1")
        lifecycle = _lifecycle(storage)
        voters = [f"u{i}" for i in range(25)]
        _cast(lifecycle, "p1", voters)

        result = _cast(lifecycle, "p1", voters[:10])

        assert result.vote_count == 15
        assert result.status == ProposalStatus.UNDER_REVIEW
        assert result.promoted is False

    def test_promotion_recorded_once(self, storage, make_proposal):
        make_proposal("p1")
        lifecycle = _lifecycle(storage)

        _cast(lifecycle, "p1", [f"u{i}" for i in range(30)])

        assert len(storage.get_proposal("p1").status_history) == 1

    @pytest.mark.parametrize("status", [ProposalStatus.CLOSED, ProposalStatus.ARCHIVED])
    def test_closed_proposals_never_reopened(self, storage, make_proposal, status):
        make_proposal("p1", status=status)
        lifecycle = _lifecycle(storage, threshold=1)

        result = lifecycle.register_vote_and_maybe_promote("u1", "p1")

        assert result.status == status
        assert result.vote_count == 1

    def test_missing_proposal(self, storage):
        with pytest.raises(NotFoundError):
            _lifecycle(storage).register_vote_and_maybe_promote("u1", "ghost")


class TestFailedPromotion:

    def test_failed_promotion_reverts_the_vote(self):
        storage = FlakyPromotionStorage(failures=1)
        storage.save_proposal(Proposal(id="p1", title="Bike lane on Rua de Cedofeita"))
        lifecycle = _lifecycle(storage, threshold=2)
        lifecycle.register_vote_and_maybe_promote("u1", "p1")

        with pytest.raises(StorageError) as exc:
            lifecycle.register_vote_and_maybe_promote("u2", "p1")

        assert exc.value.retryable is True
        assert storage.count_proposal_votes("p1") == 1
        assert storage.get_proposal("p1").status == ProposalStatus.OPEN

    def test_retry_after_failure_adds_vote_and_promotes(self):
        storage = FlakyPromotionStorage(failures=1)
        storage.save_proposal(Proposal(id="p1", title="Bike lane on Rua de Cedofeita"))
        lifecycle = _lifecycle(storage, threshold=2)
        lifecycle.register_vote_and_maybe_promote("u1", "p1")
        with pytest.raises(StorageError):
            lifecycle.register_vote_and_maybe_promote("u2", "p1")

        result = lifecycle.register_vote_and_maybe_promote("u2", "p1")

        assert result.voted is True
        assert result.vote_count == 2
        assert result.status == ProposalStatus.UNDER_REVIEW
        assert result.promoted is True
        assert len(storage.get_proposal("p1").status_history) == 1

    def test_failed_count_reverts_the_vote(self):
        storage = FlakyCountStorage()
        storage.save_proposal(Proposal(id="p1", title="Night line to Gaia"))

        with pytest.raises(StorageError):
            _lifecycle(storage).register_vote_and_maybe_promote("u1", "p1")

        storage.fail_count = False
        assert storage.count_proposal_votes("p1") == 0


class TestReconcile:

    def test_reconcile_promotes_proposal_left_over_threshold(self, storage, make_proposal):
        make_proposal("p1")
        # Votes written without going through the lifecycle
        storage.toggle_proposal_vote("u1", "p1")
        storage.toggle_proposal_vote("u2", "p1")
        lifecycle = _lifecycle(storage, threshold=2)

        assert lifecycle.reconcile("p1") == ProposalStatus.UNDER_REVIEW
        assert lifecycle.reconcile("p1") == ProposalStatus.UNDER_REVIEW
        assert len(storage.get_proposal("p1").status_history) == 1

    def test_reconcile_below_threshold_is_noop(self, storage, make_proposal):
        make_proposal("p1")

        assert _lifecycle(storage).reconcile("p1") == ProposalStatus.OPEN
