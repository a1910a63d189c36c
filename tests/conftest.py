"""Shared fixtures for the transit civic feedback test suite."""

from datetime import datetime
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from transit_civic.core.settings import Settings
from transit_civic.main import create_app
from transit_civic.models.feedback import FeedbackRecord, FeedbackType
from transit_civic.models.proposal import Proposal, ProposalStatus
from transit_civic.services.engine import CivicFeedbackEngine
from transit_civic.storage import InMemoryStorage


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP surface over in-memory storage)")


# ============================================================================
# Storage and engine
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(USE_MOCK_DB=True, CORS_ORIGINS="http://localhost:3000")


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def engine(storage, test_settings) -> CivicFeedbackEngine:
    return CivicFeedbackEngine(storage, test_settings)


@pytest.fixture
def client(storage, test_settings) -> TestClient:
    return TestClient(create_app(test_settings, storage=storage))


# ============================================================================
# Data builders
# ============================================================================


@pytest.fixture
def make_proposal(storage):
    """Save a proposal and return it."""

    def _make(proposal_id: str = "p1", status: ProposalStatus = ProposalStatus.OPEN, **kwargs) -> Proposal:
        proposal = Proposal(id=proposal_id, status=status, title=kwargs.pop("title", "More night buses"), **kwargs)
        storage.save_proposal(proposal)
        return proposal

    return _make


@pytest.fixture
def make_feedback(storage):
    """Save a feedback record and return it. IDs are generated when omitted."""
    counter = {"n": 0}

    def _make(
        user_id: str = "u1",
        target_id: str = "205",
        rating: int = 4,
        feedback_type: FeedbackType = FeedbackType.LINE,
        feedback_id: Optional[str] = None,
        comment: Optional[str] = None,
        tags: Optional[List[str]] = None,
        hidden: bool = False,
        created_at: Optional[datetime] = None
    ) -> FeedbackRecord:
        counter["n"] += 1
        record = FeedbackRecord(
            id=feedback_id or f"f{counter['n']}",
            type=feedback_type,
            target_id=target_id,
            user_id=user_id,
            rating=rating,
            comment=comment,
            tags=tags or [],
            hidden=hidden,
            created_at=created_at or datetime(2024, 6, 15, 10, 30)
        )
        storage.save_feedback(record)
        return record

    return _make
