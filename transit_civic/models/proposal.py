"""
Pydantic models for community improvement proposals.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from enum import Enum


class ProposalStatus(str, Enum):
    """
    Proposal lifecycle, forward-only:
    OPEN → UNDER_REVIEW → CLOSED → ARCHIVED
    """
    OPEN = "OPEN"                  # Initial state, collecting votes
    UNDER_REVIEW = "UNDER_REVIEW"  # Enough community support, sent for review
    CLOSED = "CLOSED"              # Decided by the operator
    ARCHIVED = "ARCHIVED"          # Kept for history only


class StatusHistoryEntry(BaseModel):
    """Status transition history entry."""
    from_status: ProposalStatus = Field(..., description="Previous status")
    to_status: ProposalStatus = Field(..., description="New status")
    changed_by: str = Field(..., description="User/system that made the change")
    note: str = Field(default="", description="Why the status changed")
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class Proposal(BaseModel):
    """A community-submitted improvement suggestion."""
    id: str = Field(..., description="Storage document ID")
    type: Optional[str] = Field(None, description="LINE, STOP or BIKE_LANE")
    title: Optional[str] = Field(None, max_length=120)
    target_id: Optional[str] = Field(None, max_length=100)
    status: ProposalStatus = Field(default=ProposalStatus.OPEN)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)


class ProposalVoteRequest(BaseModel):
    """Body of POST /proposals/vote."""
    proposal_id: str = Field(..., description="Proposal to toggle the caller's upvote on")

    class Config:
        json_schema_extra = {"example": {"proposal_id": "p_7d2c1a"}}


class ProposalVoteResponse(BaseModel):
    """Result of toggling a proposal vote."""
    voted: bool
    vote_count: int
    status: ProposalStatus
    promoted: bool = Field(default=False, description="True if this vote moved the proposal to UNDER_REVIEW")
