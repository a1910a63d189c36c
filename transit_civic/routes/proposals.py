"""
Proposal endpoints - community upvotes with automatic promotion.
"""

from fastapi import APIRouter, Depends

from transit_civic.models.proposal import ProposalStatus, ProposalVoteRequest, ProposalVoteResponse
from transit_civic.routes.deps import get_engine, require_user
from transit_civic.services.engine import CivicFeedbackEngine
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proposals", tags=["Proposals"])


@router.post("/vote", response_model=ProposalVoteResponse)
async def toggle_proposal_vote(
    body: ProposalVoteRequest,
    user_id: str = Depends(require_user),
    engine: CivicFeedbackEngine = Depends(get_engine)
):
    """
    Toggle the caller's upvote on a proposal.

    Reaching the review threshold moves an OPEN proposal to UNDER_REVIEW;
    removing votes later never moves it back.
    """
    return engine.toggle_proposal_vote(user_id, body.proposal_id)


@router.post("/{proposal_id}/reconcile")
async def reconcile_proposal(proposal_id: str, engine: CivicFeedbackEngine = Depends(get_engine)):
    """Re-run the promotion check (repairs a vote whose promotion write failed)."""
    new_status: ProposalStatus = engine.reconcile_proposal(proposal_id)
    return {"proposal_id": proposal_id, "status": new_status}
