"""
Feedback endpoints - rating summaries, rankings, helpful votes and escalation.
"""

from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from transit_civic.models.escalation import EscalationResult
from transit_civic.models.feedback import RatingSummary, TargetDetail, TargetRanking, VoteResult
from transit_civic.routes.deps import get_engine, require_user
from transit_civic.services.engine import CivicFeedbackEngine
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["Feedback"])


class FeedbackVoteRequest(BaseModel):
    """Body of POST /feedback/vote."""
    feedback_id: str = Field(..., description="Feedback record to mark as helpful")


class RankingsResponse(BaseModel):
    rankings: List[TargetRanking]
    total_targets: int


@router.get("/summary", response_model=Dict[str, RatingSummary])
async def feedback_summary(
    type: str = Query(..., description="LINE, STOP, VEHICLE, BIKE_PARK or BIKE_LANE"),
    target_ids: str = Query(..., alias="targetIds", description="Comma-separated target IDs (max 100)"),
    engine: CivicFeedbackEngine = Depends(get_engine)
):
    """
    Average rating and count per target.

    Example: /feedback/summary?type=STOP&targetIds=2:BRRS2,2:ABCDE
    Targets without feedback are left out of the response.
    """
    return engine.summarize_feedback(type, target_ids.split(","))


@router.get("/rankings")
async def feedback_rankings(
    type: str = Query(..., description="LINE, STOP, VEHICLE, BIKE_PARK or BIKE_LANE"),
    sort: str = Query("count", description="count | avg"),
    order: str = Query("desc", description="asc | desc"),
    limit: int = Query(50, description="Maximum targets (1-200)"),
    target_id: Optional[str] = Query(None, alias="targetId", description="Single target detail with distribution"),
    engine: CivicFeedbackEngine = Depends(get_engine)
):
    """Ranked targets, or one target's star distribution when targetId is given."""
    if target_id is not None:
        detail: TargetDetail = engine.describe_target(type, target_id)
        return detail

    rankings = engine.rank_targets(type, sort=sort, order=order, limit=limit)
    return RankingsResponse(rankings=rankings, total_targets=len(rankings))


@router.post("/vote", response_model=VoteResult)
async def toggle_feedback_vote(
    body: FeedbackVoteRequest,
    user_id: str = Depends(require_user),
    engine: CivicFeedbackEngine = Depends(get_engine)
):
    """Toggle the caller's helpful mark on someone else's feedback."""
    return engine.toggle_feedback_vote(user_id, body.feedback_id)


@router.get("/{feedback_id}/escalation", response_model=EscalationResult)
async def feedback_escalation(feedback_id: str, engine: CivicFeedbackEngine = Depends(get_engine)):
    """Escalation tier for a feedback record plus pre-filled complaint text."""
    return engine.feedback_escalation(feedback_id)
