"""
Contributors leaderboard and escalation lookup endpoints. No auth required.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from transit_civic.models.escalation import EscalationResult
from transit_civic.models.leaderboard import LeaderboardEntry
from transit_civic.routes.deps import get_engine
from transit_civic.services.engine import CivicFeedbackEngine

router = APIRouter(tags=["Contributors"])


class ContributorsResponse(BaseModel):
    contributors: List[LeaderboardEntry]


@router.get("/contributors", response_model=ContributorsResponse)
async def get_contributors(
    limit: Optional[int] = Query(None, description="Maximum contributors (default LEADERBOARD_SIZE)"),
    engine: CivicFeedbackEngine = Depends(get_engine)
):
    """Top contributors ranked by review count, with their badges."""
    return ContributorsResponse(contributors=engine.get_leaderboard(limit))


@router.get("/escalation", response_model=EscalationResult)
async def get_escalation(
    type: str = Query(..., description="LINE, STOP, VEHICLE, BIKE_PARK or BIKE_LANE"),
    target_id: str = Query(..., alias="targetId"),
    vote_count: int = Query(..., alias="voteCount", ge=0),
    engine: CivicFeedbackEngine = Depends(get_engine)
):
    """Which formal complaint channel a target's vote count unlocks."""
    return engine.compute_escalation(type, target_id, vote_count)
