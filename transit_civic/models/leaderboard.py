"""
Leaderboard and badge models (derived, never persisted).
"""

from pydantic import BaseModel, Field
from typing import List


class BadgeOut(BaseModel):
    """Public view of a badge."""
    id: str
    emoji: str
    label: str


class LeaderboardEntry(BaseModel):
    """One ranked contributor."""
    rank: int = Field(..., ge=1, description="1-based position")
    user_id: str
    review_count: int = Field(..., ge=0)
    total_votes: int = Field(..., ge=0, description="Helpful marks received on the user's feedback")
    badges: List[BadgeOut] = Field(default_factory=list)
