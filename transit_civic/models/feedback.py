"""
Pydantic models for transit feedback and the aggregates derived from it.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional
from enum import Enum


class FeedbackType(str, Enum):
    """Kinds of rated transit targets."""
    LINE = "LINE"
    STOP = "STOP"
    VEHICLE = "VEHICLE"
    BIKE_PARK = "BIKE_PARK"
    BIKE_LANE = "BIKE_LANE"


class FeedbackRecord(BaseModel):
    """
    One user's rating of one target.
    The engine only reads these; moderation sets `hidden` elsewhere.
    """
    id: str = Field(..., description="Storage document ID")
    type: FeedbackType = Field(..., description="Kind of target being rated")
    target_id: str = Field(..., min_length=1, max_length=100, description="Line number, stop code, vehicle ID, ...")
    user_id: str = Field(..., description="Author of the feedback")
    rating: int = Field(..., ge=1, le=5, description="Star rating 1-5")
    comment: Optional[str] = Field(None, max_length=2000, description="Free-text comment")
    tags: List[str] = Field(default_factory=list, description="Issue tags (delays, overcrowding, ...)")
    hidden: bool = Field(default=False, description="Hidden by moderation")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="When the feedback was left")

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, tags: List[str]) -> List[str]:
        # Keep first occurrence so rendering order is stable
        seen = []
        for tag in tags:
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class RatingSummary(BaseModel):
    """Average rating and count for one target."""
    avg: float = Field(..., ge=0.0, le=5.0)
    count: int = Field(..., ge=0)


class TargetDetail(BaseModel):
    """Summary plus star distribution (index 0 = one star)."""
    target_id: str
    avg: float
    count: int
    distribution: List[int] = Field(default_factory=lambda: [0, 0, 0, 0, 0])


class TargetRanking(BaseModel):
    """One row of a ranked list of targets."""
    target_id: str
    avg: float
    count: int


class VoteResult(BaseModel):
    """Outcome of a vote toggle."""
    voted: bool
    vote_count: int = Field(..., ge=0)


class UserActivity(BaseModel):
    """Aggregate contribution snapshot for one user (non-hidden feedback only)."""
    user_id: str
    review_count: int = 0
    votes_received: int = 0
    unique_targets: int = 0
