"""
Escalation models - tier for a target and where to file the complaint.
"""

from pydantic import BaseModel
from typing import Optional


class EscalationResult(BaseModel):
    """Escalation tier for a target plus the external channel it unlocks."""
    type: str
    target_id: str
    vote_count: int
    tier: Optional[int] = None
    portal_url: Optional[str] = None
    channel: Optional[str] = None
    complaint_context: Optional[str] = None
