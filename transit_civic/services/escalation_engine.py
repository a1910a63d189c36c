"""
Escalation Engine - civic escalation tiers for rated transit targets.

DESIGN PRINCIPLES:
- Escalation is ADVISORY: it tells residents which formal channel is open,
  it never files anything itself
- Tier is always derived from the current count, never stored
- Tiers are data (threshold table), checked from the highest down

Tier 2 (25+ votes): Portal da Queixa - public reputational pressure
Tier 3 (50+ votes): Livro de Reclamacoes - legally binding, 15-day response
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from transit_civic.models.escalation import EscalationResult
from transit_civic.models.feedback import FeedbackRecord, FeedbackType
import logging

logger = logging.getLogger(__name__)

# Portal da Queixa STCP brand page
PORTAL_QUEIXA_URL = "https://portaldaqueixa.com/brands/stcp-sociedade-de-transportes-colectivos-do-porto-s-a"

# Livro de Reclamacoes online form
LIVRO_RECLAMACOES_URL = "https://www.livroreclamacoes.pt/Pedido/Reclamacao"

TIER2_THRESHOLD = 25
TIER3_THRESHOLD = 50

TARGET_LABELS = {
    FeedbackType.LINE: "Line",
    FeedbackType.STOP: "Stop",
    FeedbackType.VEHICLE: "Vehicle",
    FeedbackType.BIKE_PARK: "Bike park",
    FeedbackType.BIKE_LANE: "Bike lane",
}

# pt-PT long month names for the complaint date
PT_MONTHS = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]


@dataclass(frozen=True)
class EscalationTier:
    """One formal complaint channel and the count that unlocks it."""
    tier: int
    threshold: int
    channel: str
    portal_url: str


DEFAULT_TIERS = [
    EscalationTier(tier=2, threshold=TIER2_THRESHOLD, channel="Portal da Queixa", portal_url=PORTAL_QUEIXA_URL),
    EscalationTier(tier=3, threshold=TIER3_THRESHOLD, channel="Livro de Reclamações", portal_url=LIVRO_RECLAMACOES_URL),
]


class EscalationTracker:
    """
    Maps a vote/complaint count to an escalation tier.

    Thresholds are inclusive lower bounds; a count that clears several
    thresholds resolves to the highest tier.
    """

    def __init__(self, tiers: Optional[List[EscalationTier]] = None):
        # Highest threshold first
        self.tiers = sorted(tiers or DEFAULT_TIERS, key=lambda t: t.threshold, reverse=True)

    def tier_entry_for(self, count: int) -> Optional[EscalationTier]:
        for entry in self.tiers:
            if count >= entry.threshold:
                return entry
        return None

    def tier_for(self, count: int) -> Optional[int]:
        """Tier number (2 or 3 by default) or None below the lowest threshold."""
        entry = self.tier_entry_for(count)
        return entry.tier if entry else None

    def escalation_for(self, feedback_type: FeedbackType, target_id: str, vote_count: int) -> EscalationResult:
        """Tier plus the portal it unlocks for one target."""
        entry = self.tier_entry_for(vote_count)
        if entry:
            logger.info(
                f"{feedback_type.value} {target_id} reached escalation tier {entry.tier} "
                f"({vote_count} >= {entry.threshold})"
            )
        return EscalationResult(
            type=feedback_type.value,
            target_id=target_id,
            vote_count=vote_count,
            tier=entry.tier if entry else None,
            portal_url=entry.portal_url if entry else None,
            channel=entry.channel if entry else None
        )


def format_complaint_date(created_at: datetime) -> str:
    """Long pt-PT date, e.g. 15 de junho de 2024."""
    return f"{created_at.day} de {PT_MONTHS[created_at.month - 1]} de {created_at.year}"


def build_complaint_context(record: FeedbackRecord, vote_count: int) -> str:
    """
    Build a pre-filled complaint text residents can paste into external forms.

    Always: target label, rating, date/attribution and agreement count.
    Tags and comment clauses appear only when present.
    """
    type_label = f"{TARGET_LABELS[record.type]} {record.target_id}"
    tag_str = f"Issues reported: {', '.join(record.tags)}. " if record.tags else ""
    comment_str = f'"{record.comment}" ' if record.comment else ""

    return (
        f"Porto public transit complaint — {type_label}. "
        f"Rating: {record.rating}/5. "
        f"{tag_str}"
        f"{comment_str}"
        f"Reported on {format_complaint_date(record.created_at)} via PortoMove (portomove.pt). "
        f"{vote_count} community members agree with this report."
    )
