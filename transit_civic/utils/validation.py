"""
Input shaping for engine operations.

Transport-level parsing happens in the request layer; these checks guard the
engine itself so every caller (routes, scripts, tests) gets the same errors.
"""

import logging
import re
from typing import Iterable, List

from transit_civic.core.exceptions import ValidationError
from transit_civic.models.feedback import FeedbackType

logger = logging.getLogger(__name__)

MAX_ID_LENGTH = 100

# Entity and user IDs: no ":" (vote keys use it as separator), no "/" (Firestore paths)
ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def require_id(value, field: str) -> str:
    """Return a clean ID or raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        logger.warning(f"Rejected empty {field}")
        raise ValidationError(f"{field} is required")

    value = value.strip()
    if len(value) > MAX_ID_LENGTH:
        logger.warning(f"Rejected oversized {field} ({len(value)} chars)")
        raise ValidationError(f"{field} must be at most {MAX_ID_LENGTH} characters")
    if not ID_PATTERN.match(value):
        logger.warning(f"Rejected malformed {field}: {value!r}")
        raise ValidationError(f"{field} contains invalid characters")
    return value


def require_feedback_type(value) -> FeedbackType:
    """Parse a feedback type name (LINE, STOP, ...)."""
    try:
        return FeedbackType(value)
    except ValueError:
        valid = ", ".join(t.value for t in FeedbackType)
        raise ValidationError(f"Invalid type. Must be one of: {valid}")


def shape_target_ids(target_ids: Iterable[str], max_ids: int, max_length: int) -> List[str]:
    """
    Strip entries, drop empty or overlong ones, collapse duplicates (first wins).

    Raises:
        ValidationError: nothing usable remains, or more than max_ids remain
    """
    shaped: List[str] = []
    seen = set()
    for raw in target_ids:
        if not isinstance(raw, str):
            continue
        target_id = raw.strip()
        if not target_id or len(target_id) > max_length or target_id in seen:
            continue
        seen.add(target_id)
        shaped.append(target_id)

    if not shaped:
        raise ValidationError("targetIds must contain at least one ID")
    if len(shaped) > max_ids:
        raise ValidationError(f"Maximum {max_ids} targetIds per request")
    return shaped
