"""
Shared route dependencies.

The engine and its storage port live on app.state for the process lifetime;
routes receive them through FastAPI dependencies instead of module globals.
"""

from fastapi import Header, HTTPException, Request, status

from transit_civic.services.engine import CivicFeedbackEngine


def get_engine(request: Request) -> CivicFeedbackEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Engine not initialized. Please check storage configuration."
        )
    return engine


def require_user(
    user_id: str = Header(..., alias="X-User-ID", description="User ID resolved by the auth proxy")
) -> str:
    """Authenticated caller. Identity is established upstream; this only requires it."""
    if not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please sign in."
        )
    return user_id.strip()
