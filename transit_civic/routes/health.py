"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from datetime import datetime

from transit_civic.core.exceptions import StorageError
from transit_civic.routes.deps import get_engine
from transit_civic.services.engine import CivicFeedbackEngine


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(request: Request):
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/db")
async def database_health(engine: CivicFeedbackEngine = Depends(get_engine)):
    """
    Storage connectivity check through the engine's storage port.
    """
    try:
        details = engine.storage.ping()
    except StorageError as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {e.message}"
        )

    return {
        "status": "healthy",
        "connected": True,
        **details,
        "timestamp": datetime.utcnow().isoformat()
    }
