"""
Transit Civic Feedback - FastAPI Application Entry Point

Residents rate transit lines, stops, vehicles and bike infrastructure,
upvote improvement proposals, and escalate unresolved complaints.

DESIGN PRINCIPLES:
- The engine owns the invariants (exactly-once votes, sticky promotion,
  deterministic aggregates); routes stay thin
- Escalation is advisory: the API points to formal channels, it never files
- One storage port per process, owned by this host, injected into the engine
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from transit_civic.core.exceptions import EngineError, NotFoundError, StorageError, ValidationError
from transit_civic.core.settings import Settings, settings as default_settings
from transit_civic.routes import contributors, feedback, health, proposals
from transit_civic.services.engine import CivicFeedbackEngine
from transit_civic.storage import StoragePort, build_storage

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def create_app(settings: Settings = default_settings, storage: Optional[StoragePort] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration (defaults to environment-loaded settings)
        storage: Pre-built storage port; when omitted one is built at startup
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Transit feedback aggregation and civic escalation engine",
        debug=settings.DEBUG
    )

    app.state.settings = settings
    if storage is not None:
        app.state.engine = CivicFeedbackEngine(storage, settings)

    @app.exception_handler(EngineError)
    async def engine_exception_handler(request: Request, exc: EngineError):
        """Map the engine's error taxonomy onto HTTP status codes."""
        status_code = next(
            (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
            status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc.message}")

        return JSONResponse(
            status_code=status_code,
            content={"error": exc.message, "retryable": exc.retryable}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Catch Pydantic validation errors and log them."""
        logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors()}
        )

    # CORS - only explicitly configured origins, never "*"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        """Build the storage port and engine unless one was injected."""
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        if getattr(app.state, "engine", None) is not None:
            return

        try:
            app.state.engine = CivicFeedbackEngine(build_storage(settings), settings)
        except (RuntimeError, StorageError) as e:
            logger.error(f"Storage initialization failed: {e}")
            logger.warning("The app will start but engine endpoints will return 503.")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info(f"Shutting down {settings.APP_NAME}")

    app.include_router(health.router)
    app.include_router(proposals.router)
    app.include_router(feedback.router)
    app.include_router(contributors.router)

    @app.get("/")
    async def root():
        """
        Root endpoint - API information.
        """
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
            "docs": "/docs",
            "health": "/health",
            "contributors": "/contributors"
        }

    return app


logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

app = create_app()
