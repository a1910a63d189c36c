"""
Core settings and environment variables for the Transit Civic Feedback engine.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Transit Civic Feedback"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory storage for local development without Firebase credentials
    USE_MOCK_DB: bool = False

    # Proposal lifecycle
    UNDER_REVIEW_THRESHOLD: int = 25  # Votes needed to promote OPEN -> UNDER_REVIEW

    # Civic escalation tiers (inclusive lower bounds)
    ESCALATION_TIER2_THRESHOLD: int = 25  # Portal da Queixa
    ESCALATION_TIER3_THRESHOLD: int = 50  # Livro de Reclamacoes

    # Aggregation input shaping
    MAX_TARGET_IDS: int = 100
    MAX_TARGET_ID_LENGTH: int = 100

    # Contributors leaderboard width
    LEADERBOARD_SIZE: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"  # Allow extra env vars to prevent crashes

    def cors_origin_list(self) -> List[str]:
        """Split CORS_ORIGINS into a clean list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
