"""
Storage ports - everything the engine reads and writes goes through one of these.
"""

from transit_civic.core.settings import Settings
from transit_civic.storage.base import StoragePort
from transit_civic.storage.memory import InMemoryStorage
import logging

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> StoragePort:
    """Construct the storage port selected by settings. The caller owns its lifetime."""
    if settings.USE_MOCK_DB:
        logger.info("[STORAGE] USING IN-MEMORY DATABASE")
        return InMemoryStorage()

    from transit_civic.config.firebase import create_firestore_client
    from transit_civic.storage.firestore import FirestoreStorage

    logger.info("[STORAGE] USING FIRESTORE DATABASE")
    return FirestoreStorage(create_firestore_client(settings))


__all__ = ["StoragePort", "InMemoryStorage", "build_storage"]
