"""
Engine error taxonomy.

Every failure the engine reports is one of three kinds:
- ValidationError: malformed or oversized input, never retried
- NotFoundError: the referenced proposal/feedback does not exist, never retried
- StorageError: the persistence layer failed, safe to retry
"""


class EngineError(Exception):
    """Base class for all engine errors."""

    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EngineError):
    """Input rejected before touching storage."""


class NotFoundError(EngineError):
    """A referenced entity is missing."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class StorageError(EngineError):
    """
    Underlying persistence failure, including lost atomicity on a
    conditional vote write. Callers may retry: toggles re-derive truth
    from storage on every attempt.
    """

    retryable = True
