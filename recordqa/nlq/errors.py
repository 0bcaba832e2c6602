"""
Error taxonomy for the query engine.

Components raise these internally. The executor and the orchestrator turn
them into failed results carrying a natural-language message, so callers
never see an exception from `submit`.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories surfaced on query results."""
    NO_ACTIVE_DATASET = "no_active_dataset"
    UNRESOLVED_FIELD = "unresolved_field"  # dropped predicate, never raised
    STORAGE_ACCESS_FAILURE = "storage_access_failure"
    NO_NUMERIC_FIELD = "no_numeric_field"
    EXTERNAL_MODEL_FAILURE = "external_model_failure"


class QueryEngineError(Exception):
    """Base class for query engine failures."""
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoActiveDataset(QueryEngineError):
    """Raised when no collection is active and none can be found."""
    kind = ErrorKind.NO_ACTIVE_DATASET


class StorageAccessFailure(QueryEngineError):
    """Raised by stores when a collection cannot be read or written."""
    kind = ErrorKind.STORAGE_ACCESS_FAILURE


class NoNumericField(QueryEngineError):
    """Raised when an aggregate has no numeric column to work on."""
    kind = ErrorKind.NO_NUMERIC_FIELD


class ExternalModelFailure(QueryEngineError):
    """Raised when the LLM completion call fails."""
    kind = ErrorKind.EXTERNAL_MODEL_FAILURE
