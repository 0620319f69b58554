"""
Custom exception hierarchy for the Restroom Directory.

Each category maps to one caller-facing outcome: validation problems are
the client's to fix, missing entities are 404s, store failures are opaque
500s with the detail kept in the server logs.
"""

from typing import Any


class RestroomDirectoryError(Exception):
    """Base exception for all Restroom Directory errors."""

    def __init__(self, message: str = "", details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# --- Validation Exceptions ---


class ValidationError(RestroomDirectoryError):
    """Base exception for input and record validation errors."""
    pass


class InvalidParameterError(ValidationError):
    """Raised when a caller supplies malformed or missing input."""

    def __init__(self, parameter: str, reason: str, value: Any = None):
        super().__init__(
            message=f"Invalid parameter '{parameter}': {reason}",
            details={"parameter": parameter, "value": value},
        )


class InvalidRestroomIdError(InvalidParameterError):
    """Raised when a restroom ID does not have the expected format."""

    def __init__(self, restroom_id: Any):
        super().__init__("id", "restroom IDs are 1-64 letters, digits, '-' or '_'", value=restroom_id)


class RecordRejectedError(ValidationError):
    """A stored record failed validation and was dropped from a result set."""

    def __init__(self, kind: str, reason: str, record: dict | None = None):
        super().__init__(
            message=f"Rejected {kind} record: {reason}",
            details={"kind": kind, "reason": reason, "record": record or {}},
        )


# --- Lookup Exceptions ---


class NotFoundError(RestroomDirectoryError):
    """Base exception for references to entities that do not exist."""
    pass


class RestroomNotFoundError(NotFoundError):
    """Raised when a restroom ID is not present in the store."""

    def __init__(self, restroom_id: str):
        super().__init__(
            message=f"Restroom '{restroom_id}' not found",
            details={"id": restroom_id},
        )


# --- Store Exceptions ---


class StoreFailureError(RestroomDirectoryError):
    """Raised when the backing store is unreachable or errors unexpectedly."""
    pass


class StoreConnectionError(StoreFailureError):
    """Raised when the database connection cannot be established."""
    pass
