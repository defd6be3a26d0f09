"""
Relationship error taxonomy

Every failure the friends engine reports is a RelationshipError carrying a
stable ``kind``, a message safe to show to the caller, and the HTTP status the
API layer answers with.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure kinds reported to callers."""

    INVALID_ARGUMENT = "InvalidArgument"
    ALREADY_FRIENDS = "AlreadyFriends"
    DUPLICATE_REQUEST = "DuplicateRequest"
    NOT_FRIENDS = "NotFriends"
    REQUEST_NOT_FOUND = "RequestNotFound"
    STORE_READ_FAILURE = "StoreReadFailure"
    STORE_WRITE_FAILURE = "StoreWriteFailure"
    PARTIAL_WRITE_INCONSISTENCY = "PartialWriteInconsistency"


class RelationshipError(Exception):
    """Base class for all friend graph failures"""

    kind: ErrorKind
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class InvalidArgument(RelationshipError):
    kind = ErrorKind.INVALID_ARGUMENT
    status_code = 400


class AlreadyFriends(RelationshipError):
    kind = ErrorKind.ALREADY_FRIENDS
    status_code = 409


class DuplicateRequest(RelationshipError):
    kind = ErrorKind.DUPLICATE_REQUEST
    status_code = 409


class NotFriends(RelationshipError):
    kind = ErrorKind.NOT_FRIENDS
    status_code = 404


class RequestNotFound(RelationshipError):
    kind = ErrorKind.REQUEST_NOT_FOUND
    status_code = 404


class StoreFailure(RelationshipError):
    """
    I/O failure from a record store.

    The failing key is kept for server-side logs only; callers get a generic
    retry message.
    """

    status_code = 503
    public_message = "The friends service is temporarily unavailable. Please try again."

    def __init__(self, key: str, reason: Optional[str] = None):
        super().__init__(self.public_message)
        self.key = key
        self.reason = reason


class StoreReadFailure(StoreFailure):
    kind = ErrorKind.STORE_READ_FAILURE


class StoreWriteFailure(StoreFailure):
    kind = ErrorKind.STORE_WRITE_FAILURE

    def __init__(self, key: str, reason: Optional[str] = None, rolled_back: bool = False):
        super().__init__(key, reason)
        self.rolled_back = rolled_back


class PartialWriteInconsistency(RelationshipError):
    """Counterpart write failed and the compensating rollback failed as well."""

    kind = ErrorKind.PARTIAL_WRITE_INCONSISTENCY
    status_code = 500

    def __init__(self, caller_id: str, counterpart_id: str, operation: str):
        super().__init__(
            f"The {operation} operation could not be completed and your friends list "
            "may be out of sync. It has been flagged for repair."
        )
        self.caller_id = caller_id
        self.counterpart_id = counterpart_id
        self.operation = operation
