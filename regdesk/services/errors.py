"""Error kinds and the result envelope returned by every service operation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "ValidationError"
    DUPLICATE_EMAIL = "DuplicateEmail"
    UNKNOWN_GROUP = "UnknownGroup"
    NOT_FOUND = "NotFound"
    ALREADY_APPROVED = "AlreadyApproved"
    ALREADY_VERIFIED = "AlreadyVerified"
    INVALID_CREDENTIALS = "InvalidCredentials"
    INACTIVE_ACCOUNT = "InactiveAccount"
    INVALID_TOKEN = "InvalidToken"
    TOKEN_EXPIRED = "TokenExpired"
    USER_NOT_FOUND = "UserNotFound"
    NOTIFIER_FAILURE = "NotifierFailure"
    STORE_INCONSISTENCY = "StoreInconsistency"
    CODE_SPACE_EXHAUSTED = "CodeSpaceExhausted"


@dataclass
class Result:
    success: bool
    message: str
    error: Optional[ErrorKind] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **data: Any) -> "Result":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ErrorKind, message: str, **data: Any) -> "Result":
        return cls(success=False, message=message, error=error, data=data)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.error is not None:
            body["error"] = self.error.value
        body.update(self.data)
        return body


class NotifierFailure(Exception):
    """The mail transport could not deliver a message."""

    def __init__(self, address: str, reason: str):
        super().__init__(f"Could not notify {address}: {reason}")
        self.address = address
        self.reason = reason
        # set by the batch sweep: outcome counts for the whole run
        self.counts: Optional[Dict[str, int]] = None


class StoreInconsistency(Exception):
    """A row changed or vanished between read and mutation."""
