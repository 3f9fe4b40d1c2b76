"""Directory, policy, provisioning and session exceptions."""

from enum import Enum
from typing import Any, Dict, Optional

from .base import AccessControlError


class ValidationError(AccessControlError):
    """Raised when input is rejected before any remote call.

    Covers missing fields, short or mismatched passwords and permission sets
    with nothing granted. Never retried.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        errors: Optional[Dict[str, str]] = None,
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(message, details=details)
        self.field = field
        self.errors = errors or ({field: message} if field else {})


class PolicyError(AccessControlError):
    """Raised when an operation is refused by the access policy."""

    def __init__(self, message: str, *, rule: str, **details: Any):
        super().__init__(message, details={"rule": rule, **details})
        self.rule = rule


class DirectoryError(AccessControlError):
    """Raised when a directory operation against the document store fails."""

    def __init__(self, message: str, *, operation: str, sub_user_id: Optional[str] = None):
        details = {"operation": operation}
        if sub_user_id:
            details["sub_user_id"] = sub_user_id
        super().__init__(message, details=details)
        self.operation = operation
        self.sub_user_id = sub_user_id


class SubUserNotFound(DirectoryError):
    """Raised when a directory record does not exist."""

    def __init__(self, sub_user_id: str, *, operation: str):
        super().__init__(
            f"Sub-user {sub_user_id} not found",
            operation=operation,
            sub_user_id=sub_user_id,
        )


class ProvisionerConsistencyError(AccessControlError):
    """Raised when identity and directory state were left out of step.

    Unlike DirectoryError this signals a cross-system inconsistency that needs
    reconciliation, not just a failed call.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: str,
        credential_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={
                "phase": phase,
                "credential_id": credential_id,
                "account_id": account_id,
            },
        )
        self.phase = phase
        self.credential_id = credential_id
        self.account_id = account_id


class RejectionReason(str, Enum):
    """Why a login attempt was rejected."""

    ACCOUNT_DISABLED = "account_disabled"
    UNKNOWN_IDENTITY = "unknown_identity"
    BAD_CREDENTIALS = "bad_credentials"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"


class SessionRejected(AccessControlError):
    """Login attempt rejected. The session stays unauthenticated."""

    def __init__(self, message: str, *, reason: RejectionReason):
        super().__init__(message, details={"reason": reason.value})
        self.reason = reason

    @property
    def is_retryable(self) -> bool:
        """Check if the same credentials may succeed on a later attempt."""
        return self.reason in {RejectionReason.RATE_LIMITED, RejectionReason.SERVICE_UNAVAILABLE}

    @classmethod
    def disabled(cls) -> "SessionRejected":
        return cls(
            "Your account has been disabled. Contact your administrator.",
            reason=RejectionReason.ACCOUNT_DISABLED,
        )

    @classmethod
    def unknown_identity(cls) -> "SessionRejected":
        return cls("User not found in the system", reason=RejectionReason.UNKNOWN_IDENTITY)

    @classmethod
    def bad_credentials(cls) -> "SessionRejected":
        return cls("Incorrect email or password", reason=RejectionReason.BAD_CREDENTIALS)

    @classmethod
    def rate_limited(cls) -> "SessionRejected":
        return cls("Too many attempts. Please try again later.", reason=RejectionReason.RATE_LIMITED)

    @classmethod
    def unavailable(cls) -> "SessionRejected":
        return cls("Login failed. Please try again.", reason=RejectionReason.SERVICE_UNAVAILABLE)
