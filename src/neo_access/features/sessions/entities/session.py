"""Session entities and the login state machine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple, Union

from ....config.constants import Capability
from ....core.exceptions import RejectionReason, SessionRejected
from ....core.value_objects import AccountId, SessionKey
from ...accounts.entities.owner_account import OwnerAccount
from ...directory.entities.sub_user import SubUser
from ...permissions.entities.permission_set import PermissionSet


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    RESOLVING_IDENTITY = "resolving_identity"
    OWNER_SESSION = "owner_session"
    SUB_USER_SESSION = "sub_user_session"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    SessionState.OWNER_SESSION,
    SessionState.SUB_USER_SESSION,
    SessionState.REJECTED,
})

_ALLOWED_TRANSITIONS = {
    SessionState.UNAUTHENTICATED: {SessionState.RESOLVING_IDENTITY, SessionState.REJECTED},
    SessionState.RESOLVING_IDENTITY: {
        SessionState.OWNER_SESSION,
        SessionState.SUB_USER_SESSION,
        SessionState.REJECTED,
    },
}


@dataclass(frozen=True)
class OwnerSession:
    """Authenticated owner. Owners hold every capability, settings included."""

    session_key: SessionKey
    account: OwnerAccount
    token: str
    started_at: datetime

    @property
    def account_id(self) -> AccountId:
        return self.account.id

    def can_access(self, capability: Capability) -> bool:
        return True


@dataclass(frozen=True)
class SubUserSession:
    """Authenticated sub-user, limited to its granted capabilities."""

    session_key: SessionKey
    sub_user: SubUser
    permissions: PermissionSet
    token: str
    started_at: datetime

    @property
    def account_id(self) -> AccountId:
        return self.sub_user.account_id

    def can_access(self, capability: Capability) -> bool:
        if capability is Capability.SETTINGS:
            return False
        return self.permissions.allows(capability)


Session = Union[OwnerSession, SubUserSession]


@dataclass
class LoginAttempt:
    """One pass through the login state machine.

    Starts unauthenticated and ends in exactly one terminal state. Every
    transition is kept in ``history``.
    """

    email: str
    state: SessionState = SessionState.UNAUTHENTICATED
    session: Optional[Session] = None
    error: Optional[SessionRejected] = None
    history: List[Tuple[SessionState, SessionState]] = field(default_factory=list)

    def transition(self, target: SessionState) -> None:
        if target not in _ALLOWED_TRANSITIONS.get(self.state, set()):
            raise ValueError(f"Invalid login transition {self.state.value} -> {target.value}")
        self.history.append((self.state, target))
        self.state = target

    def begin(self) -> None:
        self.transition(SessionState.RESOLVING_IDENTITY)

    def succeed(self, session: Session) -> Session:
        target = (
            SessionState.OWNER_SESSION
            if isinstance(session, OwnerSession)
            else SessionState.SUB_USER_SESSION
        )
        self.transition(target)
        self.session = session
        return session

    def reject(self, error: SessionRejected) -> None:
        self.transition(SessionState.REJECTED)
        self.error = error

    @property
    def succeeded(self) -> bool:
        return self.session is not None

    @property
    def reason(self) -> Optional[RejectionReason]:
        return self.error.reason if self.error else None
