"""Session gate.

Resolves a login into an owner session, a sub-user session or a rejection.
Sub-user status is enforced here: an inactive sub-user never gets a session,
whatever the identity provider says about its credentials.
"""

import logging
from typing import Optional

from ....config.constants import Capability
from ....config.logging_config import mask_email
from ....core.exceptions import (
    AccessControlError,
    DirectoryError,
    IdentityProviderError,
    InvalidCredentials,
    SessionRejected,
    TooManyAttempts,
)
from ....core.value_objects import create_session_key
from ....utils.datetime import Clock, utc_now
from ...accounts.repositories.account_repository import OwnerAccountRepository
from ...directory.repositories.directory_store import UserDirectoryStore
from ...identity.entities.protocols import IdentityProvider, VerifiedIdentity
from ...permissions.entities.permission_set import PermissionSet
from ..adapters.local_permission_cache import LocalPermissionCache
from ..entities.protocols import PermissionCache
from ..entities.session import LoginAttempt, OwnerSession, Session, SubUserSession

logger = logging.getLogger(__name__)


class SessionGate:
    """Login and logout for owners and sub-users."""

    def __init__(
        self,
        identity_provider: IdentityProvider,
        directory_store: UserDirectoryStore,
        account_repository: OwnerAccountRepository,
        permission_cache: Optional[PermissionCache] = None,
        clock: Clock = utc_now,
    ):
        self.identity_provider = identity_provider
        self.directory_store = directory_store
        self.account_repository = account_repository
        self.permission_cache = permission_cache if permission_cache is not None else LocalPermissionCache()
        self._clock = clock

    async def authenticate(self, email: str, password: str) -> LoginAttempt:
        """Run one login attempt.

        Login failures do not raise: the returned attempt ends either with a
        session or with a ``SessionRejected`` error carrying the reason.
        """
        email = (email or "").strip().lower()
        attempt = LoginAttempt(email=email)
        if not email or not password:
            attempt.reject(SessionRejected.bad_credentials())
            return attempt

        attempt.begin()
        try:
            identity = await self.identity_provider.verify(email, password)
        except InvalidCredentials:
            attempt.reject(SessionRejected.bad_credentials())
            return attempt
        except TooManyAttempts:
            attempt.reject(SessionRejected.rate_limited())
            return attempt
        except IdentityProviderError as e:
            logger.error(f"Identity provider failed during login for {mask_email(email)}: {e}")
            attempt.reject(SessionRejected.unavailable())
            return attempt

        try:
            session = await self._resolve(identity)
        except SessionRejected as e:
            logger.info(f"Login rejected for {mask_email(email)}: {e.reason.value}")
            attempt.reject(e)
            return attempt
        except DirectoryError as e:
            logger.error(f"Directory lookup failed during login for {mask_email(email)}: {e}")
            attempt.reject(SessionRejected.unavailable())
            return attempt
        except AccessControlError as e:
            logger.error(f"Unreadable record during login for {mask_email(email)}: {e}")
            attempt.reject(SessionRejected.unavailable())
            return attempt

        attempt.succeed(session)
        logger.info(f"Login succeeded for {mask_email(email)} as {attempt.state.value}")
        return attempt

    async def _resolve(self, identity: VerifiedIdentity) -> Session:
        sub_user = await self.directory_store.find_by_credential(identity.credential_id)
        if sub_user is not None:
            if not sub_user.is_active:
                raise SessionRejected.disabled()

            now = self._clock()
            try:
                await self.directory_store.stamp_last_login(sub_user.id, now)
            except AccessControlError as e:
                logger.warning(f"Could not record last login for sub-user {sub_user.id}: {e}")

            session = SubUserSession(
                session_key=create_session_key(),
                sub_user=sub_user,
                permissions=sub_user.permissions.without_settings(),
                token=identity.session_token,
                started_at=now,
            )
            await self.permission_cache.store(session.session_key, session.permissions)
            return session

        account = await self.account_repository.find_by_credential(identity.credential_id)
        if account is not None:
            return OwnerSession(
                session_key=create_session_key(),
                account=account,
                token=identity.session_token,
                started_at=self._clock(),
            )

        raise SessionRejected.unknown_identity()

    async def permissions_for(self, session: Session) -> PermissionSet:
        """Capabilities currently granted to a session."""
        if isinstance(session, OwnerSession):
            return PermissionSet.only(*Capability)
        cached = await self.permission_cache.load(session.session_key)
        return cached if cached is not None else session.permissions

    async def can_access(self, session: Session, capability: Capability) -> bool:
        if isinstance(session, OwnerSession):
            return True
        if capability is Capability.SETTINGS:
            return False
        permissions = await self.permissions_for(session)
        return permissions.allows(capability)

    async def logout(self, session: Session) -> None:
        """End a session and drop its cached permissions."""
        if isinstance(session, SubUserSession):
            await self.permission_cache.clear(session.session_key)
        logger.info(f"Session {session.session_key} ended")
