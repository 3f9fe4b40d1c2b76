"""Memory identity provider.

Process-local implementation of the IdentityProvider protocol for
development and tests. Passwords are kept as salted PBKDF2 hashes.
"""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional

from ....config.logging_config import mask_email
from ....core.exceptions import (
    EmailInUse,
    IdentityNotFound,
    InvalidCredentials,
    RevocationUnsupported,
    RotationUnsupported,
    TooManyAttempts,
    WeakPassword,
)
from ....core.value_objects import CredentialId
from ....utils.uuid import generate_uuid_v7
from ..entities.protocols import VerifiedIdentity

logger = logging.getLogger(__name__)

_HASH_ITERATIONS = 100_000


def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _HASH_ITERATIONS)


@dataclass
class _Identity:
    credential_id: CredentialId
    email: str
    salt: bytes
    password_hash: bytes
    failed_attempts: int = 0


class MemoryIdentityProvider:
    """In-process identity provider.

    Args:
        min_password_length: Provider-side password policy
        max_failed_attempts: Consecutive failures before logins are throttled
        privileged: Whether revocation, rotation and email changes are allowed
    """

    def __init__(
        self,
        min_password_length: int = 6,
        max_failed_attempts: int = 5,
        privileged: bool = True,
    ):
        self.min_password_length = min_password_length
        self.max_failed_attempts = max_failed_attempts
        self.privileged = privileged
        self._by_id: Dict[CredentialId, _Identity] = {}

    def _find_email(self, email: str) -> Optional[_Identity]:
        email = email.strip().lower()
        for identity in self._by_id.values():
            if identity.email == email:
                return identity
        return None

    def _check_policy(self, password: str) -> None:
        if len(password) < self.min_password_length:
            raise WeakPassword(f"Password must be at least {self.min_password_length} characters")

    def _require(self, credential_id: CredentialId) -> _Identity:
        identity = self._by_id.get(credential_id)
        if identity is None:
            raise IdentityNotFound(f"Unknown credential {credential_id}")
        return identity

    def __contains__(self, credential_id: str) -> bool:
        return credential_id in self._by_id

    async def register(self, email: str, password: str) -> CredentialId:
        if self._find_email(email) is not None:
            raise EmailInUse("Email already in use", details={"email": mask_email(email)})
        self._check_policy(password)

        salt = secrets.token_bytes(16)
        credential_id = CredentialId(generate_uuid_v7())
        self._by_id[credential_id] = _Identity(
            credential_id=credential_id,
            email=email.strip().lower(),
            salt=salt,
            password_hash=_hash_password(password, salt),
        )
        logger.info(f"Registered identity {credential_id} for {mask_email(email)}")
        return credential_id

    async def verify(self, email: str, password: str) -> VerifiedIdentity:
        identity = self._find_email(email)
        if identity is None:
            raise InvalidCredentials("Invalid email or password")
        if identity.failed_attempts >= self.max_failed_attempts:
            raise TooManyAttempts()

        if not hmac.compare_digest(identity.password_hash, _hash_password(password, identity.salt)):
            identity.failed_attempts += 1
            logger.warning(f"Failed login for {mask_email(email)} ({identity.failed_attempts})")
            raise InvalidCredentials("Invalid email or password")

        identity.failed_attempts = 0
        return VerifiedIdentity(
            credential_id=identity.credential_id,
            email=identity.email,
            session_token=secrets.token_urlsafe(32),
        )

    async def revoke(self, credential_id: CredentialId) -> None:
        if not self.privileged:
            raise RevocationUnsupported("Identity revocation requires privileged access")
        self._require(credential_id)
        del self._by_id[credential_id]
        logger.info(f"Revoked identity {credential_id}")

    async def rotate_password(self, credential_id: CredentialId, password: str) -> None:
        if not self.privileged:
            raise RotationUnsupported("Password rotation requires privileged access")
        identity = self._require(credential_id)
        self._check_policy(password)
        identity.salt = secrets.token_bytes(16)
        identity.password_hash = _hash_password(password, identity.salt)
        identity.failed_attempts = 0
        logger.info(f"Rotated password for identity {credential_id}")

    async def update_email(self, credential_id: CredentialId, email: str) -> None:
        if not self.privileged:
            raise RotationUnsupported("Changing login email requires privileged access")
        identity = self._require(credential_id)
        other = self._find_email(email)
        if other is not None and other.credential_id != credential_id:
            raise EmailInUse("Email already in use", details={"email": mask_email(email)})
        identity.email = email.strip().lower()
