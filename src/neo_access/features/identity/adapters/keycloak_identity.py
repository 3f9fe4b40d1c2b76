"""Keycloak identity provider adapter."""

import logging
from typing import Any, Dict, Optional

from keycloak import KeycloakAdmin, KeycloakOpenID, KeycloakOpenIDConnection
from keycloak.exceptions import KeycloakAuthenticationError, KeycloakError

from ....config.logging_config import mask_email
from ....config.settings import AccessSettings
from ....core.exceptions import (
    EmailInUse,
    IdentityNotFound,
    IdentityProviderUnavailable,
    InvalidCredentials,
    RevocationUnsupported,
    RotationUnsupported,
    TooManyAttempts,
    WeakPassword,
)
from ....core.value_objects import CredentialId
from ..entities.protocols import VerifiedIdentity

logger = logging.getLogger(__name__)


def _normalize_server_url(server_url: str) -> str:
    """Drop the legacy /auth suffix, not used by Keycloak v18+."""
    server_url = server_url.rstrip("/")
    if server_url.endswith("/auth"):
        server_url = server_url[:-5]
        logger.info(f"Removed /auth suffix for Keycloak v18+ compatibility: {server_url}")
    return server_url


def _response_code(error: KeycloakError) -> Optional[int]:
    return getattr(error, "response_code", None)


def _error_text(error: KeycloakError) -> str:
    message = getattr(error, "error_message", None) or str(error)
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    return str(message).lower()


class KeycloakIdentityProvider:
    """IdentityProvider backed by a Keycloak realm.

    Logins go through the realm's OpenID client. Registration, revocation,
    password rotation and email changes need the admin client; without one
    only registration fails hard, the rest raise the ``*Unsupported`` errors
    so callers can degrade.
    """

    def __init__(self, openid_client: KeycloakOpenID, admin_client: Optional[KeycloakAdmin] = None):
        if openid_client is None:
            raise ValueError("OpenID client is required")
        self._openid = openid_client
        self._admin = admin_client

    @classmethod
    def from_settings(cls, settings: AccessSettings) -> "KeycloakIdentityProvider":
        """Build the OpenID and, when credentials are configured, admin clients."""
        server_url = _normalize_server_url(settings.keycloak_url)
        client_secret = (
            settings.keycloak_client_secret.get_secret_value()
            if settings.keycloak_client_secret else None
        )
        try:
            openid_client = KeycloakOpenID(
                server_url=server_url,
                realm_name=settings.keycloak_realm,
                client_id=settings.keycloak_client_id,
                client_secret_key=client_secret,
                verify=settings.keycloak_verify_ssl,
            )

            admin_client = None
            if settings.keycloak_admin_username and settings.keycloak_admin_password:
                # Admin users authenticate in the admin realm and manage the target realm
                connection = KeycloakOpenIDConnection(
                    server_url=server_url,
                    username=settings.keycloak_admin_username,
                    password=settings.keycloak_admin_password.get_secret_value(),
                    realm_name=settings.keycloak_realm,
                    user_realm_name=settings.keycloak_admin_realm,
                    client_id=settings.keycloak_admin_client_id,
                    verify=settings.keycloak_verify_ssl,
                )
                admin_client = KeycloakAdmin(connection=connection)
                logger.info(f"Keycloak admin access via admin credentials for realm: {settings.keycloak_realm}")
            elif client_secret:
                connection = KeycloakOpenIDConnection(
                    server_url=server_url,
                    realm_name=settings.keycloak_realm,
                    client_id=settings.keycloak_client_id,
                    client_secret_key=client_secret,
                    verify=settings.keycloak_verify_ssl,
                )
                admin_client = KeycloakAdmin(connection=connection)
                logger.info(f"Keycloak admin access via client credentials for realm: {settings.keycloak_realm}")
            else:
                logger.warning("No Keycloak admin credentials configured; revocation and rotation disabled")
        except Exception as e:
            logger.error(f"Failed to initialize Keycloak clients: {e}")
            raise IdentityProviderUnavailable(f"Cannot initialize Keycloak clients: {e}") from e

        return cls(openid_client, admin_client)

    @property
    def is_privileged(self) -> bool:
        return self._admin is not None

    async def register(self, email: str, password: str) -> CredentialId:
        if self._admin is None:
            raise IdentityProviderUnavailable("Registering identities requires Keycloak admin access")

        payload: Dict[str, Any] = {
            "username": email,
            "email": email,
            "enabled": True,
            "emailVerified": False,
            "credentials": [{"type": "password", "value": password, "temporary": False}],
        }
        try:
            user_id = await self._admin.a_create_user(payload, exist_ok=False)
        except KeycloakError as e:
            code = _response_code(e)
            if code == 409:
                logger.info(f"Keycloak rejected duplicate email {mask_email(email)}")
                raise EmailInUse("Email already in use", details={"email": mask_email(email)}) from e
            if code == 400 and "password" in _error_text(e):
                raise WeakPassword(f"Password rejected by policy: {_error_text(e)}") from e
            logger.error(f"Keycloak error registering {mask_email(email)}: {e}")
            raise IdentityProviderUnavailable(f"Identity registration failed: {e}") from e

        logger.info(f"Registered Keycloak user {user_id} for {mask_email(email)}")
        return CredentialId(user_id)

    async def verify(self, email: str, password: str) -> VerifiedIdentity:
        try:
            token_response = await self._openid.a_token(email, password)
            userinfo = await self._openid.a_userinfo(token_response["access_token"])
        except KeycloakAuthenticationError as e:
            logger.warning(f"Authentication failed for {mask_email(email)}: {e}")
            raise InvalidCredentials("Invalid email or password") from e
        except KeycloakError as e:
            text = _error_text(e)
            if _response_code(e) == 429 or "temporarily" in text:
                logger.warning(f"Keycloak is throttling logins for {mask_email(email)}")
                raise TooManyAttempts() from e
            if _response_code(e) in (400, 401) and "invalid_grant" in text:
                raise InvalidCredentials("Invalid email or password") from e
            logger.error(f"Keycloak error during authentication: {e}")
            raise IdentityProviderUnavailable(f"Authentication service error: {e}") from e

        return VerifiedIdentity(
            credential_id=CredentialId(userinfo["sub"]),
            email=userinfo.get("email", email),
            session_token=token_response["access_token"],
        )

    async def revoke(self, credential_id: CredentialId) -> None:
        if self._admin is None:
            raise RevocationUnsupported("Identity revocation requires Keycloak admin access")
        try:
            await self._admin.a_delete_user(user_id=credential_id)
        except KeycloakError as e:
            if _response_code(e) == 404:
                raise IdentityNotFound(f"Unknown credential {credential_id}") from e
            logger.error(f"Keycloak error revoking {credential_id}: {e}")
            raise IdentityProviderUnavailable(f"Identity revocation failed: {e}") from e
        logger.info(f"Revoked Keycloak user {credential_id}")

    async def rotate_password(self, credential_id: CredentialId, password: str) -> None:
        if self._admin is None:
            raise RotationUnsupported("Password rotation requires Keycloak admin access")
        try:
            await self._admin.a_set_user_password(user_id=credential_id, password=password, temporary=False)
        except KeycloakError as e:
            code = _response_code(e)
            if code == 404:
                raise IdentityNotFound(f"Unknown credential {credential_id}") from e
            if code == 400:
                raise WeakPassword(f"Password rejected by policy: {_error_text(e)}") from e
            logger.error(f"Keycloak error rotating password for {credential_id}: {e}")
            raise IdentityProviderUnavailable(f"Password rotation failed: {e}") from e
        logger.info(f"Rotated password for Keycloak user {credential_id}")

    async def update_email(self, credential_id: CredentialId, email: str) -> None:
        if self._admin is None:
            raise RotationUnsupported("Changing login email requires Keycloak admin access")
        try:
            await self._admin.a_update_user(
                user_id=credential_id,
                payload={"email": email, "username": email, "emailVerified": False},
            )
        except KeycloakError as e:
            code = _response_code(e)
            if code == 409:
                raise EmailInUse("Email already in use", details={"email": mask_email(email)}) from e
            if code == 404:
                raise IdentityNotFound(f"Unknown credential {credential_id}") from e
            logger.error(f"Keycloak error updating email for {credential_id}: {e}")
            raise IdentityProviderUnavailable(f"Email update failed: {e}") from e
        logger.info(f"Updated login email for Keycloak user {credential_id}")
