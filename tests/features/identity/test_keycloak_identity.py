"""Tests for the Keycloak identity provider with mocked python-keycloak clients."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from keycloak.exceptions import KeycloakAuthenticationError, KeycloakDeleteError, KeycloakPostError

from neo_access.config.settings import AccessSettings
from neo_access.core.exceptions import (
    EmailInUse,
    IdentityNotFound,
    IdentityProviderUnavailable,
    InvalidCredentials,
    RevocationUnsupported,
    RotationUnsupported,
    TooManyAttempts,
    WeakPassword,
)
from neo_access.features.identity.adapters.keycloak_identity import KeycloakIdentityProvider


@pytest.fixture
def openid_client():
    client = MagicMock()
    client.a_token = AsyncMock(return_value={"access_token": "token-123", "refresh_token": "r"})
    client.a_userinfo = AsyncMock(return_value={"sub": "kc-user-1", "email": "awa@acme.io"})
    return client


@pytest.fixture
def admin_client():
    client = MagicMock()
    client.a_create_user = AsyncMock(return_value="kc-user-1")
    client.a_delete_user = AsyncMock(return_value={})
    client.a_set_user_password = AsyncMock(return_value={})
    client.a_update_user = AsyncMock(return_value={})
    return client


@pytest.fixture
def provider(openid_client, admin_client):
    return KeycloakIdentityProvider(openid_client, admin_client)


class TestKeycloakRegistration:

    @pytest.mark.asyncio
    async def test_register(self, provider, admin_client):
        credential_id = await provider.register("awa@acme.io", "secret1")

        assert credential_id == "kc-user-1"
        payload = admin_client.a_create_user.await_args.args[0]
        assert payload["email"] == "awa@acme.io"
        assert payload["enabled"] is True
        assert payload["credentials"][0]["value"] == "secret1"

    @pytest.mark.asyncio
    async def test_conflict_maps_to_email_in_use(self, provider, admin_client):
        admin_client.a_create_user.side_effect = KeycloakPostError(
            error_message="User exists with same email", response_code=409
        )

        with pytest.raises(EmailInUse):
            await provider.register("awa@acme.io", "secret1")

    @pytest.mark.asyncio
    async def test_password_policy_maps_to_weak_password(self, provider, admin_client):
        admin_client.a_create_user.side_effect = KeycloakPostError(
            error_message='{"errorMessage":"invalidPasswordMinLengthMessage password"}',
            response_code=400,
        )

        with pytest.raises(WeakPassword):
            await provider.register("awa@acme.io", "secret1")

    @pytest.mark.asyncio
    async def test_other_errors_are_unavailable(self, provider, admin_client):
        admin_client.a_create_user.side_effect = KeycloakPostError(error_message="boom", response_code=500)

        with pytest.raises(IdentityProviderUnavailable):
            await provider.register("awa@acme.io", "secret1")

    @pytest.mark.asyncio
    async def test_register_needs_admin(self, openid_client):
        with pytest.raises(IdentityProviderUnavailable):
            await KeycloakIdentityProvider(openid_client).register("awa@acme.io", "secret1")


class TestKeycloakVerification:

    @pytest.mark.asyncio
    async def test_verify(self, provider, openid_client):
        identity = await provider.verify("awa@acme.io", "secret1")

        assert identity.credential_id == "kc-user-1"
        assert identity.session_token == "token-123"
        openid_client.a_userinfo.assert_awaited_once_with("token-123")

    @pytest.mark.asyncio
    async def test_bad_credentials(self, provider, openid_client):
        openid_client.a_token.side_effect = KeycloakAuthenticationError(
            error_message="invalid_grant", response_code=401
        )

        with pytest.raises(InvalidCredentials):
            await provider.verify("awa@acme.io", "wrong!")

    @pytest.mark.asyncio
    async def test_throttled(self, provider, openid_client):
        openid_client.a_token.side_effect = KeycloakPostError(
            error_message="Account is temporarily disabled", response_code=400
        )

        with pytest.raises(TooManyAttempts):
            await provider.verify("awa@acme.io", "secret1")

    @pytest.mark.asyncio
    async def test_outage(self, provider, openid_client):
        openid_client.a_token.side_effect = KeycloakPostError(error_message="bad gateway", response_code=502)

        with pytest.raises(IdentityProviderUnavailable):
            await provider.verify("awa@acme.io", "secret1")


class TestKeycloakAdministration:

    @pytest.mark.asyncio
    async def test_revoke(self, provider, admin_client):
        await provider.revoke("kc-user-1")

        admin_client.a_delete_user.assert_awaited_once_with(user_id="kc-user-1")

    @pytest.mark.asyncio
    async def test_revoke_missing(self, provider, admin_client):
        admin_client.a_delete_user.side_effect = KeycloakDeleteError(error_message="not found", response_code=404)

        with pytest.raises(IdentityNotFound):
            await provider.revoke("kc-user-1")

    @pytest.mark.asyncio
    async def test_rotate_password(self, provider, admin_client):
        await provider.rotate_password("kc-user-1", "secret2")

        admin_client.a_set_user_password.assert_awaited_once_with(
            user_id="kc-user-1", password="secret2", temporary=False
        )

    @pytest.mark.asyncio
    async def test_without_admin_access(self, openid_client):
        provider = KeycloakIdentityProvider(openid_client)

        assert provider.is_privileged is False
        with pytest.raises(RevocationUnsupported):
            await provider.revoke("kc-user-1")
        with pytest.raises(RotationUnsupported):
            await provider.rotate_password("kc-user-1", "secret2")
        with pytest.raises(RotationUnsupported):
            await provider.update_email("kc-user-1", "new@acme.io")


class TestKeycloakFromSettings:

    @pytest.fixture(autouse=True)
    def keycloak_classes(self):
        module = "neo_access.features.identity.adapters.keycloak_identity"
        with patch(f"{module}.KeycloakOpenID") as openid_cls, \
                patch(f"{module}.KeycloakOpenIDConnection") as connection_cls, \
                patch(f"{module}.KeycloakAdmin") as admin_cls:
            yield openid_cls, connection_cls, admin_cls

    def test_without_admin_credentials(self, keycloak_classes):
        settings = AccessSettings(_env_file=None, keycloak_url="http://kc.local:8080/auth/")

        provider = KeycloakIdentityProvider.from_settings(settings)

        openid_cls, _, admin_cls = keycloak_classes
        assert provider.is_privileged is False
        assert openid_cls.call_args.kwargs["server_url"] == "http://kc.local:8080"
        admin_cls.assert_not_called()

    def test_with_admin_credentials(self, keycloak_classes):
        settings = AccessSettings(
            _env_file=None,
            keycloak_admin_username="admin",
            keycloak_admin_password="admin-pass",
        )

        provider = KeycloakIdentityProvider.from_settings(settings)

        _, connection_cls, _ = keycloak_classes
        assert provider.is_privileged is True
        kwargs = connection_cls.call_args.kwargs
        assert kwargs["username"] == "admin"
        assert kwargs["password"] == "admin-pass"
        assert kwargs["user_realm_name"] == "master"
