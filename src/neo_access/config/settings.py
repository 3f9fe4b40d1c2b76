"""
Configuration management for neo-access.

Settings are read from environment variables prefixed with ``NEO_ACCESS_``
and from an optional ``.env`` file.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import Collections, Limits


class AccessSettings(BaseSettings):
    """Runtime settings for the sub-user directory and its collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="NEO_ACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Core Application Settings
    app_name: str = Field(default="neo-access")
    environment: str = Field(default="development")

    # Plan limits and credential rules
    max_users: int = Field(default=Limits.MAX_USERS, ge=0)
    min_password_length: int = Field(default=Limits.MIN_PASSWORD_LENGTH, ge=1)
    generated_password_length: int = Field(default=Limits.GENERATED_PASSWORD_LENGTH, ge=6)

    # Document store
    document_store_backend: str = Field(default="memory", pattern="^(memory|postgres)$")
    database_url: Optional[str] = Field(default=None)
    db_pool_min_size: int = Field(default=1, ge=1)
    db_pool_max_size: int = Field(default=10, ge=1)
    sub_users_collection: str = Field(default=Collections.SUB_USERS)
    accounts_collection: str = Field(default=Collections.ACCOUNTS)

    # Identity provider
    identity_backend: str = Field(default="memory", pattern="^(memory|keycloak)$")
    keycloak_url: str = Field(default="http://localhost:8080")
    keycloak_realm: str = Field(default="neo-access")
    keycloak_client_id: str = Field(default="neo-access")
    keycloak_client_secret: Optional[SecretStr] = Field(default=None)
    keycloak_admin_realm: str = Field(default="master")
    keycloak_admin_client_id: str = Field(default="admin-cli")
    keycloak_admin_username: Optional[str] = Field(default=None)
    keycloak_admin_password: Optional[SecretStr] = Field(default=None)
    keycloak_verify_ssl: bool = Field(default=True)

    # Advisory permission cache
    redis_url: Optional[str] = Field(default=None)
    permission_cache_ttl: int = Field(default=3600, ge=1)
    permission_cache_prefix: str = Field(default="neo_access:permissions")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_keycloak_admin(self) -> bool:
        """Check if privileged Keycloak credentials are configured."""
        return bool(
            (self.keycloak_admin_username and self.keycloak_admin_password)
            or self.keycloak_client_secret
        )

    @property
    def is_cache_shared(self) -> bool:
        """Check if the permission cache is backed by Redis."""
        return self.redis_url is not None


@lru_cache()
def get_settings() -> AccessSettings:
    """Get cached settings instance."""
    return AccessSettings()
