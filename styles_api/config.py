"""
Styles API configuration.

Every setting comes from the environment, read once when the configuration
is first requested. The store backend decides which settings are required:
the in-memory store needs none, PostgreSQL needs host, database and user
plus one way to authenticate.

Exports:
    StylesAPIConfig: Pydantic configuration model
    get_styles_config: Singleton accessor
    reset_styles_config: Drop the cached instance (tests, reconfiguration)
"""

import logging
import os
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# Azure AD resource for Azure Database for PostgreSQL tokens
POSTGRES_TOKEN_SCOPE = "https://ossrdbms-aad.database.windows.net/.default"
LOCAL_BASE_URL = "http://localhost:7071"


def _env(name: str, default: Optional[str] = None):
    return lambda: os.getenv(name, default)


def _split_list(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


class StylesAPIConfig(BaseModel):
    """
    Configuration for the Styles API.

    STYLES_STORAGE selects the store: "memory" keeps styles in the process
    (local development, tests), "postgres" keeps them in a PostgreSQL table.
    """

    # Values come from default factories; validate them like explicit input
    model_config = ConfigDict(validate_default=True)

    storage_backend: str = Field(
        default_factory=_env("STYLES_STORAGE", "memory"),
        description="Style store: memory or postgres"
    )

    # Style table location
    postgis_host: str = Field(default_factory=_env("POSTGIS_HOST", ""))
    postgis_port: int = Field(default_factory=lambda: int(os.getenv("POSTGIS_PORT", "5432")))
    postgis_database: str = Field(default_factory=_env("POSTGIS_DATABASE", ""))
    postgis_user: str = Field(default_factory=_env("POSTGIS_USER", ""))
    postgis_password: str = Field(
        default_factory=_env("POSTGIS_PASSWORD", ""),
        description="Only used outside Azure when no managed identity is configured"
    )
    styles_schema: str = Field(default_factory=_env("STYLES_SCHEMA", "geo"))
    styles_table: str = Field(default_factory=_env("STYLES_TABLE", "styles"))

    # Formats and request handling
    styles_base_url: Optional[str] = Field(
        default_factory=_env("STYLES_BASE_URL"),
        description="Public base URL for links; derived from the request when unset"
    )
    default_format: str = Field(
        default_factory=_env("STYLES_DEFAULT_FORMAT", "cartosym"),
        description="Format assumed for stored styles with no declared format"
    )
    enabled_formats: List[str] = Field(
        default_factory=lambda: _split_list(os.getenv("STYLES_ENABLED_FORMATS", "")),
        description="Format handlers to register (empty = all built-in handlers)"
    )
    max_body_bytes: int = Field(
        default_factory=lambda: int(os.getenv("STYLES_MAX_BODY_BYTES", str(1024 * 1024))),
        ge=1,
        description="Largest style document accepted on PUT"
    )

    # Azure identity
    managed_identity_name: Optional[str] = Field(
        default_factory=_env("DB_ADMIN_MANAGED_IDENTITY_NAME"),
        description="Database role mapped to the managed identity"
    )
    managed_identity_client_id: Optional[str] = Field(
        default_factory=_env("DB_ADMIN_MANAGED_IDENTITY_CLIENT_ID"),
        description="Set for a user-assigned identity"
    )
    azure_website_name: Optional[str] = Field(
        default_factory=_env("WEBSITE_SITE_NAME"),
        description="Set by the Functions host; its presence means we run in Azure"
    )

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("memory", "postgres"):
            raise ValueError(f"STYLES_STORAGE must be 'memory' or 'postgres', got '{v}'")
        return v

    @field_validator("default_format")
    @classmethod
    def normalize_default_format(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def validate_postgres_settings(self) -> "StylesAPIConfig":
        """Connection fields are required only for the postgres store."""
        if self.storage_backend == "postgres":
            missing = [
                name for name in ("postgis_host", "postgis_database", "postgis_user")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} required when STYLES_STORAGE=postgres - "
                    f"set {', '.join(m.upper() for m in missing)}"
                )
        return self

    @property
    def is_azure_environment(self) -> bool:
        return self.azure_website_name is not None

    @property
    def qualified_table(self) -> str:
        return f"{self.styles_schema}.{self.styles_table}"

    # ========================================================================
    # DATABASE CONNECTION
    # ========================================================================

    def get_connection_string(self) -> str:
        """
        libpq connection string for the style store.

        Credentials, first match wins:
            user-assigned identity  DB_ADMIN_MANAGED_IDENTITY_CLIENT_ID set
            system-assigned identity running in Azure
            password                POSTGIS_PASSWORD set

        Raises:
            ValueError: If none of them is available
            RuntimeError: If a managed identity token cannot be obtained
        """
        if self.managed_identity_client_id:
            role = self.managed_identity_name or self.postgis_user
            logger.info(f"[STYLES AUTH] user-assigned managed identity, role {role}")
            return self._dsn(role, self._managed_identity_token(self.managed_identity_client_id))

        if self.is_azure_environment:
            role = self.managed_identity_name or self.azure_website_name
            logger.info(f"[STYLES AUTH] system-assigned managed identity, role {role}")
            return self._dsn(role, self._managed_identity_token(None))

        if self.postgis_password:
            logger.info("[STYLES AUTH] password authentication")
            return self._dsn(self.postgis_user, self.postgis_password)

        message = (
            "[STYLES] No database credentials: set DB_ADMIN_MANAGED_IDENTITY_CLIENT_ID "
            "(user-assigned identity), deploy to Azure (system-assigned identity), "
            "or set POSTGIS_PASSWORD"
        )
        logger.error(message)
        raise ValueError(message)

    def _dsn(self, user: str, password: str) -> str:
        return (
            f"host={self.postgis_host} port={self.postgis_port} "
            f"dbname={self.postgis_database} user={user} "
            f"password={password} sslmode=require"
        )

    @staticmethod
    def _managed_identity_token(client_id: Optional[str]) -> str:
        """
        Raises:
            RuntimeError: If Azure AD refuses the token request
        """
        from azure.core.exceptions import ClientAuthenticationError
        from azure.identity import ManagedIdentityCredential

        credential = ManagedIdentityCredential(client_id=client_id) if client_id else ManagedIdentityCredential()
        try:
            return credential.get_token(POSTGRES_TOKEN_SCOPE).token
        except ClientAuthenticationError as e:
            message = f"[STYLES] Managed identity token request failed: {e}"
            logger.error(message)
            raise RuntimeError(message) from e

    def get_base_url(self, request_url: Optional[str] = None) -> str:
        """Configured base URL, else the part of request_url before /api/styles."""
        if self.styles_base_url:
            return self.styles_base_url.rstrip("/")

        if request_url and "/api/styles" in request_url:
            return request_url.split("/api/styles")[0]

        return LOCAL_BASE_URL


_config_cache: Optional[StylesAPIConfig] = None


def get_styles_config() -> StylesAPIConfig:
    """
    Raises:
        ValueError: If the environment holds an invalid configuration
    """
    global _config_cache

    if _config_cache is None:
        _config_cache = StylesAPIConfig()

    return _config_cache


def reset_styles_config() -> None:
    global _config_cache
    _config_cache = None
