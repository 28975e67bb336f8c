# ABOUTME: Configuration management for the Kapacitor provider
# ABOUTME: Handles environment variables, credentials, and safety settings

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module handles all configuration for the provider. It:

1. READS environment variables (like KAPACITOR_URL, KAPACITOR_AUTH_TOKEN)
2. VALIDATES them (URL normalization, credential consistency, log levels)
3. PROVIDES typed access to settings throughout the application

The settings replace the loosely-typed field lookups a reconciliation host
would otherwise pass around. Every value has a name, a type, and a default,
and everything is checked when the settings object is constructed.

=============================================================================
ARCHITECTURE: THREE CONFIGURATION CLASSES
=============================================================================

1. Credentials: How to authenticate against Kapacitor
   - User (HTTP basic) or bearer token authentication
   - validate_credentials() enforces which fields each method needs

2. SecuritySettings: Safety settings for the MCP host (MCP_* prefix)
   - Read-only mode, destructive-operation guard, audit log path

3. ProviderSettings: Main configuration container (KAPACITOR_* prefix)
   - URL, timeout, TLS verification, credential fields
   - Log level
   - Contains SecuritySettings as nested object

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

Provider:
    KAPACITOR_URL                   -> Server URL
    KAPACITOR_TIMEOUT_SECONDS       -> HTTP timeout (default: 15)
    KAPACITOR_AUTH_USERNAME         -> Username for user authentication
    KAPACITOR_AUTH_PASSWORD         -> Password for user authentication
    KAPACITOR_AUTH_TOKEN            -> Token for bearer authentication
    KAPACITOR_AUTH_METHOD           -> UserAuthentication | BearerAuthentication
    KAPACITOR_INSECURE_SKIP_VERIFY  -> Skip TLS certificate verification

Security settings (MCP_ prefix):
    MCP_READ_ONLY           -> Block create/update/delete (default: true)
    MCP_DISABLE_DESTRUCTIVE -> Block delete entirely (default: true)
    MCP_AUDIT_LOG           -> Path to audit log file
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_URL = "https://api.instaclustr.com/provisioning/v1/"


class CredentialsError(ValueError):
    """Raised when a credential combination is inconsistent."""


# =============================================================================
# CREDENTIALS
# =============================================================================


class AuthenticationMethod(str, Enum):
    """Authentication methods understood by Kapacitor."""

    USER = "UserAuthentication"
    BEARER = "BearerAuthentication"

    @classmethod
    def parse(cls, value: str) -> AuthenticationMethod:
        """
        Map a configured method name to an AuthenticationMethod.

        Anything other than "BearerAuthentication" falls back to user
        authentication, so an empty or misspelled value still produces a
        usable (basic auth) configuration.
        """
        if value == cls.BEARER.value:
            return cls.BEARER
        return cls.USER


class Credentials(BaseModel):
    """
    Credentials for one Kapacitor server.

    USAGE EXAMPLE:
    --------------
        credentials = Credentials(
            method=AuthenticationMethod.BEARER,
            token=SecretStr("my-token"),
        )
        credentials.validate_credentials()
    """

    model_config = {"extra": "ignore"}

    method: AuthenticationMethod = Field(default=AuthenticationMethod.USER)
    username: str = Field(default="", description="Username for user authentication")
    password: SecretStr = Field(default=SecretStr(""), description="Password for user authentication")
    token: SecretStr = Field(default=SecretStr(""), description="Token for bearer authentication")
    # SecretStr keeps passwords and tokens out of reprs and log lines.
    # Use .get_secret_value() to read the real value.

    def validate_credentials(self) -> None:
        """
        Check the fields required by the chosen method.

        User authentication:   username required, token forbidden
        Bearer authentication: token required, username/password forbidden

        Raises:
            CredentialsError: If the combination is invalid
        """
        if self.method is AuthenticationMethod.USER:
            if not self.username:
                raise CredentialsError("missing username")
            if self.token.get_secret_value():
                raise CredentialsError("token must not be set when using user authentication")
            return

        if not self.token.get_secret_value():
            raise CredentialsError("missing token")
        if self.username or self.password.get_secret_value():
            raise CredentialsError(
                "username and password must not be set when using bearer authentication"
            )


# =============================================================================
# SECURITY SETTINGS
# =============================================================================


class SecuritySettings(BaseSettings):
    """
    Safety settings for the MCP host.

    Layer 1: MCP_READ_ONLY=true (default)
        - Blocks create, update, and delete; only read is allowed

    Layer 2: MCP_DISABLE_DESTRUCTIVE=true (default)
        - Even with writes enabled, blocks delete

    Layer 3: Confirmation (in SafetyGuard)
        - Delete requires confirm=true AND confirm_id matching the task id
    """

    model_config = SettingsConfigDict(env_prefix="MCP_")

    read_only: bool = Field(
        default=True,
        description="Block create/update/delete operations when true",
    )

    disable_destructive: bool = Field(
        default=True,
        description="Block delete operations when true",
    )

    audit_log: Path | None = Field(
        default=None,
        description="Path to audit log file",
    )
    # JSON lines, one entry per lifecycle call. When None, audit entries go
    # through structlog to stdout.


# =============================================================================
# MAIN PROVIDER SETTINGS
# =============================================================================


class ProviderSettings(BaseSettings):
    """
    Main provider configuration.

    USAGE:
    ------
        settings = load_settings()
        settings.url                  # Normalized server URL
        settings.credentials          # None, or validated Credentials
        settings.security.read_only   # Nested security setting
    """

    model_config = SettingsConfigDict(
        env_prefix="KAPACITOR_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # CONNECTION
    # -------------------------------------------------------------------------

    url: str = Field(default=DEFAULT_URL, validate_default=True, description="Kapacitor server URL")

    timeout_seconds: int = Field(default=15, ge=1, description="HTTP timeout in seconds")

    insecure_skip_verify: bool = Field(
        default=False,
        description="Skip TLS certificate verification",
    )
    # Only for local development with self-signed certificates.

    # -------------------------------------------------------------------------
    # CREDENTIALS
    # -------------------------------------------------------------------------

    auth_username: str = Field(default="", description="Username for user authentication")
    auth_password: SecretStr = Field(default=SecretStr(""), description="Password")
    auth_token: SecretStr = Field(default=SecretStr(""), description="Bearer token")
    auth_method: str = Field(
        default=AuthenticationMethod.USER.value,
        description="UserAuthentication or BearerAuthentication",
    )

    # -------------------------------------------------------------------------
    # LOGGING
    # -------------------------------------------------------------------------

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="INFO",
        description="Logging level",
    )

    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """
        Ensure URL has a scheme and no trailing slash.

        "kapacitor.local:9092"   -> "https://kapacitor.local:9092"
        "http://localhost:9092/" -> "http://localhost:9092"

        API paths start with "/", so a trailing slash here would produce
        double slashes.
        """
        if not v.startswith(("http://", "https://")):
            v = f"https://{v}"
        return v.rstrip("/")

    @property
    def timeout(self) -> float:
        """Timeout in seconds as httpx expects it."""
        return float(self.timeout_seconds)

    @property
    def credentials(self) -> Credentials | None:
        """
        Build credentials from the auth_* fields.

        Authentication is only configured when a username or token is set.
        With neither, this returns None and the client connects anonymously.

        Raises:
            CredentialsError: If the configured combination is invalid
        """
        if not self.auth_username and not self.auth_token.get_secret_value():
            return None

        credentials = Credentials(
            method=AuthenticationMethod.parse(self.auth_method),
            username=self.auth_username,
            password=self.auth_password,
            token=self.auth_token,
        )
        credentials.validate_credentials()
        return credentials


def load_settings() -> ProviderSettings:
    """
    Load settings from environment with validation.

    If KAPACITOR_PROVIDER_ENV_FILE is set, additional variables are read
    from that file. Useful for local development:

        KAPACITOR_URL=http://localhost:9092
        KAPACITOR_AUTH_USERNAME=admin
        KAPACITOR_AUTH_PASSWORD=secret
        MCP_READ_ONLY=false

    Returns:
        Fully validated ProviderSettings instance.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return ProviderSettings(
        _env_file=os.environ.get("KAPACITOR_PROVIDER_ENV_FILE"),
    )
