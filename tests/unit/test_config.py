# ABOUTME: Unit tests for configuration management
# ABOUTME: Tests settings loading, URL validation, and credential rules

import os
from unittest.mock import patch

import pytest
from pydantic import SecretStr, ValidationError

from kapacitor_provider.config import (
    DEFAULT_URL,
    AuthenticationMethod,
    Credentials,
    CredentialsError,
    ProviderSettings,
    SecuritySettings,
)


@pytest.mark.unit
class TestAuthenticationMethod:
    """Tests for AuthenticationMethod parsing."""

    def test_parse_bearer(self):
        """Test bearer authentication is recognised."""
        assert AuthenticationMethod.parse("BearerAuthentication") is AuthenticationMethod.BEARER

    def test_parse_user(self):
        """Test user authentication is recognised."""
        assert AuthenticationMethod.parse("UserAuthentication") is AuthenticationMethod.USER

    def test_parse_unknown_falls_back_to_user(self):
        """Test unknown values fall back to user authentication."""
        assert AuthenticationMethod.parse("") is AuthenticationMethod.USER
        assert AuthenticationMethod.parse("bearer") is AuthenticationMethod.USER


@pytest.mark.unit
class TestCredentials:
    """Tests for Credentials validation."""

    def test_user_auth_valid(self):
        """Test username and password pass user authentication."""
        Credentials(username="admin", password=SecretStr("pw")).validate_credentials()

    def test_user_auth_missing_username(self):
        """Test user authentication requires a username."""
        with pytest.raises(CredentialsError, match="missing username"):
            Credentials(password=SecretStr("pw")).validate_credentials()

    def test_user_auth_rejects_token(self):
        """Test user authentication forbids a token."""
        credentials = Credentials(username="admin", token=SecretStr("tok"))

        with pytest.raises(CredentialsError, match="token must not be set"):
            credentials.validate_credentials()

    def test_bearer_auth_valid(self):
        """Test a token alone passes bearer authentication."""
        Credentials(
            method=AuthenticationMethod.BEARER, token=SecretStr("tok")
        ).validate_credentials()

    def test_bearer_auth_missing_token(self):
        """Test bearer authentication requires a token."""
        with pytest.raises(CredentialsError, match="missing token"):
            Credentials(method=AuthenticationMethod.BEARER).validate_credentials()

    def test_bearer_auth_rejects_username(self):
        """Test bearer authentication forbids username/password."""
        credentials = Credentials(
            method=AuthenticationMethod.BEARER,
            username="admin",
            token=SecretStr("tok"),
        )

        with pytest.raises(CredentialsError, match="must not be set"):
            credentials.validate_credentials()

    def test_secrets_hidden_in_repr(self):
        """Test passwords are not exposed in repr."""
        credentials = Credentials(username="admin", password=SecretStr("hunter2"))

        assert "hunter2" not in repr(credentials)


@pytest.mark.unit
class TestSecuritySettings:
    """Tests for SecuritySettings configuration."""

    def test_defaults(self):
        """Test default security settings."""
        with patch.dict(os.environ, {}, clear=True):
            settings = SecuritySettings()

        assert settings.read_only is True
        assert settings.disable_destructive is True
        assert settings.audit_log is None

    def test_env_prefix(self):
        """Test environment variable prefix."""
        with patch.dict(os.environ, {"MCP_READ_ONLY": "false"}):
            settings = SecuritySettings()
            assert settings.read_only is False


@pytest.mark.unit
class TestProviderSettings:
    """Tests for ProviderSettings configuration."""

    def test_defaults(self):
        """Test default provider settings."""
        with patch.dict(os.environ, {}, clear=True):
            settings = ProviderSettings()

        assert settings.url == DEFAULT_URL.rstrip("/")
        assert settings.timeout_seconds == 15
        assert settings.timeout == 15.0
        assert settings.insecure_skip_verify is False
        assert settings.log_level == "INFO"
        assert settings.credentials is None

    def test_url_validation_adds_https(self):
        """Test that URL without scheme gets https added."""
        settings = ProviderSettings(url="kapacitor.example.com:9092")
        assert settings.url == "https://kapacitor.example.com:9092"

    def test_url_validation_preserves_http(self):
        """Test that explicit http scheme is preserved."""
        settings = ProviderSettings(url="http://localhost:9092")
        assert settings.url == "http://localhost:9092"

    def test_url_validation_removes_trailing_slash(self):
        """Test that trailing slash is removed from URL."""
        settings = ProviderSettings(url="http://localhost:9092/")
        assert settings.url == "http://localhost:9092"

    def test_env_prefix(self):
        """Test settings are read from KAPACITOR_* variables."""
        env = {
            "KAPACITOR_URL": "http://kapacitor.local:9092",
            "KAPACITOR_TIMEOUT_SECONDS": "30",
            "KAPACITOR_INSECURE_SKIP_VERIFY": "true",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = ProviderSettings()

        assert settings.url == "http://kapacitor.local:9092"
        assert settings.timeout_seconds == 30
        assert settings.insecure_skip_verify is True

    def test_invalid_log_level(self):
        """Test log level must be a standard level name."""
        with pytest.raises(ValidationError):
            ProviderSettings(log_level="VERBOSE")

    def test_timeout_must_be_positive(self):
        """Test zero timeout is rejected."""
        with pytest.raises(ValidationError):
            ProviderSettings(timeout_seconds=0)

    def test_user_credentials(self):
        """Test username produces user credentials."""
        settings = ProviderSettings(auth_username="admin", auth_password=SecretStr("pw"))

        credentials = settings.credentials
        assert credentials is not None
        assert credentials.method is AuthenticationMethod.USER
        assert credentials.username == "admin"
        assert credentials.password.get_secret_value() == "pw"

    def test_bearer_credentials(self):
        """Test token with bearer method produces bearer credentials."""
        settings = ProviderSettings(
            auth_token=SecretStr("tok"),
            auth_method="BearerAuthentication",
        )

        credentials = settings.credentials
        assert credentials is not None
        assert credentials.method is AuthenticationMethod.BEARER

    def test_invalid_credentials_raise(self):
        """Test an inconsistent combination raises on access."""
        settings = ProviderSettings(auth_username="admin", auth_token=SecretStr("tok"))

        with pytest.raises(CredentialsError):
            _ = settings.credentials
