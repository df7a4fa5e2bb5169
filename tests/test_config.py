"""Tests for configuration management."""

import pytest

from oidc_authcode.config import Environment, Settings
from oidc_authcode.exceptions import ConfigurationError


def test_environment_defaults(monkeypatch):
    """Test Environment loads default values."""
    for name in ("FLASK_ENV", "SECRET_KEY", "OIDC_SCOPES", "OIDC_RESOURCE", "OIDC_CLIENT_ID"):
        monkeypatch.delenv(name, raising=False)

    env = Environment()

    assert env.FLASK_ENV == "development"
    assert env.SECRET_KEY == "dev-secret-key-change-in-production"
    assert env.OIDC_SCOPES == "openid profile email"
    assert env.OIDC_RESOURCE == "https://graph.windows.net"
    assert env.OIDC_CLIENT_ID is None


def test_environment_from_env_vars(monkeypatch):
    """Test Environment loads from environment variables."""
    monkeypatch.setenv("OIDC_CLIENT_ID", "cid")
    monkeypatch.setenv("OIDC_TOKEN_ENDPOINT", "https://idp/token")
    monkeypatch.setenv("OIDC_STATE_MAX_AGE_SECONDS", "120")

    env = Environment()

    assert env.OIDC_CLIENT_ID == "cid"
    assert env.OIDC_TOKEN_ENDPOINT == "https://idp/token"
    assert env.OIDC_STATE_MAX_AGE_SECONDS == 120


def test_settings_load_maps_oidc_values():
    env = Environment(
        OIDC_CLIENT_ID="cid",
        OIDC_CLIENT_SECRET="csecret",
        OIDC_REDIRECT_URI="https://app/cb",
        OIDC_AUTH_ENDPOINT="https://idp/authorize",
        OIDC_TOKEN_ENDPOINT="https://idp/token",
        OIDC_HTTP_TIMEOUT=3.5,
    )

    settings = Settings.load(env)

    assert settings.oidc_client_id == "cid"
    assert settings.oidc_client_secret == "csecret"
    assert settings.oidc_redirect_uri == "https://app/cb"
    assert settings.oidc_http_timeout == 3.5
    assert settings.oidc_endpoints == {
        "auth": "https://idp/authorize",
        "token": "https://idp/token",
    }
    assert settings.sqlalchemy_engine_options["pool_pre_ping"] is True


def test_oidc_endpoints_skip_unset_roles():
    settings = Settings(oidc_token_endpoint="https://idp/token")

    assert settings.oidc_endpoints == {"token": "https://idp/token"}


def test_to_flask_config_session_cookie_for_https_redirect():
    settings = Settings(secret_key="k", oidc_redirect_uri="https://app/cb")

    config = settings.to_flask_config()

    assert config.SECRET_KEY == "k"
    assert config.SESSION_COOKIE_SECURE is True
    assert config.SESSION_COOKIE_SAMESITE == "None"


def test_to_flask_config_session_cookie_for_http_redirect():
    config = Settings(oidc_redirect_uri="http://localhost:5000/api/auth/callback").to_flask_config()

    assert config.SESSION_COOKIE_SECURE is False
    assert config.SESSION_COOKIE_SAMESITE == "Lax"


def test_validate_accepts_development_defaults():
    Settings().validate_production_config()


def test_validate_production_requires_secret_and_credentials():
    settings = Settings(flask_env="production")

    with pytest.raises(ConfigurationError) as exc_info:
        settings.validate_production_config()

    message = str(exc_info.value)
    assert "SECRET_KEY" in message
    assert "OIDC_CLIENT_ID" in message
    assert "OIDC_CLIENT_SECRET" in message
    assert "OIDC_REDIRECT_URI" in message


def test_validate_rejects_malformed_endpoint():
    settings = Settings(oidc_auth_endpoint="idp/authorize")

    with pytest.raises(ConfigurationError, match="auth endpoint"):
        settings.validate_production_config()


def test_validate_rejects_non_positive_state_age():
    settings = Settings(oidc_state_max_age_seconds=0)

    with pytest.raises(ConfigurationError, match="OIDC_STATE_MAX_AGE_SECONDS"):
        settings.validate_production_config()
