"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean application settings with lowercase fields and derived values
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from oidc_authcode.utils.url_validation import validate_endpoint_url

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"

DEFAULT_SCOPES = "openid profile email"
DEFAULT_RESOURCE = "https://graph.windows.net"


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Core ───────────────────────────────────────────────────────────

    SECRET_KEY: str = Field(default=_DEFAULT_SECRET_KEY)
    FLASK_ENV: str = Field(default="development")
    DEBUG: bool = Field(default=True)

    # ── Database ───────────────────────────────────────────────────────

    DATABASE_URL: str = Field(default="sqlite:///oidc_authcode.db")
    DB_POOL_ECHO: bool = Field(default=False)

    # ── OIDC client ────────────────────────────────────────────────────

    OIDC_CLIENT_ID: str | None = Field(default=None)
    OIDC_CLIENT_SECRET: str | None = Field(default=None)
    OIDC_REDIRECT_URI: str | None = Field(default=None)
    OIDC_AUTH_ENDPOINT: str | None = Field(default=None)
    OIDC_TOKEN_ENDPOINT: str | None = Field(default=None)
    OIDC_SCOPES: str = Field(default=DEFAULT_SCOPES)
    OIDC_RESOURCE: str = Field(default=DEFAULT_RESOURCE)
    OIDC_STATE_MAX_AGE_SECONDS: int = Field(default=600)
    OIDC_HTTP_TIMEOUT: float = Field(default=10.0)


class Settings(BaseModel):
    """Application settings with lowercase fields and derived values."""

    model_config = ConfigDict(from_attributes=True)

    # ── Core ───────────────────────────────────────────────────────────

    secret_key: str = _DEFAULT_SECRET_KEY
    flask_env: str = "development"
    debug: bool = True

    # ── Database ───────────────────────────────────────────────────────

    database_url: str = "sqlite:///oidc_authcode.db"
    db_pool_echo: bool = False
    sqlalchemy_engine_options: dict[str, Any] = Field(default_factory=dict)

    # ── OIDC client ────────────────────────────────────────────────────

    oidc_client_id: str | None = None
    oidc_client_secret: str | None = None
    oidc_redirect_uri: str | None = None
    oidc_auth_endpoint: str | None = None
    oidc_token_endpoint: str | None = None
    oidc_scopes: str = DEFAULT_SCOPES
    oidc_resource: str = DEFAULT_RESOURCE
    oidc_state_max_age_seconds: int = 600
    oidc_http_timeout: float = 10.0

    @property
    def is_testing(self) -> bool:
        return self.flask_env == "testing"

    @property
    def is_production(self) -> bool:
        return self.flask_env == "production"

    @property
    def oidc_endpoints(self) -> dict[str, str]:
        """Endpoints that have been configured, keyed by role."""
        endpoints: dict[str, str] = {}
        if self.oidc_auth_endpoint:
            endpoints["auth"] = self.oidc_auth_endpoint
        if self.oidc_token_endpoint:
            endpoints["token"] = self.oidc_token_endpoint
        return endpoints

    @property
    def session_cookie_secure(self) -> bool:
        return (self.oidc_redirect_uri or "").startswith("https://")

    def to_flask_config(self) -> "FlaskConfig":
        # The provider posts the callback cross-site; the session cookie must
        # travel with it, which browsers only allow for SameSite=None; Secure
        return FlaskConfig(
            SECRET_KEY=self.secret_key,
            SESSION_COOKIE_SECURE=self.session_cookie_secure,
            SESSION_COOKIE_SAMESITE="None" if self.session_cookie_secure else "Lax",
            SQLALCHEMY_DATABASE_URI=self.database_url,
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            SQLALCHEMY_ENGINE_OPTIONS=self.sqlalchemy_engine_options,
        )

    def validate_production_config(self) -> None:
        from oidc_authcode.exceptions import ConfigurationError

        errors: list[str] = []

        if self.is_production and self.secret_key == _DEFAULT_SECRET_KEY:
            errors.append(
                "SECRET_KEY must be set to a secure value in production"
            )

        if self.is_production:
            if not self.oidc_client_id:
                errors.append("OIDC_CLIENT_ID is required in production")
            if not self.oidc_client_secret:
                errors.append("OIDC_CLIENT_SECRET is required in production")
            if not self.oidc_redirect_uri:
                errors.append("OIDC_REDIRECT_URI is required in production")

        for role, uri in self.oidc_endpoints.items():
            if not validate_endpoint_url(uri):
                errors.append(f"OIDC {role} endpoint is not a valid absolute URL: {uri!r}")

        if self.oidc_state_max_age_seconds <= 0:
            errors.append("OIDC_STATE_MAX_AGE_SECONDS must be positive")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )

    def set_engine_options_override(self, options: dict[str, Any]) -> None:
        """Override SQLAlchemy engine options (used for testing with SQLite)."""

        self.sqlalchemy_engine_options = options

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = Environment()

        sqlalchemy_engine_options: dict[str, Any] = {
            "pool_pre_ping": True,
            "echo_pool": env.DB_POOL_ECHO,
        }

        return cls(
            # Core
            secret_key=env.SECRET_KEY,
            flask_env=env.FLASK_ENV,
            debug=env.DEBUG,

            # Database
            database_url=env.DATABASE_URL,
            db_pool_echo=env.DB_POOL_ECHO,
            sqlalchemy_engine_options=sqlalchemy_engine_options,

            # OIDC client
            oidc_client_id=env.OIDC_CLIENT_ID,
            oidc_client_secret=env.OIDC_CLIENT_SECRET,
            oidc_redirect_uri=env.OIDC_REDIRECT_URI,
            oidc_auth_endpoint=env.OIDC_AUTH_ENDPOINT,
            oidc_token_endpoint=env.OIDC_TOKEN_ENDPOINT,
            oidc_scopes=env.OIDC_SCOPES,
            oidc_resource=env.OIDC_RESOURCE,
            oidc_state_max_age_seconds=env.OIDC_STATE_MAX_AGE_SECONDS,
            oidc_http_timeout=env.OIDC_HTTP_TIMEOUT,
        )


class FlaskConfig:
    """Flask-specific configuration object passed to app.config.from_object()."""

    def __init__(
        self,
        SECRET_KEY: str,
        SESSION_COOKIE_SECURE: bool,
        SESSION_COOKIE_SAMESITE: str,
        SQLALCHEMY_DATABASE_URI: str,
        SQLALCHEMY_TRACK_MODIFICATIONS: bool,
        SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any],
    ) -> None:
        self.SECRET_KEY = SECRET_KEY
        self.SESSION_COOKIE_SECURE = SESSION_COOKIE_SECURE
        self.SESSION_COOKIE_SAMESITE = SESSION_COOKIE_SAMESITE
        self.SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI
        self.SQLALCHEMY_TRACK_MODIFICATIONS = SQLALCHEMY_TRACK_MODIFICATIONS
        self.SQLALCHEMY_ENGINE_OPTIONS = SQLALCHEMY_ENGINE_OPTIONS
