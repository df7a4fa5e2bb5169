"""Pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
from flask.testing import FlaskClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import oidc_authcode.models  # noqa: F401
from oidc_authcode import create_app
from oidc_authcode.app import App
from oidc_authcode.config import Settings
from oidc_authcode.database import init_db
from oidc_authcode.extensions import db
from oidc_authcode.services.oidc_client_service import OidcClientService
from tests.testing_utils import (
    InMemoryStateStore,
    StubRedirector,
    StubSessionAccessor,
)

_SQLITE_MEMORY_OPTIONS: dict[str, Any] = {
    "poolclass": StaticPool,
    "connect_args": {"check_same_thread": False},
}


def _build_test_settings() -> Settings:
    """Construct base Settings object for tests."""
    settings = Settings(
        database_url="sqlite:///:memory:",
        secret_key="test-secret-key",
        flask_env="testing",
        debug=False,
        oidc_client_id="cid",
        oidc_client_secret="csecret",
        oidc_redirect_uri="https://app/cb",
        oidc_auth_endpoint="https://idp/authorize",
        oidc_token_endpoint="https://idp/token",
    )
    settings.set_engine_options_override(dict(_SQLITE_MEMORY_OPTIONS))
    return settings


@pytest.fixture
def test_settings() -> Settings:
    """Settings for a fully configured client backed by in-memory SQLite."""
    return _build_test_settings()


@pytest.fixture
def app(test_settings: Settings) -> Generator[App, None, None]:
    """Create Flask app with a fresh in-memory database."""
    flask_app = create_app(test_settings)
    flask_app.config["TESTING"] = True

    with flask_app.app_context():
        init_db()

    yield flask_app

    with flask_app.app_context():
        db.drop_all()


@pytest.fixture
def client(app: App) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Plain SQLAlchemy session on an in-memory database with the schema created."""
    engine = create_engine("sqlite://", **_SQLITE_MEMORY_OPTIONS)
    db.metadata.create_all(engine)

    with Session(engine) as session:
        yield session

    engine.dispose()


@pytest.fixture
def state_store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def transport() -> MagicMock:
    """HttpTransport mock; set ``post.return_value`` or ``post.side_effect``."""
    return MagicMock()


@pytest.fixture
def redirector() -> StubRedirector:
    return StubRedirector()


@pytest.fixture
def session_accessor() -> StubSessionAccessor:
    return StubSessionAccessor()


@pytest.fixture
def unconfigured_service(
    state_store: InMemoryStateStore,
    transport: MagicMock,
    redirector: StubRedirector,
    session_accessor: StubSessionAccessor,
) -> OidcClientService:
    """OidcClientService with no credentials or endpoints set."""
    return OidcClientService(
        state_store=state_store,
        transport=transport,
        redirector=redirector,
        session_accessor=session_accessor,
    )


@pytest.fixture
def service(unconfigured_service: OidcClientService) -> OidcClientService:
    """OidcClientService configured with credentials and both endpoints."""
    unconfigured_service.set_credentials("cid", "csecret", "https://app/cb")
    unconfigured_service.set_endpoints(
        {"auth": "https://idp/authorize", "token": "https://idp/token"}
    )
    return unconfigured_service
