"""Dependency injection container for the OIDC client."""

from dependency_injector import containers, providers
from sqlalchemy.orm import sessionmaker

from oidc_authcode.config import Settings
from oidc_authcode.services.http_transport import HttpxTransport
from oidc_authcode.services.oidc_client_service import OidcClientService
from oidc_authcode.services.state_store import SqlStateStore
from oidc_authcode.utils.redirect import FlaskRedirector
from oidc_authcode.utils.session import FlaskSessionAccessor


class ServiceContainer(containers.DeclarativeContainer):
    """Container for service dependency injection."""

    # Configuration providers
    config = providers.Dependency(instance_of=Settings)
    session_maker = providers.Dependency(instance_of=sessionmaker)
    db_session = providers.ContextLocalSingleton(
        session_maker.provided.call()
    )

    # Collaborators of the OIDC client
    state_store = providers.Factory(SqlStateStore, db_session=db_session)
    http_transport = providers.Singleton(
        HttpxTransport,
        timeout=config.provided.oidc_http_timeout,
    )
    redirector = providers.Singleton(FlaskRedirector)
    session_accessor = providers.Singleton(FlaskSessionAccessor)

    # OIDC client - one per request, preloaded from settings
    oidc_client_service = providers.Factory(
        OidcClientService.from_settings,
        settings=config,
        state_store=state_store,
        transport=http_transport,
        redirector=redirector,
        session_accessor=session_accessor,
    )
