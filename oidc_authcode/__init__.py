"""Flask application factory."""

from flask import g

from oidc_authcode.app import App
from oidc_authcode.config import Settings
from oidc_authcode.extensions import db


def create_app(settings: "Settings | None" = None) -> App:
    """Create and configure the Flask application.

    Args:
        settings: Optional settings instance (loaded from the environment if not provided)

    Returns:
        Configured Flask application instance
    """
    app = App(__name__)

    # Load configuration
    if settings is None:
        settings = Settings.load()

    # Validate configuration before proceeding
    settings.validate_production_config()

    app.config.from_object(settings.to_flask_config())

    # Initialize extensions
    db.init_app(app)

    # Import models to register them with SQLAlchemy
    from oidc_authcode import models  # noqa: F401

    # Initialize SessionLocal for per-request sessions
    # This needs to be done in app context since db.engine requires it
    with app.app_context():
        from sqlalchemy.orm import Session, sessionmaker

        SessionLocal: sessionmaker[Session] = sessionmaker(
            class_=Session,
            bind=db.engine,
            autoflush=True,
            expire_on_commit=False,
        )

    # Create service container
    from oidc_authcode.services.container import ServiceContainer

    container = ServiceContainer()
    container.config.override(settings)
    container.session_maker.override(SessionLocal)

    # Wire container to all API modules via package scanning
    container.wire(packages=["oidc_authcode.api"])

    app.container = container

    from oidc_authcode.utils.flask_error_handlers import register_business_error_handlers

    register_business_error_handlers(app)

    from oidc_authcode.api import api_bp
    from oidc_authcode.api.metrics import metrics_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(metrics_bp)

    @app.teardown_request
    def close_session(exc: Exception | None) -> None:
        """Close the database session after each request.

        Rolls back when Flask passes an unhandled exception or when an error
        handler set ``g.needs_rollback``; commits otherwise. The redirect that
        ends a login request is a handled exception, so the new attempt commits.
        """
        try:
            db_session = container.db_session()

            needs_rollback = exc or getattr(g, "needs_rollback", False)
            if needs_rollback:
                db_session.rollback()
            else:
                db_session.commit()

            db_session.close()

        finally:
            container.db_session.reset()

    return app
