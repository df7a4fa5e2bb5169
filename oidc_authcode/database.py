"""Database connection and schema management."""

import logging

from sqlalchemy import text

from oidc_authcode.extensions import db

logger = logging.getLogger(__name__)


def init_db() -> None:
    import oidc_authcode.models  # noqa: F401
    db.create_all()


def check_db_connection() -> bool:
    try:
        with db.engine.connect() as conn:
            result = conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.warning(f"Checking database connection failed: {e}")
        return False
