"""Persistence of pending authorization attempts."""

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from oidc_authcode.models.authorization_attempt import AuthorizationAttempt

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Durable key-value store for authorization attempts, keyed by state."""

    def insert(self, attempt: AuthorizationAttempt) -> None: ...

    def find(self, state: str) -> AuthorizationAttempt | None: ...

    def consume(self, state: str) -> int: ...

    def prune(self, older_than: datetime) -> int: ...


class SqlStateStore:
    """StateStore backed by the ``oidc_state`` table.

    Lookups go through the unique ``state`` index, so concurrent attempts from
    different users or browser tabs never see each other's rows. Transaction
    boundaries belong to the caller (the request teardown commits).
    """

    def __init__(self, db_session: Session) -> None:
        self.db_session = db_session

    def insert(self, attempt: AuthorizationAttempt) -> None:
        self.db_session.add(attempt)
        self.db_session.flush()

    def find(self, state: str) -> AuthorizationAttempt | None:
        stmt = select(AuthorizationAttempt).where(AuthorizationAttempt.state == state)
        return self.db_session.execute(stmt).scalar_one_or_none()

    def consume(self, state: str) -> int:
        """Delete the attempt for ``state`` so it can never be presented again.

        Of two callbacks racing on the same state, exactly one sees a deleted
        row.

        Returns:
            Number of deleted attempts (0 when another request got there first)
        """
        stmt = (
            delete(AuthorizationAttempt)
            .where(AuthorizationAttempt.state == state)
            .execution_options(synchronize_session=False)
        )
        result = self.db_session.execute(stmt)
        self.db_session.flush()
        return result.rowcount or 0

    def prune(self, older_than: datetime) -> int:
        """Delete attempts created before ``older_than``.

        Returns:
            Number of deleted attempts
        """
        stmt = (
            delete(AuthorizationAttempt)
            .where(AuthorizationAttempt.created_at < older_than)
            .execution_options(synchronize_session=False)
        )
        result = self.db_session.execute(stmt)
        self.db_session.flush()

        count = result.rowcount or 0
        if count:
            logger.info("Pruned %d stale authorization attempts", count)
        return count
