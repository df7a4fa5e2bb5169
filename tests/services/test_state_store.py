"""Tests for SqlStateStore persistence of authorization attempts."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from oidc_authcode.extensions import db
from oidc_authcode.models.authorization_attempt import AuthorizationAttempt
from oidc_authcode.services.state_store import SqlStateStore


def _attempt(state: str, age: timedelta = timedelta(0), session_ref: str = "session-1") -> AuthorizationAttempt:
    return AuthorizationAttempt(
        state=state,
        nonce=f"N{state}",
        session_ref=session_ref,
        created_at=datetime.now(timezone.utc) - age,
    )


class TestSqlStateStore:
    @pytest.fixture
    def store(self, db_session: Session) -> SqlStateStore:
        return SqlStateStore(db_session)

    def test_insert_then_find(self, store: SqlStateStore) -> None:
        store.insert(_attempt("state-a"))

        found = store.find("state-a")

        assert found is not None
        assert found.nonce == "Nstate-a"
        assert found.session_ref == "session-1"
        assert found.id is not None

    def test_find_unknown_returns_none(self, store: SqlStateStore) -> None:
        assert store.find("missing") is None

    def test_lookups_do_not_cross_attempts(self, store: SqlStateStore) -> None:
        """Test that concurrent attempts from different sessions stay isolated."""
        store.insert(_attempt("state-a", session_ref="alice"))
        store.insert(_attempt("state-b", session_ref="bob"))

        found_a = store.find("state-a")
        found_b = store.find("state-b")
        assert found_a is not None and found_a.session_ref == "alice"
        assert found_b is not None and found_b.session_ref == "bob"

    def test_state_is_unique(self, store: SqlStateStore) -> None:
        store.insert(_attempt("state-a"))

        with pytest.raises(IntegrityError):
            store.insert(_attempt("state-a"))

    def test_consume_deletes_attempt(self, store: SqlStateStore, db_session: Session) -> None:
        store.insert(_attempt("state-a"))
        db_session.commit()

        assert store.consume("state-a") == 1
        db_session.commit()

        assert store.find("state-a") is None

    def test_consume_unknown_state_deletes_nothing(self, store: SqlStateStore) -> None:
        assert store.consume("missing") == 0

    def test_concurrent_consume_succeeds_once(self, tmp_path: Path) -> None:
        """Test that two sessions racing on one state cannot both consume it."""
        engine = create_engine(f"sqlite:///{tmp_path / 'state.db'}")
        db.metadata.create_all(engine)

        with Session(engine) as setup_session:
            SqlStateStore(setup_session).insert(_attempt("state-a"))
            setup_session.commit()

        with Session(engine) as session_a, Session(engine) as session_b:
            store_a = SqlStateStore(session_a)
            store_b = SqlStateStore(session_b)
            assert store_a.find("state-a") is not None
            assert store_b.find("state-a") is not None

            deleted_a = store_a.consume("state-a")
            session_a.commit()
            deleted_b = store_b.consume("state-a")
            session_b.commit()

        engine.dispose()

        assert deleted_a == 1
        assert deleted_b == 0

    def test_prune_deletes_only_older_attempts(
        self, store: SqlStateStore, db_session: Session
    ) -> None:
        store.insert(_attempt("fresh"))
        store.insert(_attempt("stale", age=timedelta(hours=2)))
        db_session.commit()

        deleted = store.prune(datetime.now(timezone.utc) - timedelta(hours=1))
        db_session.commit()

        assert deleted == 1
        assert store.find("fresh") is not None
        assert store.find("stale") is None

    def test_prune_with_nothing_stale(self, store: SqlStateStore) -> None:
        store.insert(_attempt("fresh"))

        assert store.prune(datetime.now(timezone.utc) - timedelta(hours=1)) == 0
