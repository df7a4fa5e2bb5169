"""Authorization attempt model."""

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from oidc_authcode.extensions import db


class AuthorizationAttempt(db.Model):  # type: ignore[name-defined]
    """A pending authorization-code request, keyed by its state token.

    Rows are inserted when the user agent is redirected to the provider and
    deleted once the provider redirects back with the matching state, or when
    they are pruned for age.
    """

    __tablename__ = "oidc_state"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    state: Mapped[str] = mapped_column(sa.String(64), nullable=False, unique=True, index=True)
    nonce: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    session_ref: Mapped[str] = mapped_column(sa.String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuthorizationAttempt id={self.id} state={self.state[:8]!r}...>"
