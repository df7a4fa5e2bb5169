"""Access to the identifier of the current browser session."""

import secrets
from typing import Protocol

from flask import session

SESSION_REF_KEY = "oidc_session_ref"


class SessionAccessor(Protocol):
    def session_ref(self) -> str: ...


class FlaskSessionAccessor:
    """Reads (or mints) a random session reference kept in the Flask session."""

    def session_ref(self) -> str:
        ref = session.get(SESSION_REF_KEY)
        if not ref:
            ref = secrets.token_urlsafe(24)
            session[SESSION_REF_KEY] = ref
        return ref
