"""Browser redirects that end the current request."""

import logging
from typing import NoReturn, Protocol

from flask import abort, redirect

logger = logging.getLogger(__name__)


class Redirector(Protocol):
    """Sends the user agent to an external URI. Never returns to the caller."""

    def redirect_to(self, uri: str) -> NoReturn: ...


class FlaskRedirector:
    """Redirector that aborts the Flask request with a 302 response."""

    def redirect_to(self, uri: str) -> NoReturn:
        logger.debug("Redirecting user agent to %s", uri.split("?", 1)[0])
        abort(redirect(uri, code=302))
