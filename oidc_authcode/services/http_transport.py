"""HTTP transport for back-channel calls to the identity provider."""

import logging
from collections.abc import Mapping
from typing import Protocol

import httpx

from oidc_authcode.exceptions import TransportError

logger = logging.getLogger(__name__)


class HttpTransport(Protocol):
    """Performs a form-encoded POST and returns the raw response body."""

    def post(self, uri: str, form_params: Mapping[str, str | None]) -> str: ...


class HttpxTransport:
    """HttpTransport implemented with httpx.

    Non-2xx responses are returned as bodies: an OAuth2 provider reports
    ``invalid_grant`` and friends as JSON on a 400, and that payload belongs to
    the caller. Only failures to complete the exchange raise TransportError.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout

    def post(self, uri: str, form_params: Mapping[str, str | None]) -> str:
        # Unset values are omitted from the body, not sent as empty strings
        data = {key: value for key, value in form_params.items() if value is not None}

        try:
            response = httpx.post(
                uri,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.error("POST to %s failed: %s", uri, str(e))
            raise TransportError(str(e)) from e

        if response.is_error:
            logger.warning(
                "POST to %s returned HTTP %d", uri, response.status_code
            )

        return response.text
