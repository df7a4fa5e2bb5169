"""OIDC client service for the authorization code flow.

Drives one authorization cycle:
1. Build the authorization request and persist its state/nonce
2. Redirect the user agent to the provider's authorization endpoint
3. Verify the state the provider posts back and exchange the code for tokens

The token exchange never raises on transport failure. Callers receive a
TokenExchangeSuccess or TokenExchangeFailure and must inspect which one.
"""

import json
import logging
import secrets
import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, NoReturn
from urllib.parse import urlencode, urlparse

import jwt
from prometheus_client import Counter

from oidc_authcode.config import DEFAULT_RESOURCE, DEFAULT_SCOPES, Settings
from oidc_authcode.exceptions import (
    InvalidEndpointError,
    InvalidStateError,
    MissingCredentialsError,
    MissingEndpointError,
    TransportError,
)
from oidc_authcode.models.authorization_attempt import AuthorizationAttempt
from oidc_authcode.services.http_transport import HttpTransport
from oidc_authcode.services.state_store import StateStore
from oidc_authcode.utils.redirect import Redirector
from oidc_authcode.utils.session import SessionAccessor
from oidc_authcode.utils.url_validation import UrlValidator, validate_endpoint_url

logger = logging.getLogger(__name__)

OIDC_AUTHORIZATION_REQUESTS_TOTAL = Counter(
    "oidc_authorization_requests_total",
    "Total authorization requests redirected to the identity provider",
)
OIDC_TOKEN_EXCHANGE_TOTAL = Counter(
    "oidc_token_exchange_total",
    "Total authorization code exchanges by outcome",
    ["status"],
)

STATE_LENGTH = 32
NONCE_PREFIX = "N"
_STATE_ALPHABET = string.ascii_letters + string.digits


class FlowState(str, Enum):
    """Where a client instance is in the authorization cycle."""

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    AUTHORIZATION_ISSUED = "authorization_issued"
    TOKEN_EXCHANGED = "token_exchanged"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"


@dataclass
class TokenResponse:
    """Token response from the OIDC provider, possibly carrying an error."""

    access_token: str | None
    id_token: str | None
    refresh_token: str | None
    token_type: str | None
    expires_in: int | None
    error: str | None = None
    error_description: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TokenResponse":
        expires_in = data.get("expires_in")
        try:
            expires = int(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            expires = None

        return cls(
            access_token=data.get("access_token"),
            id_token=data.get("id_token"),
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type"),
            expires_in=expires,
            error=data.get("error"),
            error_description=data.get("error_description"),
            raw=dict(data),
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class TokenExchangeSuccess:
    """The token endpoint answered; ``data`` is its decoded reply, unvalidated."""

    data: dict[str, Any]

    @property
    def token(self) -> TokenResponse:
        return TokenResponse.from_mapping(self.data)


class FailureReason(str, Enum):
    """Why a token exchange produced no usable tokens."""

    TRANSPORT = "transport"
    NONCE_MISMATCH = "nonce_mismatch"


@dataclass(frozen=True)
class TokenExchangeFailure:
    """The token endpoint could not be reached, or its ID token was rejected."""

    message: str
    reason: FailureReason = FailureReason.TRANSPORT


TokenExchangeResult = TokenExchangeSuccess | TokenExchangeFailure


class OidcClientService:
    """OIDC client for the authorization code flow.

    Credentials and endpoints are plain assignments; nothing is validated
    until an operation needs it. An instance serves a single request and
    holds no state shared with other requests.
    """

    def __init__(
        self,
        state_store: StateStore,
        transport: HttpTransport,
        redirector: Redirector,
        session_accessor: SessionAccessor,
        url_validator: UrlValidator = validate_endpoint_url,
        scopes: str = DEFAULT_SCOPES,
        resource: str = DEFAULT_RESOURCE,
        state_max_age_seconds: int = 600,
    ) -> None:
        """Initialize the OIDC client.

        Args:
            state_store: Store for pending authorization attempts
            transport: HTTP transport for the token request
            redirector: Redirects the user agent; never returns
            session_accessor: Identifies the browser session owning an attempt
            url_validator: Predicate applied to every endpoint URI
            scopes: Space-separated scope string sent with the authorization request
            resource: Identifier of the downstream resource server
            state_max_age_seconds: Age after which a pending attempt is rejected
        """
        self._state_store = state_store
        self._transport = transport
        self._redirector = redirector
        self._session_accessor = session_accessor
        self._url_validator = url_validator
        self._scopes = scopes
        self._resource = resource
        self._state_max_age = timedelta(seconds=state_max_age_seconds)

        self._client_id: str | None = None
        self._client_secret: str | None = None
        self._redirect_uri: str | None = None
        self._endpoints: dict[str, str] = {}

        self.flow_state = FlowState.UNCONFIGURED

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        state_store: StateStore,
        transport: HttpTransport,
        redirector: Redirector,
        session_accessor: SessionAccessor,
    ) -> "OidcClientService":
        """Create a client preloaded with the configured credentials and endpoints."""
        service = cls(
            state_store=state_store,
            transport=transport,
            redirector=redirector,
            session_accessor=session_accessor,
            scopes=settings.oidc_scopes,
            resource=settings.oidc_resource,
            state_max_age_seconds=settings.oidc_state_max_age_seconds,
        )

        if settings.oidc_client_id:
            service.set_credentials(
                settings.oidc_client_id,
                settings.oidc_client_secret,
                settings.oidc_redirect_uri,
            )
        service.set_endpoints(settings.oidc_endpoints)

        return service

    # ── Configuration ──────────────────────────────────────────────────

    def set_credentials(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str | None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._mark_configured()

    @property
    def client_id(self) -> str | None:
        return self._client_id

    @property
    def client_secret(self) -> str | None:
        return self._client_secret

    @property
    def redirect_uri(self) -> str | None:
        return self._redirect_uri

    def set_endpoints(self, endpoints: Mapping[str, str]) -> None:
        """Set provider endpoints by role ('auth', 'token').

        Entries are applied one at a time. When an entry fails validation the
        entries before it have already been stored; callers needing
        all-or-nothing semantics must re-set the full map.

        Raises:
            InvalidEndpointError: If a URI is not a well-formed absolute URL
        """
        for role, uri in endpoints.items():
            if not self._url_validator(uri):
                logger.warning("Rejected invalid %s endpoint URI", role)
                raise InvalidEndpointError(role, uri)
            self._endpoints[role] = uri
        self._mark_configured()

    def get_endpoint(self, role: str) -> str | None:
        return self._endpoints.get(role)

    def _mark_configured(self) -> None:
        if self.flow_state == FlowState.UNCONFIGURED and self._client_id and self._endpoints:
            self.flow_state = FlowState.CONFIGURED

    # ── Authorization request ──────────────────────────────────────────

    @staticmethod
    def generate_state() -> str:
        """Generate an unguessable alphanumeric state token."""
        return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(STATE_LENGTH))

    @staticmethod
    def generate_nonce() -> str:
        return f"{NONCE_PREFIX}{secrets.token_hex(16)}"

    def _create_attempt(self, nonce: str) -> str:
        """Persist a new authorization attempt and return its state."""
        attempt = AuthorizationAttempt(
            state=self.generate_state(),
            nonce=nonce,
            session_ref=self._session_accessor.session_ref(),
            created_at=datetime.now(timezone.utc),
        )
        self._state_store.insert(attempt)
        return attempt.state

    def build_authorization_request(self) -> dict[str, str | None]:
        """Build authorization request parameters, recording a new attempt.

        ``prompt=login`` forces the provider to re-authenticate the user on
        every request so an existing provider session is never reused silently.
        """
        nonce = self.generate_nonce()
        return {
            "response_type": "code",
            "client_id": self._client_id,
            "scope": self._scopes,
            "nonce": nonce,
            "response_mode": "form_post",
            "resource": self._resource,
            "state": self._create_attempt(nonce),
            "prompt": "login",
        }

    def build_authorization_url(self) -> str:
        """Build the provider authorization URL for a new attempt.

        Raises:
            MissingCredentialsError: If no client id is set
            MissingEndpointError: If no auth endpoint is set
        """
        if not self._client_id:
            raise MissingCredentialsError()

        auth_endpoint = self._endpoints.get("auth")
        if not auth_endpoint:
            raise MissingEndpointError("auth")

        params = self.build_authorization_request()
        separator = "&" if urlparse(auth_endpoint).query else "?"
        authorization_url = f"{auth_endpoint}{separator}{urlencode(params)}"

        logger.info(
            "Generated authorization URL for client=%s state=%s",
            self._client_id,
            str(params["state"])[:8] + "...",
        )

        return authorization_url

    def begin_authorization(self) -> NoReturn:
        """Redirect the user agent to the provider's authorization endpoint.

        Does not return: the redirector ends the current request.

        Raises:
            MissingCredentialsError: If no client id is set
            MissingEndpointError: If no auth endpoint is set
        """
        authorization_url = self.build_authorization_url()
        self.flow_state = FlowState.AUTHORIZATION_ISSUED
        OIDC_AUTHORIZATION_REQUESTS_TOTAL.inc()
        self._redirector.redirect_to(authorization_url)

    # ── Token exchange ─────────────────────────────────────────────────

    def exchange_code_for_token(self, code: str) -> TokenExchangeResult:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code posted back by the provider

        Returns:
            TokenExchangeSuccess with the decoded provider reply (which may
            itself be an OAuth error payload), or TokenExchangeFailure with the
            transport error message. A body that is not a JSON object decodes
            to an empty mapping.

        Raises:
            MissingEndpointError: If no token endpoint is set
        """
        token_endpoint = self._endpoints.get("token")
        if not token_endpoint:
            raise MissingEndpointError("token")

        params = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._redirect_uri,
        }

        try:
            body = self._transport.post(token_endpoint, params)
        except TransportError as e:
            logger.error("Token exchange failed: %s", e.message)
            OIDC_TOKEN_EXCHANGE_TOTAL.labels(status="transport_error").inc()
            self.flow_state = FlowState.TOKEN_EXCHANGE_FAILED
            return TokenExchangeFailure(e.message)

        data = self._decode_token_body(body)

        if "error" in data:
            logger.warning(
                "Token endpoint returned error=%s: %s",
                data.get("error"),
                data.get("error_description", ""),
            )
            OIDC_TOKEN_EXCHANGE_TOTAL.labels(status="provider_error").inc()
            self.flow_state = FlowState.TOKEN_EXCHANGE_FAILED
        else:
            logger.info("Exchanged authorization code for tokens")
            OIDC_TOKEN_EXCHANGE_TOTAL.labels(status="success").inc()
            self.flow_state = FlowState.TOKEN_EXCHANGED

        return TokenExchangeSuccess(data)

    @staticmethod
    def _decode_token_body(body: str) -> dict[str, Any]:
        try:
            data = json.loads(body)
        except ValueError:
            logger.warning("Token endpoint reply is not valid JSON")
            return {}

        if not isinstance(data, dict):
            return {}
        return data

    # ── Callback ───────────────────────────────────────────────────────

    def complete_authorization(self, state: str, code: str) -> TokenExchangeResult:
        """Verify a provider callback and exchange its code.

        The attempt is consumed before the exchange, so a state is accepted
        once even when the exchange itself fails.

        Raises:
            InvalidStateError: If the state is unknown, already used, owned by
                another session, or expired
            MissingEndpointError: If no token endpoint is set
        """
        attempt = self._state_store.find(state) if state else None
        if attempt is None:
            logger.warning("Callback with unknown state=%s", (state or "")[:8] + "...")
            raise InvalidStateError("Unknown or already used state")

        if attempt.session_ref != self._session_accessor.session_ref():
            logger.warning("Callback state=%s belongs to another session", state[:8] + "...")
            raise InvalidStateError("State was issued to a different session")

        if self._is_expired(attempt):
            raise InvalidStateError("State has expired")

        nonce = attempt.nonce
        if self._state_store.consume(state) != 1:
            logger.warning("Callback state=%s was consumed by a concurrent request", state[:8] + "...")
            raise InvalidStateError("Unknown or already used state")

        result = self.exchange_code_for_token(code)

        if isinstance(result, TokenExchangeSuccess):
            id_token = result.data.get("id_token")
            if id_token and not self._id_token_nonce_matches(id_token, nonce):
                logger.warning("ID token nonce mismatch for state=%s", state[:8] + "...")
                self.flow_state = FlowState.TOKEN_EXCHANGE_FAILED
                return TokenExchangeFailure(
                    "ID token nonce does not match the authorization request",
                    FailureReason.NONCE_MISMATCH,
                )

        return result

    @staticmethod
    def _id_token_nonce_matches(id_token: str, nonce: str) -> bool:
        # Claims are read only; signature validation is the token consumer's job
        try:
            claims = jwt.decode(id_token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return False
        return secrets.compare_digest(str(claims.get("nonce", "")).encode(), nonce.encode())

    def _is_expired(self, attempt: AuthorizationAttempt) -> bool:
        created_at = attempt.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - created_at > self._state_max_age

    def prune_expired_attempts(self) -> int:
        """Delete attempts older than the state max age. Returns the count."""
        cutoff = datetime.now(timezone.utc) - self._state_max_age
        return self._state_store.prune(cutoff)
