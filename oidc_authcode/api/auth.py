"""Authorization code flow endpoints."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, NoReturn

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, make_response, redirect, request

from oidc_authcode.config import Settings
from oidc_authcode.schemas.auth_schema import AuthErrorResponse
from oidc_authcode.services.container import ServiceContainer
from oidc_authcode.services.oidc_client_service import (
    FailureReason,
    OidcClientService,
    TokenExchangeFailure,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

POST_LOGIN_REDIRECT = "/"


@auth_bp.route("/login", methods=["GET"])
@inject
def login(
    oidc_client_service: OidcClientService = Provide[ServiceContainer.oidc_client_service],
) -> NoReturn:
    """Send the user agent to the identity provider."""
    oidc_client_service.begin_authorization()


@auth_bp.route("/callback", methods=["POST"])
@inject
def callback(
    oidc_client_service: OidcClientService = Provide[ServiceContainer.oidc_client_service],
    settings: Settings = Provide[ServiceContainer.config],
) -> Any:
    """Handle the provider's form_post response.

    Redirects to ``/`` with httponly token cookies on success. Errors are JSON:
    400 for provider errors, bad state and rejected ID tokens, 502 when the
    token endpoint is unreachable or returns no access token.
    """
    provider_error = request.form.get("error")
    if provider_error:
        logger.warning("Provider returned error=%s on callback", provider_error)
        return AuthErrorResponse(
            error=provider_error,
            error_description=request.form.get("error_description"),
        ).model_dump(), HTTPStatus.BAD_REQUEST

    code = request.form.get("code")
    state = request.form.get("state")
    if not code or not state:
        return AuthErrorResponse(error="Missing code or state").model_dump(), HTTPStatus.BAD_REQUEST

    result = oidc_client_service.complete_authorization(state, code)

    if isinstance(result, TokenExchangeFailure):
        if result.reason == FailureReason.NONCE_MISMATCH:
            return AuthErrorResponse(error=result.message).model_dump(), HTTPStatus.BAD_REQUEST
        return AuthErrorResponse(error=result.message).model_dump(), HTTPStatus.BAD_GATEWAY

    tokens = result.token
    if tokens.is_error:
        return AuthErrorResponse(
            error=str(tokens.error),
            error_description=tokens.error_description,
        ).model_dump(), HTTPStatus.BAD_REQUEST
    if not tokens.access_token:
        return AuthErrorResponse(error="Token response missing access_token").model_dump(), HTTPStatus.BAD_GATEWAY

    response = make_response(redirect(POST_LOGIN_REDIRECT))

    secure = (settings.oidc_redirect_uri or "").startswith("https://")
    cookies = {
        "access_token": tokens.access_token,
        "id_token": tokens.id_token,
        "refresh_token": tokens.refresh_token,
    }
    for name, value in cookies.items():
        if not value:
            continue
        response.set_cookie(
            name,
            value,
            httponly=True,
            secure=secure,
            samesite="Lax",
            max_age=tokens.expires_in if name != "refresh_token" else None,
            path="/",
        )

    return response
