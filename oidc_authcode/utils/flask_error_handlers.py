"""Translate domain exceptions into JSON error responses."""

import logging
from http import HTTPStatus

from flask import Flask, g, jsonify
from flask.typing import ResponseReturnValue

from oidc_authcode.exceptions import BusinessLogicException, ConfigurationError

logger = logging.getLogger(__name__)

# Missing or invalid client configuration is a server fault, not the caller's
_STATUS_BY_ERROR_CODE = {
    "MISSING_CREDENTIALS": HTTPStatus.INTERNAL_SERVER_ERROR,
    "MISSING_ENDPOINT": HTTPStatus.INTERNAL_SERVER_ERROR,
    "INVALID_ENDPOINT": HTTPStatus.INTERNAL_SERVER_ERROR,
    "TRANSPORT_FAILED": HTTPStatus.BAD_GATEWAY,
    "INVALID_STATE": HTTPStatus.BAD_REQUEST,
}


def register_business_error_handlers(app: Flask) -> None:
    @app.errorhandler(BusinessLogicException)
    def handle_business_logic_exception(error: BusinessLogicException) -> ResponseReturnValue:
        g.needs_rollback = True
        status = _STATUS_BY_ERROR_CODE.get(error.error_code, HTTPStatus.BAD_REQUEST)
        if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.error("%s: %s", error.error_code, error.message)
        return jsonify({"error": error.message, "code": error.error_code}), status

    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(error: ConfigurationError) -> ResponseReturnValue:
        g.needs_rollback = True
        logger.error("Configuration error: %s", error)
        return jsonify({"error": str(error), "code": "CONFIGURATION_ERROR"}), HTTPStatus.INTERNAL_SERVER_ERROR
