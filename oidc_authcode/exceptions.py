"""Domain-specific exceptions with user-ready messages."""


class ConfigurationError(Exception):
    """Raised when application configuration is invalid."""

    pass


class BusinessLogicException(Exception):
    """Base exception class for authorization flow errors."""

    def __init__(self, message: str, error_code: str) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class MissingCredentialsError(BusinessLogicException):
    """Raised when an authorization request is attempted without a client id."""

    def __init__(self, message: str = "Please set client credentials with set_credentials") -> None:
        super().__init__(message, error_code="MISSING_CREDENTIALS")


class MissingEndpointError(BusinessLogicException):
    """Raised when a required provider endpoint has not been configured."""

    def __init__(self, role: str) -> None:
        self.role = role
        message = f"No {role} endpoint set. Please set it with set_endpoints"
        super().__init__(message, error_code="MISSING_ENDPOINT")


class InvalidEndpointError(BusinessLogicException):
    """Raised when an endpoint URI fails URL validation."""

    def __init__(self, role: str, uri: str) -> None:
        self.role = role
        self.uri = uri
        message = f"Invalid endpoint URI received for {role}: {uri!r}"
        super().__init__(message, error_code="INVALID_ENDPOINT")


class TransportError(BusinessLogicException):
    """Raised by an HTTP transport when the outbound request could not be completed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="TRANSPORT_FAILED")


class InvalidStateError(BusinessLogicException):
    """Raised when a provider callback carries an unknown, foreign or expired state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="INVALID_STATE")
