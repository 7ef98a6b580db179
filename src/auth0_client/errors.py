"""
Error classes for auth0-client.

Every exception raised by this package derives from Auth0Error, so callers
can catch transport, API and token-validation failures with a single clause.
"""

from typing import Any, Optional


class Auth0Error(Exception):
    """
    Base class for all auth0-client errors.

    Args:
        message: Human readable description of the failure.
        code: Stable, machine readable error code.
        cause: The underlying exception, when there is one.
    """
    code = "auth0_error"

    def __init__(self, message: str, code: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.cause = cause

    def get_error_code(self) -> str:
        return self.code


class MissingRequiredArgumentError(Auth0Error):
    """Raised when a required option or argument is missing or empty."""
    code = "missing_required_argument"

    def __init__(self, argument: str):
        super().__init__(f"The argument '{argument}' is required but was not provided.")
        self.argument = argument


class ApiError(Auth0Error):
    """
    Raised when a call to the Auth0 Authentication or Management API fails,
    either at the transport level or with an error response.

    Attributes:
        code: Auth0 error code (``errorCode``/``error``) or one of
            ``timeout_error``, ``network_error``, ``invalid_json``,
            ``invalid_response``.
        status_code: HTTP status of the response, or the status this client
            associates with the transport failure.
        json: Decoded error body, when the response carried one.
    """
    code = "api_error"

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        json: Optional[Any] = None,
    ):
        super().__init__(message, code=code, cause=cause)
        self.status_code = status_code
        self.json = json

    def get_status_code(self) -> Optional[int]:
        return self.status_code


class UnauthorizedError(ApiError):
    """Raised when the Management API keeps answering 401 after re-authenticating."""


class RateLimitError(ApiError):
    """
    Raised on HTTP 429 responses.

    ``retry_after`` is the number of seconds Auth0 asks the caller to wait,
    or None when the response gave no hint.
    """

    def __init__(self, code: str, message: str, retry_after: Optional[int] = None, **kwargs):
        super().__init__(code, message, status_code=429, **kwargs)
        self.retry_after = retry_after


class InvalidJwtError(Auth0Error):
    """
    Raised when a JWT cannot be decoded or fails verification.

    ``kind`` carries the Authlib error name (``bad_signature``,
    ``expired_token``, ``invalid_claim``, ``missing_claim``...) or
    ``malformed`` for tokens that are not valid JWS compact serialisations.
    """
    code = "invalid_jwt"

    def __init__(self, message: str, kind: str = "invalid_token", cause: Optional[Exception] = None):
        super().__init__(message, cause=cause)
        self.kind = kind


class JwtMissingKidError(Auth0Error):
    """Raised when a token has no 'kid' header or no JWK matches it."""
    code = "jwt_missing_kid"

    def __init__(self, message: str = "No matching key found for the token 'kid'"):
        super().__init__(message)


class InvalidJwkError(Auth0Error):
    """Raised when a JWK is not an RSA key or cannot be imported."""
    code = "invalid_jwk"

    def __init__(self, message: str = "The JWK is not a usable RSA key", cause: Optional[Exception] = None):
        super().__init__(message, cause=cause)
