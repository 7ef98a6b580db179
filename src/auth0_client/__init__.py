"""
auth0-client

An unofficial asynchronous Python client for the Auth0 Authentication and
Management APIs, built on httpx, with JWT verification using Authlib.
"""

from .authorization import AccessTokenResponse, GrantType, Validation, valid_jwt
from .client import Auth0Client
from .config import Auth0ClientOptions
from .errors import (
    ApiError,
    Auth0Error,
    InvalidJwkError,
    InvalidJwtError,
    JwtMissingKidError,
    MissingRequiredArgumentError,
    RateLimitError,
    UnauthorizedError,
)
from .users import CreateUserPayload, UpdateUserPayload, User, UserQuery, UsersPage

__all__ = [
    "AccessTokenResponse",
    "ApiError",
    "Auth0Client",
    "Auth0ClientOptions",
    "Auth0Error",
    "CreateUserPayload",
    "GrantType",
    "InvalidJwkError",
    "InvalidJwtError",
    "JwtMissingKidError",
    "MissingRequiredArgumentError",
    "RateLimitError",
    "UnauthorizedError",
    "UpdateUserPayload",
    "User",
    "UserQuery",
    "UsersPage",
    "Validation",
    "valid_jwt",
]
