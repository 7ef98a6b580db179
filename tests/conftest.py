"""Shared test fixtures and helpers for auth0-client tests."""

import json
import time
from typing import Any, Optional

import pytest
from authlib.jose import JsonWebKey, jwt
from pytest_httpx import HTTPXMock

from auth0_client import Auth0Client, Auth0ClientOptions
from auth0_client.errors import ApiError

# ===== Constants =====

DOMAIN = "https://auth0.local"
TOKEN_ENDPOINT = "https://auth0.local/oauth/token"
JWKS_URL = "https://auth0.local/.well-known/jwks.json"
USERS_URL = "https://auth0.local/api/v2/users"
MANAGEMENT_AUDIENCE = "https://auth0.local/api/v2/"
KID = "TEST_KEY"

# ===== Fixtures =====

@pytest.fixture
def client():
    """Client configured with the default Management API audience."""
    return Auth0Client(Auth0ClientOptions(
        domain="auth0.local",
        client_id="cid",
        client_secret="csecret",
    ))


@pytest.fixture(scope="session")
def rsa_key():
    return JsonWebKey.generate_key("RSA", 2048, is_private=True)


@pytest.fixture(scope="session")
def other_rsa_key():
    """A second RSA key, used to produce tokens with a signature that does not verify."""
    return JsonWebKey.generate_key("RSA", 2048, is_private=True)


@pytest.fixture(scope="session")
def ec_key():
    return JsonWebKey.generate_key("EC", "P-256", is_private=True)


@pytest.fixture
def jwks(rsa_key):
    return {"keys": [public_jwk(rsa_key)]}


# ===== Helper Functions =====

def public_jwk(key, kid: str = KID, alg: str = "RS256") -> dict:
    """Public JWK for ``key`` with the given key id."""
    data = dict(key.as_dict(is_private=False))
    data.update({"kid": kid, "alg": alg, "use": "sig"})
    return data


def make_token(key, kid: Optional[str] = KID, alg: str = "RS256", **claims: Any) -> str:
    """
    Sign a JWT with ``key``.

    Defaults to a token issued by the test tenant for the Management API,
    valid for one hour from now. Pass ``claim=None`` to drop a claim.
    """
    now = int(time.time())
    payload = {
        "iss": f"{DOMAIN}/",
        "sub": "user_123",
        "aud": MANAGEMENT_AUDIENCE,
        "iat": now,
        "exp": now + 3600,
    }
    payload.update(claims)
    payload = {k: v for k, v in payload.items() if v is not None}

    header = {"alg": alg}
    if kid is not None:
        header["kid"] = kid

    return jwt.encode(header, payload, key).decode("utf-8")


def token_success(**overrides) -> dict:
    """
    Factory for successful token response.

    Returns a base successful response with optional field overrides.
    """
    base = {
        "access_token": "t",
        "token_type": "Bearer",
        "expires_in": 3600,
    }
    base.update(overrides)
    return base


def mock_token(httpx_mock: HTTPXMock, access_token: str = "t", **overrides):
    """Register one successful token endpoint response."""
    httpx_mock.add_response(
        method="POST",
        url=TOKEN_ENDPOINT,
        json=token_success(access_token=access_token, **overrides),
    )


def last_json(httpx_mock: HTTPXMock) -> Any:
    """Helper to read the last posted JSON body."""
    return json.loads(httpx_mock.get_requests()[-1].content)


def last_auth_header(httpx_mock: HTTPXMock) -> Optional[str]:
    """Get the Authorization header from the last request."""
    return httpx_mock.get_requests()[-1].headers.get("authorization")


# ===== Assertion Helpers =====

def assert_api_error(
    exc: Exception,
    *,
    code: Optional[str] = None,
    status: Optional[int] = None,
    contains: Optional[str] = None
):
    """
    Assert that an exception is an ApiError with expected properties.

    Args:
        exc: The exception to check
        code: Expected error code
        status: Expected HTTP status code
        contains: String that should appear in error message (case-insensitive)
    """
    assert isinstance(exc, ApiError), f"Expected ApiError, got {type(exc).__name__}"
    if code is not None:
        assert exc.get_error_code() == code, f"Expected code '{code}', got '{exc.code}'"
    if status is not None:
        assert exc.get_status_code() == status, f"Expected status {status}, got {exc.status_code}"
    if contains is not None:
        assert contains.lower() in str(exc).lower(), f"Expected '{contains}' in error message: {exc}"


def assert_no_requests(httpx_mock: HTTPXMock):
    """
    Assert that no HTTP requests were made (useful for validation short-circuit tests).

    Args:
        httpx_mock: The pytest-httpx mock
    """
    requests = httpx_mock.get_requests()
    assert len(requests) == 0, f"Expected no requests, but {len(requests)} were made"
