"""
Types and functions for the authentication process.

Covers the token endpoint response of the Authentication API and the
verification of Auth0-issued JWTs against the tenant's JSON Web Key Set,
using Authlib for key import, signature checks and claim validation.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
from authlib.common.encoding import to_bytes
from authlib.jose import JsonWebKey, JsonWebToken, Key
from authlib.jose.errors import DecodeError, InvalidClaimError, JoseError, MissingClaimError
from authlib.jose.util import extract_header

from .errors import ApiError, InvalidJwkError, InvalidJwtError, JwtMissingKidError
from .transport import error_from_response, parse_json, send_request
from .utils import normalize_url

logger = logging.getLogger(__name__)

JWKS_PATH = "/.well-known/jwks.json"


class GrantType(str, Enum):
    """OAuth2 grant types accepted by the Auth0 token endpoint."""
    CLIENT_CREDENTIALS = "client_credentials"
    PASSWORD = "password"
    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"

    def __str__(self) -> str:
        return self.value


def _parse_expires_in(value: Any) -> Optional[int]:
    if value is None:
        return None

    if isinstance(value, bool):
        raise ApiError("invalid_response", "'expires_in' must be an integer", 502)

    if isinstance(value, str):
        if not value.strip().lstrip("-").isdigit():
            raise ApiError("invalid_response", "'expires_in' must be an integer", 502)
        value = int(value)

    if not isinstance(value, int):
        raise ApiError("invalid_response", "'expires_in' must be an integer", 502)

    if value < 0:
        raise ApiError("invalid_response", "'expires_in' cannot be negative", 502)

    return value


@dataclass
class AccessTokenResponse:
    """
    The response we get from the token endpoint.

    ``expires_at`` is an absolute epoch timestamp derived from ``expires_in``
    at the time the response was received.
    """
    access_token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    scope: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> "AccessTokenResponse":
        """
        Validate and build a token response from the decoded JSON body.

        Raises:
            ApiError: ``invalid_response`` (502) when ``access_token`` is not a
                non-empty string or ``expires_in`` is not a non-negative integer.
        """
        if not isinstance(data, dict):
            raise ApiError("invalid_response", "Token endpoint response is not a JSON object", 502)

        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ApiError(
                "invalid_response",
                "Token endpoint response has no valid 'access_token'",
                502,
            )

        expires_in = _parse_expires_in(data.get("expires_in"))
        expires_at = int(time.time()) + expires_in if expires_in is not None else None

        return cls(
            access_token=access_token,
            token_type=data.get("token_type") or "Bearer",
            expires_in=expires_in,
            expires_at=expires_at,
            scope=data.get("scope"),
            id_token=data.get("id_token"),
            refresh_token=data.get("refresh_token"),
        )


@dataclass
class Validation:
    """
    Checks applied to a JWT once its signature is verified.

    Attributes:
        algorithms: Accepted signing algorithms.
        audience: Expected 'aud' value(s). When None and validate_aud is set,
            tokens carrying an 'aud' claim are rejected.
        issuer: Expected 'iss' value, not checked when None.
        validate_exp: Reject tokens whose 'exp' is in the past.
        validate_nbf: Reject tokens whose 'nbf' is in the future.
        validate_aud: Check the 'aud' claim.
        required_claims: Claims that must be present.
        leeway: Clock skew tolerance in seconds for time based claims.
    """
    algorithms: List[str] = field(default_factory=lambda: ["RS256"])
    audience: Optional[Union[str, List[str]]] = None
    issuer: Optional[str] = None
    validate_exp: bool = True
    validate_nbf: bool = False
    validate_aud: bool = True
    required_claims: List[str] = field(default_factory=lambda: ["exp"])
    leeway: int = 60

    def audiences(self) -> List[str]:
        if self.audience is None:
            return []
        if isinstance(self.audience, str):
            return [self.audience]
        return list(self.audience)


def jwks_url(authority: str) -> str:
    return normalize_url(f"{authority.rstrip('/')}{JWKS_PATH}")


def _check_keys(jwks: Any) -> bool:
    keys = jwks.get("keys") if isinstance(jwks, dict) else None
    return isinstance(keys, list) and all(isinstance(key, dict) for key in keys)


async def _get_jwks(http_client: httpx.AsyncClient, url: str) -> Dict[str, Any]:
    response = await send_request(http_client, "GET", url)
    if not response.is_success:
        raise error_from_response(response)

    jwks = parse_json(response)
    if not _check_keys(jwks):
        raise ApiError("invalid_response", f"{url} did not return a JSON Web Key Set", 502)

    logger.debug("Fetched %d keys from %s", len(jwks["keys"]), url)
    return jwks


async def fetch_jwks(
    url: str,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: float = 10.0,
) -> Dict[str, Any]:
    """Fetches the JWKS from the given URL."""
    url = normalize_url(url)
    if http_client is not None:
        return await _get_jwks(http_client, url)

    async with httpx.AsyncClient(timeout=timeout) as client:
        return await _get_jwks(client, url)


async def fetch_jwks_if_needed(
    jwks: Optional[Dict[str, Any]],
    authority: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Returns ``jwks`` when given, otherwise fetches it from the authority."""
    if jwks is not None:
        return jwks
    return await fetch_jwks(jwks_url(authority), http_client)


def _find_key(jwks: Dict[str, Any], kid: str) -> Optional[Key]:
    if not _check_keys(jwks):
        raise InvalidJwkError("The JWKS must be an object with a list of JWK objects")

    try:
        key_set = JsonWebKey.import_key_set(jwks)
    except (JoseError, ValueError, TypeError, KeyError) as e:
        raise InvalidJwkError("The JWKS could not be imported", cause=e) from e

    try:
        return key_set.find_by_kid(kid)
    except ValueError:
        return None


async def get_jwk(
    kid: str,
    jwks: Dict[str, Any],
    authority: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Tuple[Key, Dict[str, Any]]:
    """
    Find the key matching ``kid`` in the JWKS.

    A missing key may mean the signing keys were rotated, so the JWKS is
    fetched again once before giving up.

    Returns:
        Tuple of (key, jwks), where key is the imported Authlib key and jwks
        is the set it was found in.

    Raises:
        JwtMissingKidError: If the key is still missing after the refresh.
        InvalidJwkError: If the key set cannot be imported.
    """
    key = _find_key(jwks, kid)
    if key is not None:
        return key, jwks

    logger.debug("Key '%s' not found in JWKS, fetching it again", kid)
    jwks = await fetch_jwks(jwks_url(authority), http_client)

    key = _find_key(jwks, kid)
    if key is None:
        raise JwtMissingKidError(f"No JWK found for kid '{kid}'")
    return key, jwks


def decode_header(token: str) -> Dict[str, Any]:
    """
    Decode the JOSE header of a token without verifying it.

    Raises:
        InvalidJwtError: If the token is not a three-part JWS or its header
            is not base64url encoded JSON.
    """
    if not isinstance(token, str) or token.count(".") != 2:
        raise InvalidJwtError("Token is not a valid JWT", kind="malformed")

    try:
        return extract_header(to_bytes(token.split(".", 1)[0]), DecodeError)
    except DecodeError as e:
        raise InvalidJwtError("Token header could not be decoded", kind="malformed", cause=e) from e


def _check_rsa_key(key: Key) -> Key:
    if key.kty != "RSA":
        raise InvalidJwkError(f"Unsupported key type '{key.kty}', only RSA keys are accepted")
    return key


def _verify(token: str, key, validation: Validation) -> Dict[str, Any]:
    claims_options: Dict[str, Dict[str, Any]] = {}
    audiences = validation.audiences()

    if validation.issuer is not None:
        claims_options["iss"] = {"essential": True, "value": validation.issuer}
    if validation.validate_aud and audiences:
        claims_options["aud"] = {"essential": True, "values": audiences}

    try:
        claims = JsonWebToken(validation.algorithms).decode(
            token, key, claims_options=claims_options
        )

        for name in sorted(set(validation.required_claims) | set(claims_options)):
            if name not in claims:
                raise MissingClaimError(name)

        now = int(time.time())
        claims.validate_iss()
        if validation.validate_aud:
            if audiences:
                claims.validate_aud()
            elif "aud" in claims:
                raise InvalidClaimError("aud")
        if validation.validate_exp:
            claims.validate_exp(now, validation.leeway)
        if validation.validate_nbf:
            claims.validate_nbf(now, validation.leeway)
    except JoseError as e:
        raise InvalidJwtError(f"Token verification failed: {e}", kind=e.error, cause=e) from e

    return dict(claims)


async def valid_jwt(
    token: str,
    authority: str,
    validation: Optional[Validation] = None,
    jwks: Optional[Dict[str, Any]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Validates a JWT and returns its decoded payload.

    Args:
        token: The JWT to validate.
        authority: Base URL the JWKS is served from, e.g. "https://tenant.auth0.com".
        validation: The checks to perform on the claims (default: Validation()).
        jwks: A previously fetched JWKS; fetched from the authority when None.
        http_client: Optional client reused for the JWKS requests.

    Returns:
        Tuple of (claims, jwks). Pass the returned jwks back on the next call
        to skip the fetch.

    Raises:
        InvalidJwtError: Malformed token, bad signature or failed claim check.
        JwtMissingKidError: No 'kid' header, or no key with that id.
        InvalidJwkError: The matching key is not a usable RSA key.

    Example:
        claims, jwks = await valid_jwt(
            token,
            "https://tenant.auth0.com",
            Validation(audience="https://api.example.com"),
        )
    """
    header = decode_header(token)
    kid = header.get("kid")
    if not kid:
        raise JwtMissingKidError("Token header has no 'kid'")

    jwks = await fetch_jwks_if_needed(jwks, authority, http_client)
    key, jwks = await get_jwk(kid, jwks, authority, http_client)
    _check_rsa_key(key)

    claims = _verify(token, key, validation or Validation())
    return claims, jwks
