"""
Auth0Client: token lifecycle for the Authentication API and authorized
calls to the Management API.
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional

import httpx

from .authorization import AccessTokenResponse, GrantType, Validation, valid_jwt
from .config import Auth0ClientOptions
from .errors import MissingRequiredArgumentError, UnauthorizedError
from .transport import error_from_response, parse_json, send_request
from .users import UserManagement
from .utils import build_query, normalize_url

logger = logging.getLogger(__name__)

PASSWORD_REALM_GRANT = "http://auth0.com/oauth/grant-type/password-realm"


class Auth0Client(UserManagement):
    """
    Asynchronous client for the Auth0 Authentication and Management APIs.

    The client obtains a token with its own credentials, keeps it until it is
    about to expire and renews it transparently before Management API calls.

    Example:
        async with Auth0Client.from_env() as client:
            user = await client.get_user("auth0|123")
    """

    def __init__(self, options: Auth0ClientOptions):
        if not options.domain:
            raise MissingRequiredArgumentError("domain")
        if not options.client_id:
            raise MissingRequiredArgumentError("client_id")
        if not options.client_secret:
            raise MissingRequiredArgumentError("client_secret")

        self.options = options
        self.domain = options.domain
        self.audience = options.audience
        self.grant_type = options.grant_type

        self._token: Optional[AccessTokenResponse] = None
        self._http_client: Optional[httpx.AsyncClient] = None
        self._jwks: Optional[Dict[str, Any]] = None
        self._jwks_fetched_at = 0.0

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "Auth0Client":
        """Create a client configured from AUTH0_* environment variables (and .env)."""
        return cls(Auth0ClientOptions.from_env(env_file, **overrides))

    async def __aenter__(self) -> "Auth0Client":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.options.timeout)
        return self._http_client

    @property
    def token_url(self) -> str:
        return normalize_url(f"{self.domain}/oauth/token")

    @property
    def access_token(self) -> Optional[str]:
        """The current access token, or None if the client is not authenticated."""
        return self._token.access_token if self._token else None

    def is_token_expired(self) -> bool:
        """True when there is no token or it expires within the configured leeway."""
        if self._token is None:
            return True
        if self._token.expires_at is None:
            return False
        return time.time() >= self._token.expires_at - self.options.token_expiry_leeway

    async def authenticate(self) -> str:
        """
        Authenticate the client with its own credentials.

        The token is stored on the client and used by every Management API call.

        Returns:
            The access token.
        """
        logger.debug("Starting authentication at %s...", self.token_url)

        response = await self.authenticate_with_body({
            "grant_type": str(self.grant_type),
            "client_id": self.options.client_id,
            "client_secret": self.options.client_secret,
            "audience": self.audience,
        })

        self._token = response
        return response.access_token

    async def authenticate_user(
        self,
        username: str,
        password: str,
        scope: Optional[str] = None,
        realm: Optional[str] = None,
    ) -> AccessTokenResponse:
        """
        Authenticate a user with the resource owner password grant.

        The returned token belongs to the user; the client keeps its own token.

        Args:
            username: The user's username or email.
            password: The user's password.
            scope: Optional space separated scopes, e.g. "openid profile".
            realm: Optional connection name; switches to the password-realm grant.
        """
        if not username:
            raise MissingRequiredArgumentError("username")
        if not password:
            raise MissingRequiredArgumentError("password")

        logger.debug("Starting user authentication at %s...", self.token_url)

        body = {
            "grant_type": PASSWORD_REALM_GRANT if realm else str(GrantType.PASSWORD),
            "client_id": self.options.client_id,
            "client_secret": self.options.client_secret,
            "audience": self.audience,
            "username": username,
            "password": password,
        }
        if scope is not None:
            body["scope"] = scope
        if realm is not None:
            body["realm"] = realm

        return await self.authenticate_with_body(body)

    async def authenticate_with_body(self, body: Mapping[str, Any]) -> AccessTokenResponse:
        """Post ``body`` as JSON to the token endpoint and parse the token response."""
        response = await send_request(
            self._get_http_client(), "POST", self.token_url, json=dict(body)
        )

        logger.debug("Response from Auth0 token endpoint (%s)", response.status_code)

        if not response.is_success:
            raise error_from_response(response)

        return AccessTokenResponse.from_json(parse_json(response))

    async def _send_authorized(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        return await send_request(self._get_http_client(), method, url, headers=headers, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Call a Management API endpoint.

        Authenticates first when needed. A 401 answer triggers one
        re-authentication and a single replay of the call.

        Args:
            method: HTTP method, e.g. "GET".
            path: Path relative to /api/v2/, e.g. "users".
            body: JSON body to send.
            params: Query parameters (None values are dropped).

        Returns:
            The decoded JSON body, or None for empty responses.

        Raises:
            UnauthorizedError: If the API still answers 401 after re-authenticating.
            RateLimitError: On HTTP 429.
            ApiError: On any other failure.
        """
        url = normalize_url(f"{self.domain}/api/v2/{path.lstrip('/')}")
        kwargs: Dict[str, Any] = {}
        if body is not None:
            kwargs["json"] = body
        if params:
            kwargs["params"] = build_query(params)

        if self.is_token_expired():
            await self.authenticate()

        response = await self._send_authorized(method, url, **kwargs)

        if response.status_code == 401:
            logger.debug("Token rejected by %s, authenticating again", url)
            await self.authenticate()
            response = await self._send_authorized(method, url, **kwargs)

            if response.status_code == 401:
                error = error_from_response(response)
                raise UnauthorizedError(error.code, error.message, 401, json=error.json)

        if not response.is_success:
            raise error_from_response(response)

        if response.status_code == 204 or not response.content:
            return None
        return parse_json(response)

    async def verify_access_token(
        self,
        access_token: str,
        validation: Optional[Validation] = None,
    ) -> Dict[str, Any]:
        """
        Verify a token issued by this tenant and return its claims.

        By default the token must be RS256 signed, issued by "<domain>/",
        intended for the client audience and carry 'iat' and 'exp'.
        The tenant JWKS is cached for ``jwks_cache_ttl`` seconds.
        """
        if not access_token:
            raise MissingRequiredArgumentError("access_token")

        if validation is None:
            validation = Validation(
                audience=self.audience,
                issuer=f"{self.domain}/",
                required_claims=["iat", "exp"],
            )

        jwks = self._jwks
        if jwks is not None and time.time() - self._jwks_fetched_at > self.options.jwks_cache_ttl:
            jwks = None

        claims, fetched = await valid_jwt(
            access_token, self.domain, validation, jwks, self._get_http_client()
        )

        if fetched is not jwks:
            self._jwks = fetched
            self._jwks_fetched_at = time.time()

        return claims
