"""
Configuration classes and utilities for auth0-client.
"""

import os
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv

from .authorization import GrantType
from .errors import MissingRequiredArgumentError
from .utils import normalize_domain


class Auth0ClientOptions:
    """
    Configuration for the Auth0Client.

    Args:
        domain: The Auth0 domain, e.g., "my-tenant.us.auth0.com" or a full URL.
        client_id: Client ID of the machine-to-machine application.
        client_secret: Client secret of the machine-to-machine application.
        audience: API identifier tokens are requested for
            (default: the Management API, "https://<domain>/api/v2/").
        grant_type: Grant used by authenticate() (default: client_credentials).
        timeout: HTTP timeout in seconds for every call (default: 10).
        jwks_cache_ttl: Cache TTL in seconds for the JWKS used by
            verify_access_token (default: 3600 = 1 hour).
        token_expiry_leeway: Seconds before expiry at which the client token is
            considered expired and renewed (default: 30).
    """
    def __init__(
            self,
            domain: Optional[str] = None,
            client_id: Optional[str] = None,
            client_secret: Optional[str] = None,
            audience: Optional[str] = None,
            grant_type: Union[GrantType, str] = GrantType.CLIENT_CREDENTIALS,
            timeout: float = 10.0,
            jwks_cache_ttl: int = 3600,
            token_expiry_leeway: int = 30,
    ):
        self.domain = normalize_domain(domain) if domain else domain
        self.client_id = client_id
        self.client_secret = client_secret
        self.audience = audience or (f"{self.domain}/api/v2/" if self.domain else None)
        self.grant_type = GrantType(grant_type)
        self.timeout = timeout
        self.jwks_cache_ttl = jwks_cache_ttl
        self.token_expiry_leeway = token_expiry_leeway

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "Auth0ClientOptions":
        """
        Build options from environment variables, loading a .env file first.

        Reads AUTH0_DOMAIN, AUTH0_CLIENT_ID, AUTH0_CLIENT_SECRET and the optional
        AUTH0_AUDIENCE and AUTH0_TIMEOUT. Values already present in the process
        environment win over the .env file. Keyword arguments override both.

        Raises:
            MissingRequiredArgumentError: If a required variable is not set.
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))

        values = {}
        for name, key in (
            ("AUTH0_DOMAIN", "domain"),
            ("AUTH0_CLIENT_ID", "client_id"),
            ("AUTH0_CLIENT_SECRET", "client_secret"),
        ):
            if key in overrides:
                continue
            value = os.getenv(name)
            if not value:
                raise MissingRequiredArgumentError(name)
            values[key] = value

        if os.getenv("AUTH0_AUDIENCE"):
            values["audience"] = os.environ["AUTH0_AUDIENCE"]
        if os.getenv("AUTH0_TIMEOUT"):
            values["timeout"] = float(os.environ["AUTH0_TIMEOUT"])

        values.update(overrides)
        return cls(**values)
