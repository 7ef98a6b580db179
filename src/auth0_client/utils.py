"""
Small helpers shared by the client modules.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

# Any run of slashes that does not directly follow the scheme's ':'
_DUPLICATE_SLASHES = re.compile(r"([^:/])/{2,}")


def normalize_url(url: str) -> str:
    """
    Collapse duplicated slashes in a URL while keeping the ``scheme://`` part.

    ``https://tenant.auth0.com//api//v2/users`` becomes
    ``https://tenant.auth0.com/api/v2/users``.
    """
    return _DUPLICATE_SLASHES.sub(r"\1/", url)


def normalize_domain(domain: str) -> str:
    """
    Normalize an Auth0 domain to a base URL.

    Args:
        domain: Bare host (e.g. "tenant.auth0.com") or full URL.

    Returns:
        The URL with a scheme and without trailing slash,
        e.g. "https://tenant.auth0.com".
    """
    domain = domain.strip()

    if not domain.startswith("http://") and not domain.startswith("https://"):
        domain = f"https://{domain}"

    return domain.rstrip("/")


def encode_path_segment(value: str) -> str:
    """Percent-encode a value so it can be used as a single URL path segment."""
    return quote(str(value), safe="")


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an Auth0 ISO-8601 timestamp ("2023-01-01T10:00:00.000Z") to an aware datetime."""
    if value is None or isinstance(value, datetime):
        return value

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_query(params: Mapping[str, Any]) -> Dict[str, str]:
    """
    Render query parameters the way the Management API expects them.

    None values are dropped, booleans become "true"/"false" and
    lists or tuples are joined with commas.
    """
    query: Dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            query[key] = ",".join(str(v) for v in value)
        else:
            query[key] = str(value)
    return query


def drop_none(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` without the keys whose value is None."""
    return {key: value for key, value in data.items() if value is not None}
