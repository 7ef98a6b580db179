"""
HTTP plumbing shared by the authentication, JWKS and Management API calls.

Wraps httpx failures and Auth0 error responses into ApiError subclasses.
"""

import json
import logging
import time
from typing import Any, Optional

import httpx

from .errors import ApiError, RateLimitError

logger = logging.getLogger(__name__)


async def send_request(http_client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
    """
    Send a request, turning transport failures into ApiError.

    Raises:
        ApiError: ``timeout_error`` on timeouts, ``network_error`` on any
            other httpx.RequestError.
    """
    logger.debug("%s %s", method, url)
    try:
        response = await http_client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise ApiError(
            "timeout_error",
            f"Request to {url} timed out",
            504,
            e,
        ) from e
    except httpx.RequestError as e:
        raise ApiError(
            "network_error",
            f"Network error calling {url}: {e}",
            502,
            e,
        ) from e

    logger.debug("%s %s -> %s", method, url, response.status_code)
    return response


def parse_json(response: httpx.Response) -> Any:
    """
    Decode a successful response body.

    Raises:
        ApiError: ``invalid_json`` when the body is not JSON.
    """
    try:
        return response.json()
    except ValueError as e:
        raise ApiError(
            "invalid_json",
            "Auth0 returned invalid JSON",
            response.status_code,
            e,
        ) from e


def _retry_after(response: httpx.Response) -> Optional[int]:
    header = response.headers.get("retry-after")
    if header and header.strip().isdigit():
        return int(header)

    reset = response.headers.get("x-ratelimit-reset")
    if reset and reset.strip().isdigit():
        return max(int(reset) - int(time.time()), 0)

    return None


def error_from_response(response: httpx.Response) -> ApiError:
    """
    Build an ApiError from a non-2xx Auth0 response.

    Handles both error shapes Auth0 uses:
    - Authentication API: {"error": "...", "error_description": "..."}
    - Management API: {"statusCode": 400, "error": "Bad Request",
      "message": "...", "errorCode": "..."}
    Bodies that are not JSON objects fall back to the HTTP reason phrase.
    """
    try:
        body = json.loads(response.content) if response.content else None
    except ValueError:
        body = None

    code = "api_error"
    message = response.reason_phrase or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        code = body.get("errorCode") or body.get("error") or code
        message = body.get("error_description") or body.get("message") or message
    elif response.text:
        message = f"{message}: {response.text[:200]}"

    if response.status_code == 429:
        return RateLimitError(code, message, retry_after=_retry_after(response), json=body)

    return ApiError(code, message, response.status_code, json=body)
