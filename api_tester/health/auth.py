"""
Health auth - Bearer token acquisition for protected APIs.
"""

import logging
from typing import Any, Dict, Tuple

import requests  # type: ignore

logger = logging.getLogger(__name__)


class AccessTokenError(RuntimeError):
    """Raised when the token endpoint does not answer with a success status."""


def request_access_token(
    jwt_config: Dict[str, Any], timeout: int = 30
) -> requests.Response:
    """
    Request an access token from the configured endpoint.

    With a "body" the request is a form-encoded POST, otherwise a plain GET.

    Args:
        jwt_config: Dict with "endpoint" and optional "body" mapping
        timeout: Request timeout in seconds

    Returns:
        The token endpoint's Response
    """
    endpoint = jwt_config["endpoint"]
    body = jwt_config.get("body")

    if body:
        logger.debug("Requesting access token via POST %s", endpoint)
        # requests form-encodes dict payloads
        return requests.post(
            endpoint,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=timeout,
        )

    logger.debug("Requesting access token via GET %s", endpoint)
    return requests.get(endpoint, timeout=timeout)


def read_credential(response: Any) -> Tuple[str, str]:
    """
    Extract the (token_type, access_token) pair from a token response.

    Args:
        response: Token endpoint response

    Returns:
        Tuple of (token_type, access_token)

    Raises:
        AccessTokenError: If the response is not a success
    """
    if not response.ok:
        message = (
            "Error while requesting access token: HTTP Error Response: "
            f"{response.status_code} {response.reason}"
        )
        logger.error(message)
        raise AccessTokenError(message)

    jwt = response.json()
    return jwt["token_type"], jwt["access_token"]
