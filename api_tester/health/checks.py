"""
Health checks - Transport and pure helper functions for API validation.

This module provides the HTTP transport used by the tester and pure functions
for inspecting decoded JSON responses.
"""

import logging
from typing import Any, Dict, List, Optional

import requests  # type: ignore

logger = logging.getLogger(__name__)

# Property paths deeper than this are looked up as a single top-level key
MAX_PROPERTY_DEPTH = 4

_MISSING = object()


def fetch(
    url: str, headers: Optional[Dict[str, str]] = None, timeout: int = 30
) -> requests.Response:
    """
    Issue a single GET request.

    Args:
        url: Absolute URL to fetch
        headers: Optional request headers (e.g. Authorization)
        timeout: Request timeout in seconds

    Returns:
        The requests Response (exposes status_code and json())

    Raises:
        requests.exceptions.RequestException: On network errors
    """
    logger.debug("GET %s", url)
    return requests.get(url, headers=headers or {}, timeout=timeout)


def _resolve_segment(current: Any, segment: str) -> Any:
    """Resolve one path segment, returning _MISSING when it can't be walked."""
    if isinstance(current, dict):
        return current[segment] if segment in current else _MISSING
    if isinstance(current, list) and segment.isdigit():
        index = int(segment)
        return current[index] if index < len(current) else _MISSING
    return _MISSING


def check_missing_properties(obj: Any, paths: List[str]) -> List[str]:
    """
    Check which property paths are absent from an object.

    Paths are dot-separated and resolved up to MAX_PROPERTY_DEPTH levels.
    A longer path is treated as one top-level key, so deeper properties are
    not supported. A key holding null counts as present.

    Args:
        obj: Decoded JSON object to inspect
        paths: Property paths (e.g. "id", "owner.address.city")

    Returns:
        The paths that could not be resolved, in input order
    """
    missing: List[str] = []

    for path in paths:
        segments = path.split(".")
        if len(segments) > MAX_PROPERTY_DEPTH:
            segments = [path]

        current = obj
        for segment in segments:
            current = _resolve_segment(current, segment)
            if current is _MISSING:
                break

        if current is _MISSING:
            missing.append(path)

    return missing


def find_checksum(body: Dict[str, Any]) -> Optional[Any]:
    """
    Find the checksum value of a response body.

    The top-level "checksum" field wins over "data.checksum".

    Args:
        body: Decoded response body

    Returns:
        The checksum value, or None if the response carries none
    """
    if body.get("checksum"):
        return body["checksum"]

    data = body.get("data")
    if isinstance(data, dict) and data.get("checksum"):
        return data["checksum"]

    return None


def build_checksum_url(url: str, checksum: Any) -> str:
    """
    Append a checksum query parameter to a relative URL.

    Args:
        url: Controller URL, possibly with a query string
        checksum: Checksum value to send back

    Returns:
        URL with "checksum=<value>" appended using "&" or "?"
    """
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}checksum={checksum}"
