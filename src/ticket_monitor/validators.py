"""Validation of user-supplied endpoints."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlparse

from ticket_monitor.exceptions import ValidationError

MAX_NAME_LENGTH = 50
SEARCH_API_PATH = "/api/v2/search"


def validate_endpoint_url(url: Any) -> tuple[bool, str | None]:
    """Check that ``url`` is a Zendesk ticket-search API call.

    Returns:
        (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname or ""
    except ValueError:
        return False, "Please enter a valid URL"

    if parsed.scheme not in ("http", "https") or not hostname:
        return False, "Please enter a valid URL"

    parts = hostname.split(".")
    if len(parts) < 3 or parts[-2:] != ["zendesk", "com"] or not parts[0]:
        return False, "URL must be a Zendesk domain (*.zendesk.com)"

    if SEARCH_API_PATH not in parsed.path:
        return False, "URL must be a Zendesk API endpoint"

    query = parse_qs(parsed.query, keep_blank_values=True).get("query")
    if not query or not any(q.strip() for q in query):
        return False, "URL must include a search query parameter"

    return True, None


def validate_endpoint_name(name: Any) -> tuple[bool, str | None]:
    if not name or not isinstance(name, str) or not name.strip():
        return False, "Endpoint name is required"
    if len(name.strip()) > MAX_NAME_LENGTH:
        return False, f"Endpoint name must be at most {MAX_NAME_LENGTH} characters"
    return True, None


def check_for_duplicates(
    endpoints: list[dict] | None, name: str, url: str
) -> tuple[bool, str | None]:
    """Case-insensitive clash on either name or URL.

    Returns:
        (is_duplicate, error_message)
    """
    if not isinstance(endpoints, list):
        return False, None

    normalized_name = name.strip().lower()
    normalized_url = url.strip().lower()
    for endpoint in endpoints:
        if (
            str(endpoint.get("url", "")).strip().lower() == normalized_url
            or str(endpoint.get("name", "")).strip().lower() == normalized_name
        ):
            return True, "Endpoint with this name or URL already exists"
    return False, None


def validate_endpoint(endpoint: dict, existing: list[dict] | None = None) -> list[str]:
    """Collect every validation error for ``endpoint``. Empty means valid."""
    errors = []
    name = endpoint.get("name")
    url = endpoint.get("url")

    ok, error = validate_endpoint_name(name)
    if not ok:
        errors.append(error)
    ok, error = validate_endpoint_url(url)
    if not ok:
        errors.append(error)
    if isinstance(name, str) and isinstance(url, str):
        duplicate, error = check_for_duplicates(existing or [], name, url)
        if duplicate:
            errors.append(error)
    return errors


def require_valid_endpoint(endpoint: dict, existing: list[dict] | None = None) -> None:
    errors = validate_endpoint(endpoint, existing)
    if errors:
        raise ValidationError(errors)
