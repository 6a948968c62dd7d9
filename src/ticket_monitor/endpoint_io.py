"""Versioned JSON import and export of endpoint configurations."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from ticket_monitor.clock import now_ms
from ticket_monitor.exceptions import ImportFileError
from ticket_monitor.validators import (
    check_for_duplicates,
    validate_endpoint_name,
    validate_endpoint_url,
)

SCHEMA_ID = "zendesk-ticket-monitor/endpoints/v1"
SCHEMA_VERSION = 1
MAX_IMPORT_SIZE_BYTES = 1 * 1024 * 1024
SOURCE_NAME = "Zendesk Ticket Monitor"

_INVALID_FORMAT = "Invalid file format. Please select a valid JSON file."


def export_endpoints(endpoints: list[dict] | None, app_version: str) -> str:
    """Serialize endpoints for sharing.

    Only ``name``, ``url`` and ``enabled`` are written; ids are assigned
    again on import.
    """
    payload = {
        "$schema": SCHEMA_ID,
        "version": SCHEMA_VERSION,
        "exportedAt": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "source": {"extension": SOURCE_NAME, "version": app_version},
        "endpoints": [
            {"name": e.get("name"), "url": e.get("url"), "enabled": bool(e.get("enabled"))}
            for e in endpoints or []
        ],
    }
    return json.dumps(payload, indent=2)


def parse_import_file(content: str | bytes) -> dict[str, Any]:
    """Structurally validate an import file.

    Individual endpoints are not checked here; see
    :func:`validate_imported_endpoints`.

    Raises:
        ImportFileError: With a user-facing message.
    """
    if len(content) > MAX_IMPORT_SIZE_BYTES:
        raise ImportFileError("File is too large. Maximum size is 1 MB.")
    try:
        parsed = json.loads(content)
    except (ValueError, TypeError) as e:
        raise ImportFileError(_INVALID_FORMAT) from e

    if not isinstance(parsed, dict):
        raise ImportFileError(_INVALID_FORMAT)
    if parsed.get("version") != SCHEMA_VERSION or isinstance(parsed.get("version"), bool):
        raise ImportFileError(
            "Unsupported file format. Please use a file exported from this extension."
        )
    if not isinstance(parsed.get("endpoints"), list):
        raise ImportFileError(_INVALID_FORMAT)
    if not parsed["endpoints"]:
        raise ImportFileError("No endpoints found in file.")
    return parsed


def validate_imported_endpoints(
    imported: list[Any], existing: list[dict]
) -> tuple[list[dict], list[str]]:
    """Validate each imported entry against the stored endpoints.

    Duplicates are checked against stored endpoints and against entries
    accepted earlier in the same file. Unknown fields are dropped.

    Returns:
        (valid entries, human-readable skip reasons)
    """
    valid: list[dict] = []
    skipped: list[str] = []

    for raw in imported:
        if not isinstance(raw, dict):
            skipped.append("Skipped entry with invalid structure")
            continue

        name = raw["name"].strip() if isinstance(raw.get("name"), str) else ""
        url = raw["url"].strip() if isinstance(raw.get("url"), str) else ""
        enabled = bool(raw["enabled"]) if "enabled" in raw else True

        ok, error = validate_endpoint_name(name)
        if not ok:
            skipped.append(f'Skipped "{name or "(unnamed)"}": {error}')
            continue

        ok, error = validate_endpoint_url(url)
        if not ok:
            skipped.append(f'Skipped "{name}": {error}')
            continue

        duplicate, _ = check_for_duplicates([*existing, *valid], name, url)
        if duplicate:
            skipped.append(f'Skipped "{name}": already exists')
            continue

        valid.append({"name": name, "url": url, "enabled": enabled})

    return valid, skipped


def prepare_endpoints_for_import(valid: list[dict], now: int | None = None) -> list[dict]:
    """Assign ids and creation time. Ids are ``now + index`` so a batch
    never collides with itself."""
    now = now_ms() if now is None else now
    return [
        {
            "id": now + index,
            "name": endpoint["name"],
            "url": endpoint["url"],
            "enabled": endpoint["enabled"],
            "createdAt": now,
        }
        for index, endpoint in enumerate(valid)
    ]
