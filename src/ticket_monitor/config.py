"""Runtime locations, overridable through the environment."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def _default_session_dir() -> Path:
    runtime = os.environ.get("XDG_RUNTIME_DIR")
    if runtime:
        return Path(runtime) / "ticket-monitor"
    uid = os.getuid() if hasattr(os, "getuid") else "user"
    return Path(tempfile.gettempdir()) / f"ticket-monitor-{uid}"


STATE_DIR = Path(
    os.environ.get("TICKET_MONITOR_STATE_DIR", Path.home() / ".config" / "ticket-monitor")
)
SESSION_DIR = Path(os.environ.get("TICKET_MONITOR_SESSION_DIR", _default_session_dir()))
COOKIE_FILE = os.environ.get("TICKET_MONITOR_COOKIE_FILE")
BADGE_FILE = Path(os.environ.get("TICKET_MONITOR_BADGE_FILE", SESSION_DIR / "badge.json"))

DURABLE_STATE_FILE = STATE_DIR / "state.json"
VOLATILE_STATE_FILE = SESSION_DIR / "session.json"
