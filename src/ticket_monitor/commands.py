"""Command surface exposed to the settings UI.

Each command is a small frozen dataclass; :func:`parse_command` turns an
incoming ``{"action": ...}`` message into one, and :class:`CommandRouter`
looks up the handler by type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Union

from ticket_monitor.exceptions import StorageUnavailable, TicketMonitorError
from ticket_monitor.storage.state import (
    IS_ENABLED_KEY,
    LAST_CHECK_KEY,
    LAST_REFRESH_KEY,
)

if TYPE_CHECKING:
    from ticket_monitor.monitor import TicketMonitor

logger = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL_MS = 30_000
RATE_LIMIT_MESSAGE = "Please wait 30 seconds before refreshing again"


@dataclass(frozen=True)
class RefreshNow:
    pass


@dataclass(frozen=True)
class ToggleEnabled:
    enabled: bool


@dataclass(frozen=True)
class GetStatus:
    pass


@dataclass(frozen=True)
class SetSnooze:
    duration: int


@dataclass(frozen=True)
class ClearSnooze:
    pass


@dataclass(frozen=True)
class GetSnoozeStatus:
    pass


@dataclass(frozen=True)
class UnknownCommand:
    action: Any


Command = Union[
    RefreshNow, ToggleEnabled, GetStatus, SetSnooze, ClearSnooze, GetSnoozeStatus, UnknownCommand
]


def parse_command(message: dict[str, Any]) -> Command:
    action = message.get("action") if isinstance(message, dict) else None
    if action == "refreshNow":
        return RefreshNow()
    if action == "toggleEnabled":
        return ToggleEnabled(enabled=bool(message.get("enabled")))
    if action == "getStatus":
        return GetStatus()
    if action == "setSnooze":
        return SetSnooze(duration=message.get("duration", 0))
    if action == "clearSnooze":
        return ClearSnooze()
    if action == "getSnoozeStatus":
        return GetSnoozeStatus()
    return UnknownCommand(action=action)


async def handle_refresh_now(monitor: TicketMonitor, command: RefreshNow) -> dict:
    state = monitor.state
    now = monitor.clock()
    try:
        flags = await state.read_volatile([LAST_REFRESH_KEY])
    except StorageUnavailable as e:
        logger.warning(f"Runtime flags unreadable: {e}")
        flags = {}
    last = flags.get(LAST_REFRESH_KEY) or 0
    if now - last < MIN_REFRESH_INTERVAL_MS:
        logger.info("Refresh rate limited")
        return {"success": False, "error": RATE_LIMIT_MESSAGE}

    await state.write_volatile({LAST_REFRESH_KEY: now})
    logger.info("Manual refresh requested")
    monitor.spawn(monitor.run_sweep())
    return {"success": True}


async def handle_toggle_enabled(monitor: TicketMonitor, command: ToggleEnabled) -> dict:
    await monitor.state.write_volatile({IS_ENABLED_KEY: command.enabled})
    logger.info(f"Monitoring {'enabled' if command.enabled else 'disabled'}")
    return {"success": True}


async def handle_get_status(monitor: TicketMonitor, command: GetStatus) -> dict:
    flags = await monitor.state.read_volatile([IS_ENABLED_KEY, LAST_CHECK_KEY])
    counts = await monitor.state.get_endpoint_counts()
    snooze = await monitor.snooze.get_status()
    return {
        "enabled": flags.get(IS_ENABLED_KEY, True) is not False,
        "counts": [[endpoint_id, count] for endpoint_id, count in counts.items()],
        "lastCheck": flags.get(LAST_CHECK_KEY, 0),
        "isSnoozed": snooze.is_snoozed,
        "snoozeEndTime": snooze.snooze_end_time,
    }


async def handle_set_snooze(monitor: TicketMonitor, command: SetSnooze) -> dict:
    return await monitor.snooze.set_snooze(command.duration)


async def handle_clear_snooze(monitor: TicketMonitor, command: ClearSnooze) -> dict:
    return await monitor.snooze.clear_snooze()


async def handle_get_snooze_status(monitor: TicketMonitor, command: GetSnoozeStatus) -> dict:
    status = await monitor.snooze.get_status()
    return status.to_dict()


async def handle_unknown(monitor: TicketMonitor, command: UnknownCommand) -> dict:
    logger.warning("Unknown action: %r", command.action)
    return {"error": "Unknown action"}


Handler = Callable[["TicketMonitor", Any], Awaitable[dict]]

HANDLERS: dict[type, Handler] = {
    RefreshNow: handle_refresh_now,
    ToggleEnabled: handle_toggle_enabled,
    GetStatus: handle_get_status,
    SetSnooze: handle_set_snooze,
    ClearSnooze: handle_clear_snooze,
    GetSnoozeStatus: handle_get_snooze_status,
    UnknownCommand: handle_unknown,
}


class CommandRouter:
    """Dispatch commands to their handlers. Never raises."""

    def __init__(self, monitor: TicketMonitor, handlers: dict[type, Handler] | None = None):
        self.monitor = monitor
        self.handlers = handlers or HANDLERS

    async def dispatch(self, command: Command) -> dict:
        handler = self.handlers[type(command)]
        try:
            return await handler(self.monitor, command)
        except TicketMonitorError as e:
            logger.error(f"{type(command).__name__} failed: {e}")
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.exception(f"{type(command).__name__} failed unexpectedly")
            return {"success": False, "error": f"Internal error: {e}"}

    async def handle_message(self, message: dict[str, Any]) -> dict:
        return await self.dispatch(parse_command(message))
