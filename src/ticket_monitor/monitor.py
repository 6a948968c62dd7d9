"""Lifecycle entry points that wire the monitoring core to its host."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Coroutine

import httpx

from ticket_monitor import config
from ticket_monitor.clock import Clock, now_ms
from ticket_monitor.commands import CommandRouter
from ticket_monitor.dispatcher import NotificationDispatcher
from ticket_monitor.exceptions import SchedulerError, StorageUnavailable
from ticket_monitor.host.audio import OffscreenAudio
from ticket_monitor.host.badge import StatusFileBadge
from ticket_monitor.host.base import (
    AudioPlayer,
    BadgeDisplay,
    CookieSource,
    NotificationDisplay,
    Scheduler,
    TabOpener,
)
from ticket_monitor.host.cookies import CookieFileSource, StaticCookieSource
from ticket_monitor.host.notifications import DesktopNotifier
from ticket_monitor.host.scheduler import AsyncioScheduler
from ticket_monitor.host.tabs import BrowserTabOpener
from ticket_monitor.models import Settings
from ticket_monitor.poller import EndpointPoller
from ticket_monitor.snooze import SNOOZE_ALARM, SnoozeController
from ticket_monitor.storage.json_file import JsonFileStore
from ticket_monitor.storage.state import (
    ENDPOINTS_KEY,
    IS_ENABLED_KEY,
    LAST_CHECK_KEY,
    LAST_REFRESH_KEY,
    SETTINGS_KEY,
    StateStore,
)

logger = logging.getLogger(__name__)

TICKET_CHECK_ALARM = "ticketCheck"

DEFAULT_ENDPOINT_NAME = "New AMER Tickets"
DEFAULT_ENDPOINT_URL = (
    "https://cpanel.zendesk.com/api/v2/search.json"
    "?query=type:ticket+group:amer+assignee:none+status:new"
)


def set_debug_mode(enabled: bool) -> None:
    """Verbose package logging when debug mode is on, warnings only otherwise."""
    level = logging.DEBUG if enabled else logging.WARNING
    logging.getLogger("ticket_monitor").setLevel(level)


def migrate_settings(stored: dict[str, Any] | None) -> tuple[dict[str, Any], bool]:
    """Fill in missing settings fields.

    Returns:
        (settings dict, whether anything changed).
    """
    if not isinstance(stored, dict):
        return Settings().to_dict(), True
    migrated = dict(stored)
    changed = False
    if "checkInterval" in migrated:
        legacy = migrated.pop("checkInterval")
        migrated.setdefault("checkIntervalMinutes", legacy)
        changed = True
    for key, value in Settings().to_dict().items():
        if key not in migrated:
            migrated[key] = value
            changed = True
    return migrated, changed


class TicketMonitor:
    """The background monitor: poller, dispatcher, snooze and commands.

    Holds no state of its own beyond in-flight tasks; everything that must
    outlive a call is in ``state``.
    """

    def __init__(
        self,
        state: StateStore,
        scheduler: Scheduler,
        notifier: NotificationDisplay,
        badge: BadgeDisplay,
        audio: AudioPlayer,
        cookies: CookieSource,
        tabs: TabOpener,
        client: httpx.AsyncClient | None = None,
        clock: Clock = now_ms,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.state = state
        self.scheduler = scheduler
        self.notifier = notifier
        self.clock = clock

        self.snooze = SnoozeController(state, scheduler, clock=clock)
        self.dispatcher = NotificationDispatcher(
            state, self.snooze, notifier, badge, audio, tabs, clock=clock
        )
        self.snooze.on_change = self.dispatcher.update_badge
        self.poller = EndpointPoller(
            state, cookies, self.dispatcher, client=client, sleep=sleep, clock=clock
        )
        self.router = CommandRouter(self)

        scheduler.set_callback(self.on_alarm)
        notifier.set_click_handler(self.on_notification_clicked, self.on_notification_closed)
        self._tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Background tasks
    # -------------------------------------------------------------------------

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every spawned task, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run_sweep(self) -> None:
        try:
            await self.poller.check_all()
        except Exception:
            logger.exception("Error checking endpoints")

    # -------------------------------------------------------------------------
    # Host entry points
    # -------------------------------------------------------------------------

    async def on_installed(self, reason: str = "startup") -> None:
        """Seed defaults, migrate settings, restore timers, start polling."""
        logger.info(f"Extension event: {reason}")
        try:
            settings = await self._seed_defaults()
            set_debug_mode(settings.debug_mode)
            await self.state.write_volatile(
                {IS_ENABLED_KEY: True, LAST_REFRESH_KEY: 0, LAST_CHECK_KEY: 0}
            )
        except StorageUnavailable as e:
            logger.error(f"Could not initialize state: {e}")
        await self.snooze.restore_timer()
        await self.start_monitoring()

    async def _seed_defaults(self) -> Settings:
        data = await self.state.read_durable([ENDPOINTS_KEY, SETTINGS_KEY])
        updates: dict[str, Any] = {}

        endpoints = data.get(ENDPOINTS_KEY)
        if not isinstance(endpoints, list):
            updates[ENDPOINTS_KEY] = [
                {
                    "id": self.clock(),
                    "name": DEFAULT_ENDPOINT_NAME,
                    "url": DEFAULT_ENDPOINT_URL,
                    "enabled": True,
                }
            ]
            logger.info("Setting default endpoints")
        else:
            logger.info(f"Preserving {len(endpoints)} existing endpoints")

        settings, changed = migrate_settings(data.get(SETTINGS_KEY))
        if changed:
            updates[SETTINGS_KEY] = settings
            logger.info("Writing default or migrated settings")

        if updates:
            await self.state.write_durable(updates)
        return Settings.from_dict(settings)

    async def start_monitoring(self) -> None:
        logger.info("Starting Zendesk monitoring")
        try:
            data = await self.state.read_durable([SETTINGS_KEY])
        except StorageUnavailable as e:
            logger.warning(f"Settings unreadable, using defaults: {e}")
            data = {}
        interval = Settings.from_dict(data.get(SETTINGS_KEY)).effective_interval
        try:
            await self.scheduler.schedule_recurring(TICKET_CHECK_ALARM, interval)
            logger.info(f"Monitoring alarm created with {interval} minute interval")
        except SchedulerError as e:
            logger.error(f"Could not create monitoring alarm: {e}")
        self.spawn(self.run_sweep())

    async def on_alarm(self, name: str) -> None:
        if name == SNOOZE_ALARM:
            await self.snooze.clear_snooze()
        elif name == TICKET_CHECK_ALARM:
            try:
                flags = await self.state.read_volatile([IS_ENABLED_KEY])
            except StorageUnavailable as e:
                logger.warning(f"Runtime flags unreadable, assuming enabled: {e}")
                flags = {}
            if flags.get(IS_ENABLED_KEY, True) is not False:
                await self.run_sweep()
        else:
            logger.debug(f"Ignoring unknown alarm {name}")

    async def on_notification_clicked(self, notification_id: str) -> None:
        await self.dispatcher.handle_notification_click(notification_id)

    async def on_notification_closed(self, notification_id: str) -> None:
        await self.dispatcher.handle_notification_closed(notification_id)

    async def on_settings_changed(self, settings: dict[str, Any] | None) -> None:
        """React to the settings UI writing new settings."""
        if settings and "debugMode" in settings:
            set_debug_mode(bool(settings["debugMode"]))
            logger.info(f"Debug mode updated: {settings['debugMode']}")

    async def handle_message(self, message: dict[str, Any]) -> dict:
        return await self.router.handle_message(message)

    async def shutdown(self) -> None:
        try:
            await self.scheduler.cancel_all()
        except SchedulerError as e:
            logger.error(f"Could not cancel timers: {e}")
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)


def create_default_monitor(
    state_file: Path | None = None,
    session_file: Path | None = None,
    cookie_file: str | None = None,
    badge_file: Path | None = None,
) -> TicketMonitor:
    """Build a monitor with the desktop collaborators."""
    state = StateStore(
        durable=JsonFileStore(state_file or config.DURABLE_STATE_FILE),
        volatile=JsonFileStore(session_file or config.VOLATILE_STATE_FILE),
    )
    cookie_path = cookie_file or config.COOKIE_FILE
    cookies: CookieSource
    if cookie_path:
        cookies = CookieFileSource(Path(cookie_path))
    else:
        cookies = StaticCookieSource()
    return TicketMonitor(
        state=state,
        scheduler=AsyncioScheduler(),
        notifier=DesktopNotifier(),
        badge=StatusFileBadge(badge_file or config.BADGE_FILE),
        audio=OffscreenAudio(),
        cookies=cookies,
        tabs=BrowserTabOpener(),
    )


async def run(monitor: TicketMonitor) -> None:
    """Start the monitor and keep it running until cancelled."""
    await monitor.on_installed("startup")
    try:
        await asyncio.Event().wait()
    finally:
        await monitor.shutdown()
