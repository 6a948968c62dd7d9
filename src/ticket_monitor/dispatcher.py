"""User-visible side effects: OS notifications, sound and badge."""

from __future__ import annotations

import logging

from ticket_monitor.clock import Clock, now_ms
from ticket_monitor.exceptions import HostFacilityError, StorageUnavailable
from ticket_monitor.host.base import AudioPlayer, BadgeDisplay, NotificationDisplay, TabOpener
from ticket_monitor.models import Endpoint, Settings
from ticket_monitor.snooze import SnoozeController
from ticket_monitor.storage.state import StateStore

logger = logging.getLogger(__name__)

DASHBOARD_URL = "https://cpanel.zendesk.com/agent/dashboard"
NOTIFICATION_ICON = "icons/icon48.png"
SOUND_VOLUME = 0.3

SNOOZED_BADGE = "⏰"
SNOOZED_COLOR = "#F39C12"
TICKETS_COLOR = "#FF6B6B"
EMPTY_COLOR = "#4ECDC4"


def notification_id_for(endpoint: Endpoint, timestamp_ms: int) -> str:
    return f"ticket-notification-{endpoint.id}-{timestamp_ms}"


def format_notification(name: str, delta: int, total: int) -> tuple[str, str]:
    """Return (title, body) for a new-ticket notification."""
    title = f"New Zendesk Tickets: {name}"
    body = f"{delta} new ticket(s)\nTotal: {total} tickets"
    return title, body


class NotificationDispatcher:
    """Emit notifications and keep the badge current.

    Every user-visible alert first consults the snooze controller. Platform
    failures are logged and swallowed so they never abort a check.
    """

    def __init__(
        self,
        state: StateStore,
        snooze: SnoozeController,
        notifier: NotificationDisplay,
        badge: BadgeDisplay,
        audio: AudioPlayer,
        tabs: TabOpener,
        clock: Clock = now_ms,
        dashboard_url: str = DASHBOARD_URL,
    ):
        self.state = state
        self.snooze = snooze
        self.notifier = notifier
        self.badge = badge
        self.audio = audio
        self.tabs = tabs
        self.clock = clock
        self.dashboard_url = dashboard_url

    async def notify_new_tickets(
        self,
        name: str,
        delta: int,
        total: int,
        settings: Settings,
        endpoint: Endpoint,
    ) -> str | None:
        """Alert the user about ``delta`` new tickets on ``endpoint``.

        Returns:
            The notification id if an OS notification was shown.
        """
        if await self.snooze.is_snoozed():
            logger.info(f"Notifications are snoozed - skipping notification for {name}")
            return None

        logger.info(f"New tickets detected: {delta} new tickets in {name}")

        if settings.sound_enabled:
            await self.play_sound()

        if not settings.notification_enabled:
            return None

        notification_id = notification_id_for(endpoint, self.clock())
        title, body = format_notification(name, delta, total)

        # The route must exist before the notification can be clicked.
        try:
            await self.state.add_notification_route(notification_id, endpoint.url)
        except StorageUnavailable as e:
            logger.error(f"Could not record notification route: {e}")

        try:
            await self.notifier.show(notification_id, title, body, icon=NOTIFICATION_ICON)
        except HostFacilityError as e:
            logger.error(f"Could not show notification for {name}: {e}")
            return None
        return notification_id

    async def play_sound(self) -> None:
        try:
            await self.audio.play("beep", SOUND_VOLUME)
            logger.debug("Played notification sound")
        except HostFacilityError as e:
            logger.error(f"Error playing sound: {e}")

    async def update_badge(self) -> None:
        """Render the summed ticket count, or the snoozed glyph."""
        try:
            counts = await self.state.get_endpoint_counts()
        except StorageUnavailable as e:
            logger.warning(f"Count table unreadable, badge shows zero: {e}")
            counts = {}
        total = sum(counts.values())

        if await self.snooze.is_snoozed():
            text, color = SNOOZED_BADGE, SNOOZED_COLOR
        else:
            text = str(total) if total > 0 else ""
            color = TICKETS_COLOR if total > 0 else EMPTY_COLOR

        try:
            await self.badge.set_text(text)
            await self.badge.set_color(color)
        except HostFacilityError as e:
            logger.error(f"Could not update badge: {e}")

    async def handle_notification_click(self, notification_id: str) -> str:
        """Open the endpoint behind a clicked notification.

        Returns:
            The URL that was opened.
        """
        logger.info(f"Notification clicked: {notification_id}")
        try:
            url = await self.state.pop_notification_route(notification_id)
        except StorageUnavailable as e:
            logger.error(f"Notification routes unreadable: {e}")
            url = None

        target = url or self.dashboard_url
        try:
            await self.tabs.open(target)
        except HostFacilityError as e:
            logger.error(f"Could not open {target}: {e}")

        try:
            await self.notifier.clear(notification_id)
        except HostFacilityError as e:
            logger.error(f"Could not dismiss notification {notification_id}: {e}")
        return target

    async def handle_notification_closed(self, notification_id: str) -> None:
        """Drop the route of a notification dismissed without a click."""
        try:
            await self.state.pop_notification_route(notification_id)
        except StorageUnavailable as e:
            logger.error(f"Notification routes unreadable: {e}")
