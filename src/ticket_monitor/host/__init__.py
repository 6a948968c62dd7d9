"""Platform facilities: timers, notifications, cookies, audio, badge, tabs."""

from ticket_monitor.host.audio import BeepPlayer, OffscreenAudio
from ticket_monitor.host.badge import LogBadge, StatusFileBadge
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

__all__ = [
    "AudioPlayer",
    "BadgeDisplay",
    "CookieSource",
    "NotificationDisplay",
    "Scheduler",
    "TabOpener",
    "AsyncioScheduler",
    "DesktopNotifier",
    "CookieFileSource",
    "StaticCookieSource",
    "BeepPlayer",
    "OffscreenAudio",
    "StatusFileBadge",
    "LogBadge",
    "BrowserTabOpener",
]
