"""Abstract interfaces for the platform facilities the core depends on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from ticket_monitor.models import Cookie

AlarmCallback = Callable[[str], Awaitable[None]]
ClickCallback = Callable[[str], Awaitable[None]]


class Scheduler(ABC):
    """Named timers. Scheduling a name that already exists replaces it."""

    def __init__(self) -> None:
        self._callback: AlarmCallback | None = None

    def set_callback(self, callback: AlarmCallback) -> None:
        """Register the coroutine invoked with a timer's name when it fires."""
        self._callback = callback

    @abstractmethod
    async def schedule_recurring(self, name: str, period_minutes: float) -> None:
        ...

    @abstractmethod
    async def schedule_once(self, name: str, delay_minutes: float) -> None:
        ...

    @abstractmethod
    async def cancel(self, name: str) -> bool:
        """Cancel a timer. Returns False if no timer had that name."""
        ...

    @abstractmethod
    async def cancel_all(self) -> None:
        """Cancel every pending timer."""
        ...


class NotificationDisplay(ABC):
    """OS notifications with click reporting."""

    def __init__(self) -> None:
        self._on_click: ClickCallback | None = None
        self._on_close: ClickCallback | None = None

    def set_click_handler(self, on_click: ClickCallback, on_close: ClickCallback | None = None) -> None:
        self._on_click = on_click
        self._on_close = on_close

    @abstractmethod
    async def show(self, notification_id: str, title: str, body: str, icon: str | None = None) -> str:
        """Display a notification and return its id."""
        ...

    @abstractmethod
    async def clear(self, notification_id: str) -> None:
        """Dismiss a notification if it is still showing."""
        ...


class CookieSource(ABC):
    """Ambient session cookies for a host."""

    @abstractmethod
    async def cookies_for(self, host: str) -> list[Cookie]:
        ...


class AudioPlayer(ABC):
    """Fire-and-forget sound playback."""

    @abstractmethod
    async def play(self, sound_type: str = "beep", volume: float = 0.3) -> None:
        ...


class BadgeDisplay(ABC):
    """A short text badge with a background color."""

    @abstractmethod
    async def set_text(self, text: str) -> None:
        ...

    @abstractmethod
    async def set_color(self, color: str) -> None:
        ...


class TabOpener(ABC):
    """Opens a URL for the user."""

    @abstractmethod
    async def open(self, url: str) -> None:
        ...
