"""Shared fakes for the monitoring core."""

from __future__ import annotations

from typing import Callable, Iterable

import httpx
import pytest

from ticket_monitor.exceptions import (
    AudioError,
    BadgeError,
    CookieError,
    NotificationError,
    SchedulerError,
    StorageUnavailable,
)
from ticket_monitor.host.base import (
    AudioPlayer,
    BadgeDisplay,
    CookieSource,
    NotificationDisplay,
    Scheduler,
    TabOpener,
)
from ticket_monitor.models import Cookie
from ticket_monitor.monitor import TicketMonitor
from ticket_monitor.storage.base import KeyValueStore
from ticket_monitor.storage.memory import MemoryStore
from ticket_monitor.storage.state import StateStore

START_MS = 1_700_000_000_000
ZENDESK_URL = "https://acme.zendesk.com/api/v2/search.json?query=type:ticket+status:new"


class FakeClock:
    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeScheduler(Scheduler):
    def __init__(self):
        super().__init__()
        self.recurring: dict[str, float] = {}
        self.once: dict[str, float] = {}
        self.cancelled: list[str] = []
        self.fail = False

    async def schedule_recurring(self, name: str, period_minutes: float) -> None:
        if self.fail:
            raise SchedulerError("scheduler down")
        self.recurring[name] = period_minutes

    async def schedule_once(self, name: str, delay_minutes: float) -> None:
        if self.fail:
            raise SchedulerError("scheduler down")
        self.once[name] = delay_minutes

    async def cancel(self, name: str) -> bool:
        self.cancelled.append(name)
        existed = name in self.once or name in self.recurring
        self.once.pop(name, None)
        self.recurring.pop(name, None)
        return existed

    async def cancel_all(self) -> None:
        for name in [*self.once, *self.recurring]:
            await self.cancel(name)

    async def fire(self, name: str) -> None:
        self.once.pop(name, None)
        await self._callback(name)


class FakeNotifier(NotificationDisplay):
    def __init__(self):
        super().__init__()
        self.shown: list[dict] = []
        self.cleared: list[str] = []
        self.fail = False

    async def show(self, notification_id, title, body, icon=None):
        if self.fail:
            raise NotificationError("notifications blocked")
        self.shown.append({"id": notification_id, "title": title, "body": body, "icon": icon})
        return notification_id

    async def clear(self, notification_id):
        self.cleared.append(notification_id)

    async def click(self, notification_id):
        await self._on_click(notification_id)


class FakeBadge(BadgeDisplay):
    def __init__(self):
        self.text = None
        self.color = None
        self.fail = False

    async def set_text(self, text):
        if self.fail:
            raise BadgeError("badge gone")
        self.text = text

    async def set_color(self, color):
        self.color = color


class FakeAudio(AudioPlayer):
    def __init__(self):
        self.played: list[tuple[str, float]] = []
        self.fail = False

    async def play(self, sound_type="beep", volume=0.3):
        if self.fail:
            raise AudioError("no speakers")
        self.played.append((sound_type, volume))


class FakeCookies(CookieSource):
    def __init__(self, cookies: list[Cookie] | None = None):
        self.cookies = cookies or []
        self.fail = False
        self.hosts: list[str] = []

    async def cookies_for(self, host):
        self.hosts.append(host)
        if self.fail:
            raise CookieError("cookie store locked")
        return list(self.cookies)


class FakeTabs(TabOpener):
    def __init__(self):
        self.opened: list[str] = []

    async def open(self, url):
        self.opened.append(url)


class FailingStore(KeyValueStore):
    async def get(self, keys: Iterable[str]):
        raise StorageUnavailable("disk on fire")

    async def set(self, data):
        raise StorageUnavailable("disk on fire")

    async def remove(self, keys):
        raise StorageUnavailable("disk on fire")

    async def clear(self):
        raise StorageUnavailable("disk on fire")


def endpoint_dict(endpoint_id: int = 1, name: str = "AMER Tickets", url: str = ZENDESK_URL, enabled: bool = True) -> dict:
    return {"id": endpoint_id, "name": name, "url": url, "enabled": enabled}


def default_settings(**overrides) -> dict:
    settings = {
        "checkIntervalMinutes": 1,
        "soundEnabled": True,
        "notificationEnabled": True,
        "darkMode": False,
        "debugMode": False,
    }
    settings.update(overrides)
    return settings


class Harness:
    """A monitor wired to fakes, plus handles on each fake."""

    url = ZENDESK_URL
    start_ms = START_MS
    endpoint = staticmethod(endpoint_dict)
    settings = staticmethod(default_settings)

    def __init__(
        self,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        failing_storage: bool = False,
    ):
        self.clock = FakeClock()
        self.sleep = RecordingSleep()
        self.durable = FailingStore() if failing_storage else MemoryStore()
        self.volatile = FailingStore() if failing_storage else MemoryStore()
        self.state = StateStore(self.durable, self.volatile)
        self.scheduler = FakeScheduler()
        self.notifier = FakeNotifier()
        self.badge = FakeBadge()
        self.audio = FakeAudio()
        self.cookies = FakeCookies([Cookie("_zendesk_session", "sess123"), Cookie("theme", "dark")])
        self.tabs = FakeTabs()
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, json={"count": 0}))

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self._handler(request)

        self.client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        self.monitor = TicketMonitor(
            state=self.state,
            scheduler=self.scheduler,
            notifier=self.notifier,
            badge=self.badge,
            audio=self.audio,
            cookies=self.cookies,
            tabs=self.tabs,
            client=self.client,
            clock=self.clock,
            sleep=self.sleep,
        )

    def respond_with(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._handler = handler

    def respond_counts(self, *counts: int) -> None:
        """Answer successive requests with the given counts, repeating the last."""
        remaining = list(counts)

        def handler(request):
            value = remaining.pop(0) if len(remaining) > 1 else remaining[0]
            return httpx.Response(200, json={"count": value})

        self._handler = handler

    async def configure(self, endpoints: list[dict] | None = None, settings: dict | None = None) -> None:
        data = {}
        if endpoints is not None:
            data["endpoints"] = endpoints
        data["settings"] = settings or default_settings()
        await self.durable.set(data)

    async def set_counts(self, counts: dict[int, int]) -> None:
        await self.state.save_endpoint_counts(counts)


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def broken_harness():
    """Both storage tiers raise StorageUnavailable on every call."""
    return Harness(failing_storage=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def memory_state():
    return StateStore(MemoryStore(), MemoryStore())


@pytest.fixture(autouse=True)
def reset_package_log_level():
    yield
    import logging
    logging.getLogger("ticket_monitor").setLevel(logging.NOTSET)
