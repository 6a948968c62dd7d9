"""Fetch-and-compare polling of configured ticket-search endpoints."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable
from urllib.parse import urlparse

import httpx

from ticket_monitor.clock import Clock, now_ms
from ticket_monitor.dispatcher import NotificationDispatcher
from ticket_monitor.exceptions import (
    EndpointHTTPError,
    EndpointNetworkError,
    EndpointTimeoutError,
    HostFacilityError,
    MalformedResponseError,
    StorageUnavailable,
)
from ticket_monitor.host.base import CookieSource
from ticket_monitor.models import Cookie, Endpoint, Settings
from ticket_monitor.storage.state import (
    ENDPOINTS_KEY,
    LAST_CHECK_KEY,
    SETTINGS_KEY,
    StateStore,
)

logger = logging.getLogger(__name__)

MAX_CONCURRENT_CHECKS = 3
MAX_RETRIES = 2
BACKOFF_SECONDS = 1.0
REQUEST_TIMEOUT = 10.0

AUTH_COOKIE_MARKERS = ("session", "auth", "_zendesk", "csrf")
SESSION_COOKIE_NAMES = {"_help_center_session"}


def is_auth_cookie(name: str) -> bool:
    return name in SESSION_COOKIE_NAMES or any(m in name for m in AUTH_COOKIE_MARKERS)


def build_cookie_header(cookies: list[Cookie]) -> str:
    """Join the authentication cookies as a ``name=value; ...`` header."""
    return "; ".join(f"{c.name}={c.value}" for c in cookies if is_auth_cookie(c.name))


def parse_count(data: object) -> int:
    """Read ``count`` from a search response. Missing or non-numeric is 0."""
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")
    value = data.get("count")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    try:
        return max(0, int(value))
    except (ValueError, OverflowError):
        return 0


def load_endpoints(raw: object) -> list[Endpoint]:
    if not isinstance(raw, list):
        return []
    endpoints = []
    for item in raw:
        try:
            endpoints.append(Endpoint.from_dict(item))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed endpoint: %r", item)
    return endpoints


class EndpointPoller:
    """Check every enabled endpoint and notify on count increases.

    Endpoints are checked in batches of :data:`MAX_CONCURRENT_CHECKS`; a
    batch settles completely before the next starts. A failing check never
    affects its siblings.

    Args:
        state: Two-tier state store.
        cookies: Source of ambient session cookies.
        dispatcher: Receives increases and badge refreshes.
        client: Shared ``httpx.AsyncClient``. When omitted, each sweep opens
            and closes its own.
        sleep: Backoff delay coroutine, ``asyncio.sleep`` by default.
        clock: Millisecond clock.
    """

    def __init__(
        self,
        state: StateStore,
        cookies: CookieSource,
        dispatcher: NotificationDispatcher,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Clock = now_ms,
    ):
        self.state = state
        self.cookies = cookies
        self.dispatcher = dispatcher
        self.client = client
        self.sleep = sleep
        self.clock = clock

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            yield client

    async def check_all(self) -> int:
        """Run one sweep. Returns the number of endpoints checked."""
        logger.info("Checking all endpoints...")
        try:
            data = await self.state.read_durable([ENDPOINTS_KEY, SETTINGS_KEY])
        except StorageUnavailable as e:
            logger.error(f"Cannot read configuration, skipping sweep: {e}")
            return 0

        endpoints = load_endpoints(data.get(ENDPOINTS_KEY))
        if not endpoints:
            logger.info("No endpoints configured")
            return 0

        enabled = [e for e in endpoints if e.enabled]
        if not enabled:
            logger.info("No enabled endpoints")
            return 0

        settings = Settings.from_dict(data.get(SETTINGS_KEY))
        async with self._client() as client:
            for i in range(0, len(enabled), MAX_CONCURRENT_CHECKS):
                batch = enabled[i : i + MAX_CONCURRENT_CHECKS]
                results = await asyncio.gather(
                    *(self.check_one(endpoint, settings, client) for endpoint in batch),
                    return_exceptions=True,
                )
                for endpoint, result in zip(batch, results):
                    if isinstance(result, Exception):
                        logger.error(
                            f"Unexpected error checking {endpoint.name}: {result!r}"
                        )

        try:
            await self.state.write_volatile({LAST_CHECK_KEY: self.clock()})
        except StorageUnavailable as e:
            logger.warning(f"Could not record sweep time: {e}")
        logger.info(f"Completed checking {len(enabled)} endpoints")
        return len(enabled)

    async def check_one(
        self,
        endpoint: Endpoint,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> int | None:
        """Check one endpoint, retrying 5xx and network failures.

        Returns:
            The observed count, or None if the check was abandoned.
        """
        host = urlparse(endpoint.url).hostname
        if not host:
            logger.error(f"Endpoint {endpoint.name} has no host in {endpoint.url!r}")
            return None

        if client is None:
            async with self._client() as own_client:
                return await self.check_one(endpoint, settings, own_client)

        for attempt in range(MAX_RETRIES + 1):
            logger.info(f"Checking endpoint: {endpoint.name}")
            cookie_header = await self._auth_header(host)
            try:
                new_count = await self._fetch_count(client, endpoint, cookie_header)
            except EndpointTimeoutError:
                logger.error(
                    f"Endpoint {endpoint.name} timed out after {REQUEST_TIMEOUT:g} seconds"
                )
                return None
            except MalformedResponseError as e:
                logger.error(f"Bad response from {endpoint.name}: {e}")
                return None
            except EndpointHTTPError as e:
                logger.error(f"HTTP {e.status_code} for {endpoint.name}")
                if not e.retryable or attempt >= MAX_RETRIES:
                    return None
            except EndpointNetworkError as e:
                logger.error(f"Error checking {endpoint.name}: {e}")
                if attempt >= MAX_RETRIES:
                    return None
            else:
                await self._record(endpoint, settings, new_count)
                return new_count

            logger.info(f"Retrying {endpoint.name} ({attempt + 1}/{MAX_RETRIES})")
            await self.sleep(BACKOFF_SECONDS * (attempt + 1))
        return None

    async def _auth_header(self, host: str) -> str:
        try:
            cookies = await self.cookies.cookies_for(host)
        except HostFacilityError as e:
            logger.error(f"Error getting cookies: {e}")
            return ""
        auth_cookies = [c for c in cookies if is_auth_cookie(c.name)]
        logger.debug(f"Found {len(auth_cookies)} authentication cookies for {host}")
        return build_cookie_header(auth_cookies)

    async def _fetch_count(
        self,
        client: httpx.AsyncClient,
        endpoint: Endpoint,
        cookie_header: str,
    ) -> int:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if cookie_header:
            headers["Cookie"] = cookie_header
        try:
            response = await client.get(endpoint.url, headers=headers, timeout=REQUEST_TIMEOUT)
        except httpx.TimeoutException as e:
            raise EndpointTimeoutError(f"{endpoint.url} timed out") from e
        except httpx.HTTPError as e:
            raise EndpointNetworkError(f"Request to {endpoint.url} failed: {e}") from e

        if not response.is_success:
            raise EndpointHTTPError(
                f"{endpoint.url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response is not JSON: {e}") from e
        return parse_count(data)

    async def _record(self, endpoint: Endpoint, settings: Settings, new_count: int) -> None:
        try:
            counts = await self.state.get_endpoint_counts()
        except StorageUnavailable as e:
            logger.warning(f"Count table unreadable, treating {endpoint.name} as new: {e}")
            counts = {}
        previous = counts.get(endpoint.id)

        was = "unknown" if previous is None else previous
        logger.info(f"{endpoint.name}: {new_count} tickets (was {was})")

        if previous is not None and new_count > previous:
            try:
                await self.dispatcher.notify_new_tickets(
                    endpoint.name, new_count - previous, new_count, settings, endpoint
                )
            except Exception:
                logger.exception(f"Notification for {endpoint.name} failed")

        try:
            await self.state.set_endpoint_count(endpoint.id, new_count)
        except StorageUnavailable as e:
            logger.error(f"Could not store count for {endpoint.name}: {e}")
        await self.dispatcher.update_badge()
